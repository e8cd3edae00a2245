"""Domain ports (interfaces for infrastructure adapters)."""

from mealdrafts.domain.shared.ports.blob_store import BlobStoreError, IBlobStore
from mealdrafts.domain.shared.ports.dirty_tracker import IDirtyTracker
from mealdrafts.domain.shared.ports.recipe_lookup import IRecipeLookup

__all__ = [
    "BlobStoreError",
    "IBlobStore",
    "IDirtyTracker",
    "IRecipeLookup",
]
