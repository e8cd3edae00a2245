"""MongoDB persistence adapters."""

from mealdrafts.infrastructure.persistence.mongodb.blob_store import MongoBlobStore

__all__ = ["MongoBlobStore"]
