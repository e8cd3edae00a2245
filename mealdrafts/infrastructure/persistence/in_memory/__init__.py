"""In-memory persistence adapters."""

from mealdrafts.infrastructure.persistence.in_memory.blob_store import InMemoryBlobStore

__all__ = ["InMemoryBlobStore"]
