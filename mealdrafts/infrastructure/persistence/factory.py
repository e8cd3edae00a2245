"""Blob store factory for the persistence layer.

Environment-based store selection with in-memory as the safe default:
- .env (runtime): BLOB_STORE_BACKEND=mongodb (durable drafts)
- pytest: BLOB_STORE_BACKEND=inmemory (fast, isolated tests)
- Default: inmemory

Usage:
    from mealdrafts.infrastructure.persistence.factory import (
        create_blob_store,
        get_blob_store,
    )

    store = create_blob_store()  # inmemory or mongodb based on env
    store = get_blob_store()     # Singleton instance
"""

from typing import Optional

from mealdrafts.domain.shared.ports.blob_store import IBlobStore
from mealdrafts.infrastructure.config import get_blob_store_backend, get_mongodb_uri
from mealdrafts.infrastructure.persistence.in_memory.blob_store import InMemoryBlobStore


def create_blob_store() -> IBlobStore:
    """Create blob store based on BLOB_STORE_BACKEND env var.

    Values:
        - "inmemory": In-memory store (default, transient)
        - "mongodb": MongoDB store (durable, requires MONGODB_URI)

    Returns:
        IBlobStore: Store instance

    Raises:
        ValueError: If mongodb selected but MONGODB_URI not set, or
            the backend name is unknown
    """
    mode = get_blob_store_backend()

    if mode == "mongodb":
        if not get_mongodb_uri():
            raise ValueError(
                "BLOB_STORE_BACKEND=mongodb but MONGODB_URI not set. "
                "Set MONGODB_URI in .env or use BLOB_STORE_BACKEND=inmemory"
            )
        from mealdrafts.infrastructure.persistence.mongodb.blob_store import MongoBlobStore

        return MongoBlobStore()

    if mode != "inmemory":
        raise ValueError(f"Unknown BLOB_STORE_BACKEND: {mode!r} (use inmemory or mongodb)")

    return InMemoryBlobStore()


# Singleton instance (lazy initialization)
_blob_store: Optional[IBlobStore] = None


def get_blob_store() -> IBlobStore:
    """Get singleton blob store instance."""
    global _blob_store
    if _blob_store is None:
        _blob_store = create_blob_store()
    return _blob_store


def reset_blob_store() -> None:
    """Reset singleton store instance.

    Useful for testing to force re-creation with different env vars.
    """
    global _blob_store
    _blob_store = None
