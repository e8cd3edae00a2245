"""In-memory blob store implementation.

Provides an in-memory implementation of IBlobStore port for testing.
Uses a dictionary for storage with no external dependencies.
"""

import logging
from typing import Dict, List, Optional

from mealdrafts.domain.shared.ports.blob_store import BlobStoreError

logger = logging.getLogger(__name__)


class InMemoryBlobStore:
    """
    In-memory implementation of IBlobStore port.

    Thread safety: NOT thread-safe (single event loop only)
    Persistence: Data lost on process restart (in-memory only)

    An optional byte quota mimics the storage limits of a device key/value
    store: a write that would exceed it fails with BlobStoreError and leaves
    the previous value untouched.

    Example:
        >>> store = InMemoryBlobStore()
        >>> await store.set("drafts:meal_plan:index", b"[]")
        >>> await store.get("drafts:meal_plan:index")
        b'[]'
    """

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        """
        Initialize store with empty storage.

        Args:
            quota_bytes: Maximum total size of stored values (None = unlimited)
        """
        self._storage: Dict[str, bytes] = {}
        self._quota_bytes = quota_bytes

    async def get(self, key: str) -> Optional[bytes]:
        return self._storage.get(key)

    async def set(self, key: str, value: bytes) -> None:
        """
        Store a value.

        Raises:
            BlobStoreError: If value is not bytes or the quota would be exceeded
        """
        if not isinstance(value, (bytes, bytearray)):
            raise BlobStoreError(f"Blob for {key} must be bytes, got {type(value).__name__}")

        if self._quota_bytes is not None:
            used = self.used_bytes() - len(self._storage.get(key, b""))
            if used + len(value) > self._quota_bytes:
                logger.warning(
                    "Blob store quota exceeded",
                    extra={"key": key, "quota_bytes": self._quota_bytes},
                )
                raise BlobStoreError(
                    f"Quota exceeded writing {key}: "
                    f"{used + len(value)} > {self._quota_bytes} bytes"
                )

        self._storage[key] = bytes(value)

    async def delete(self, key: str) -> None:
        self._storage.pop(key, None)

    async def list_keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self._storage if k.startswith(prefix))

    def used_bytes(self) -> int:
        """Total size of stored values."""
        return sum(len(v) for v in self._storage.values())

    def clear(self) -> None:
        """Clear all stored blobs (for testing)."""
        self._storage.clear()
