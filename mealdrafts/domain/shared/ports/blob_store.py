"""Blob store port (interface).

Defines the only storage primitive the draft layer relies on: an async
key -> bytes store. Implementations are atomic per key but provide no
transactions across keys.
"""

from typing import List, Optional, Protocol


class BlobStoreError(Exception):
    """Raised by blob store adapters when the underlying store fails."""

    pass


class IBlobStore(Protocol):
    """
    Interface for a durable key/value byte store.

    Examples of implementations:
    - In-memory store (for testing)
    - MongoDB collection of blobs (for production)

    Example usage (application layer):
        >>> class DraftRepository:
        ...     def __init__(self, store: IBlobStore):
        ...         self._store = store
        ...
        ...     async def exists(self, key: str) -> bool:
        ...         return await self._store.get(key) is not None
    """

    async def get(self, key: str) -> Optional[bytes]:
        """
        Read the blob stored under a key.

        Args:
            key: Storage key

        Returns:
            Stored bytes, or None if the key is absent

        Raises:
            BlobStoreError: If the underlying store cannot be read
        """
        ...

    async def set(self, key: str, value: bytes) -> None:
        """
        Write (create or replace) the blob stored under a key.

        Args:
            key: Storage key
            value: Serialized blob

        Raises:
            BlobStoreError: If the write fails (quota exceeded, connection lost)
        """
        ...

    async def delete(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is a no-op.

        Args:
            key: Storage key

        Raises:
            BlobStoreError: If the underlying store cannot be written
        """
        ...

    async def list_keys(self, prefix: str = "") -> List[str]:
        """
        List stored keys starting with a prefix.

        Args:
            prefix: Key prefix filter (empty string lists every key)

        Returns:
            Matching keys, sorted

        Raises:
            BlobStoreError: If the underlying store cannot be read
        """
        ...
