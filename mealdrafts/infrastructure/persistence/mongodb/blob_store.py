"""MongoDB implementation of the blob store.

Provides durable key/value storage for draft blobs using MongoDB.
Each key is one document; values are stored as BSON binary.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson.binary import Binary
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo.errors import PyMongoError

from mealdrafts.domain.shared.ports.blob_store import BlobStoreError
from mealdrafts.infrastructure.config import (
    get_mongodb_blob_collection,
    get_mongodb_database,
    get_mongodb_uri,
)

logger = logging.getLogger(__name__)


class MongoBlobStore:
    """
    MongoDB implementation of IBlobStore port.

    Document Schema:
    {
        "_id": "drafts:meal_plan:1728396000000-a1b2c3d4e5f60718",
        "value": BinData(...),
        "size": 512,
        "updated_at": "2025-10-08T14:03:00+00:00"
    }

    Indexes:
    - _id: Unique index (automatic), also serves prefix scans
    """

    def __init__(
        self,
        client: Optional[AsyncIOMotorClient[Dict[str, Any]]] = None,
        collection_name: Optional[str] = None,
    ):
        """
        Initialize store with optional client.

        Args:
            client: Motor client (if None, creates new one from config)
            collection_name: Collection override (defaults to config)

        Raises:
            ValueError: If no client given and MONGODB_URI is not configured
        """
        if client is None:
            uri = get_mongodb_uri()
            if not uri:
                raise ValueError(
                    "MONGODB_URI not configured. "
                    "Set MONGODB_URI, MONGODB_USER, "
                    "and MONGODB_PASSWORD environment variables."
                )
            self._client: AsyncIOMotorClient[Dict[str, Any]] = AsyncIOMotorClient(uri)
        else:
            self._client = client

        self._collection_name = collection_name or get_mongodb_blob_collection()
        self._db = self._client[get_mongodb_database()]
        self._collection = self._db[self._collection_name]

        logger.info(f"Initialized MongoBlobStore for collection '{self._collection_name}'")

    @property
    def collection(self) -> AsyncIOMotorCollection[Dict[str, Any]]:
        """Get MongoDB collection handle."""
        return self._collection

    async def get(self, key: str) -> Optional[bytes]:
        try:
            doc = await self._collection.find_one({"_id": key}, {"value": 1})
        except PyMongoError as e:
            logger.error(f"Error in get: collection={self._collection_name}, key={key}, error={e}")
            raise BlobStoreError(f"Failed to read {key}: {e}") from e
        if doc is None:
            return None
        return bytes(doc["value"])

    async def set(self, key: str, value: bytes) -> None:
        document = {
            "value": Binary(bytes(value)),
            "size": len(value),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self._collection.update_one({"_id": key}, {"$set": document}, upsert=True)
        except PyMongoError as e:
            logger.error(f"Error in set: collection={self._collection_name}, key={key}, error={e}")
            raise BlobStoreError(f"Failed to write {key}: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._collection.delete_one({"_id": key})
        except PyMongoError as e:
            logger.error(
                f"Error in delete: collection={self._collection_name}, key={key}, error={e}"
            )
            raise BlobStoreError(f"Failed to delete {key}: {e}") from e

    async def list_keys(self, prefix: str = "") -> List[str]:
        filter_dict: Dict[str, Any] = {}
        if prefix:
            filter_dict = {"_id": {"$regex": f"^{re.escape(prefix)}"}}
        try:
            cursor = self._collection.find(filter_dict, {"_id": 1}).sort("_id", 1)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error(
                f"Error in list_keys: collection={self._collection_name}, "
                f"prefix={prefix}, error={e}"
            )
            raise BlobStoreError(f"Failed to list keys with prefix {prefix!r}: {e}") from e
        return [doc["_id"] for doc in docs]

    async def close(self) -> None:
        """Close MongoDB connection."""
        self._client.close()
        logger.info("Closed connection for MongoBlobStore")
