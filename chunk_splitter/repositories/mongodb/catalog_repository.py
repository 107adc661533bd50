"""
Read-only access to the routing metadata catalog (the config database behind mongos).
Nothing here writes to the catalog; chunk documents only change as a side effect of splitChunk.
"""

from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from chunk_splitter.repositories.mongodb.base import (
    CHUNK_SIZE_SETTING_ID,
    CHUNKS_COLLECTION,
    COLLECTIONS_COLLECTION,
    SETTINGS_COLLECTION,
    SHARDS_COLLECTION,
    _translate_pymongo_error,
)


class MongoCatalog:
    """Catalog reads against the config database, plus the router's view of the config servers."""

    def __init__(self, config_db: AsyncIOMotorDatabase, router_client: AsyncIOMotorClient):
        self._db = config_db
        self._router = router_client

    async def get_chunk_size_setting(self) -> dict[str, Any] | None:
        """Return the {'value': <MiB>} chunksize document, or None when the cluster uses the default."""
        try:
            return await self._db[SETTINGS_COLLECTION].find_one(
                {"_id": CHUNK_SIZE_SETTING_ID}, {"_id": 0, "value": 1}
            )
        except PyMongoError as e:
            raise _translate_pymongo_error(e, "read chunksize setting") from e

    async def get_collection(self, namespace: str) -> dict[str, Any] | None:
        """Return the config.collections entry for namespace, or None if it is not sharded."""
        try:
            return await self._db[COLLECTIONS_COLLECTION].find_one(
                {"_id": namespace},
                {"_id": 1, "key": 1, "uuid": 1, "timestamp": 1, "lastmodEpoch": 1, "dropped": 1},
            )
        except PyMongoError as e:
            raise _translate_pymongo_error(e, "read collection metadata") from e

    async def count_chunks(self, chunk_filter: dict[str, Any]) -> int:
        try:
            return await self._db[CHUNKS_COLLECTION].count_documents(chunk_filter)
        except PyMongoError as e:
            raise _translate_pymongo_error(e, "count chunks") from e

    async def list_chunks(self, chunk_filter: dict[str, Any]) -> list[dict[str, Any]]:
        """Every chunk of the collection, ordered by range lower bound."""
        try:
            cursor = self._db[CHUNKS_COLLECTION].find(
                chunk_filter, {"_id": 1, "min": 1, "max": 1, "shard": 1}
            ).sort("min", 1)
            return [doc async for doc in cursor]
        except PyMongoError as e:
            raise _translate_pymongo_error(e, "list chunks") from e

    async def sample_chunks(self, chunk_filter: dict[str, Any], size: int) -> list[dict[str, Any]]:
        """Uniform random sample of `size` chunks. $sample may repeat documents; callers dedupe."""
        pipeline = [
            {"$match": chunk_filter},
            {"$sample": {"size": size}},
            {"$project": {"_id": 1, "min": 1, "max": 1, "shard": 1}},
        ]
        try:
            cursor = self._db[CHUNKS_COLLECTION].aggregate(pipeline)
            return [doc async for doc in cursor]
        except PyMongoError as e:
            raise _translate_pymongo_error(e, "sample chunks") from e

    async def find_chunk_version(
        self, chunk_filter: dict[str, Any], range_min: dict[str, Any], range_max: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Return {'lastmod', 'lastmodEpoch'?} for the chunk with exactly these bounds, or None."""
        try:
            return await self._db[CHUNKS_COLLECTION].find_one(
                {**chunk_filter, "min": range_min, "max": range_max},
                {"_id": 0, "lastmod": 1, "lastmodEpoch": 1},
            )
        except PyMongoError as e:
            raise _translate_pymongo_error(e, "read chunk version") from e

    async def list_shards(self) -> list[dict[str, Any]]:
        try:
            cursor = self._db[SHARDS_COLLECTION].find({}, {"_id": 1, "host": 1})
            return [doc async for doc in cursor]
        except PyMongoError as e:
            raise _translate_pymongo_error(e, "list shards") from e

    async def get_config_server_address(self) -> str | None:
        """Config server connection string as reported by the router, or None if absent."""
        try:
            status = await self._router.admin.command("serverStatus")
        except PyMongoError as e:
            raise _translate_pymongo_error(e, "read serverStatus") from e
        return (status.get("sharding") or {}).get("configsvrConnectionString")
