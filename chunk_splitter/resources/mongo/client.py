"""Async mongos client with connection pooling, timeouts, and graceful shutdown using Motor."""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from chunk_splitter.config.logging import get_logger
from chunk_splitter.config.storage.mongo import get_mongo_config

logger = get_logger(__name__)

_client: AsyncIOMotorClient | None = None
_config_db: AsyncIOMotorDatabase | None = None


def get_mongo_client() -> AsyncIOMotorClient:
    """Return the shared async router client. Creates it on first use."""
    global _client
    if _client is None:
        cfg = get_mongo_config()
        # Retries are disabled: a failed call surfaces to the caller, who re-runs the whole pipeline.
        _client = AsyncIOMotorClient(
            cfg["uri"],
            connectTimeoutMS=cfg["connect_timeout_ms"],
            serverSelectionTimeoutMS=cfg["server_selection_timeout_ms"],
            socketTimeoutMS=cfg["socket_timeout_ms"],
            maxPoolSize=cfg["max_pool_size"],
            retryReads=False,
            retryWrites=False,
        )
        logger.info(
            "mongos async client initialized",
            extra={"config_database": cfg["config_database"], "max_pool_size": cfg["max_pool_size"]},
        )
    return _client


def get_config_database() -> AsyncIOMotorDatabase:
    """Return the routing metadata database. Uses shared async client."""
    global _config_db
    if _config_db is None:
        cfg = get_mongo_config()
        _config_db = get_mongo_client()[cfg["config_database"]]
    return _config_db


def close_mongo_client() -> None:
    """Close the router client and release connections. Call on app shutdown."""
    global _client, _config_db
    if _client is not None:
        try:
            _client.close()
            logger.info("mongos async client closed")
        except Exception as e:
            logger.warning("Error closing mongos client", extra={"error": str(e)})
        _client = None
        _config_db = None
