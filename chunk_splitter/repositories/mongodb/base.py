"""Routing metadata collection names, chunk filters, and common PyMongo error handling."""

from typing import Any

from pymongo.errors import OperationFailure, PyMongoError

from chunk_splitter.config.logging import get_logger

logger = get_logger(__name__)

# Collections of the config database
SETTINGS_COLLECTION = "settings"
COLLECTIONS_COLLECTION = "collections"
CHUNKS_COLLECTION = "chunks"
SHARDS_COLLECTION = "shards"

CHUNK_SIZE_SETTING_ID = "chunksize"


class RepositoryError(Exception):
    """Raised when a catalog operation fails after handling PyMongo errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ShardCommandError(Exception):
    """
    Raised when a command sent to a shard fails. `response` holds the shard's reply
    when it answered with ok: 0, and is None for transport failures.
    """

    def __init__(
        self,
        message: str,
        command: dict[str, Any],
        response: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.command = command
        self.response = response
        self.cause = cause


def _translate_pymongo_error(e: PyMongoError, context: str) -> RepositoryError:
    """Wrap PyMongo errors into a non-leaking RepositoryError."""
    logger.warning(
        "Catalog operation failed",
        extra={"context": context, "error_type": type(e).__name__},
    )
    return RepositoryError(f"Dependency temporarily unavailable: {context}", cause=e)


def _translate_shard_error(e: PyMongoError, command: dict[str, Any]) -> ShardCommandError:
    """Wrap PyMongo errors from a shard command, keeping the shard reply when there is one."""
    command_name = next(iter(command), "?")
    if isinstance(e, OperationFailure):
        response = dict(e.details or {"ok": 0, "errmsg": str(e), "code": e.code})
        reason = response.get("errmsg") or str(e)
        return ShardCommandError(f"{command_name} rejected: {reason}", command, response=response, cause=e)
    return ShardCommandError(f"{command_name} failed: {type(e).__name__}", command, cause=e)


def chunk_filter_for(collection_doc: dict[str, Any]) -> dict[str, Any]:
    """
    Filter selecting a collection's documents in config.chunks. Catalogs that stamp collections
    with a `timestamp` key their chunks by collection uuid; older catalogs key them by namespace.
    """
    if "timestamp" in collection_doc and "uuid" in collection_doc:
        return {"uuid": collection_doc["uuid"]}
    return {"ns": collection_doc["_id"]}
