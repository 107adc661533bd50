"""Async router health handling. Thin wrapper over the client for readiness checks."""

from typing import Any

from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from chunk_splitter.config.logging import get_logger
from chunk_splitter.resources.mongo.client import get_mongo_client

logger = get_logger(__name__)


async def ping_mongo() -> dict[str, Any]:
    """
    Ping mongos asynchronously. Returns dict with 'ok' bool and optional 'error' string.
    Used for health checks; does not leak internal details.
    """
    try:
        await get_mongo_client().admin.command("ping")
        return {"ok": True}
    except ServerSelectionTimeoutError as e:
        logger.warning("mongos ping timeout", extra={"error": str(type(e).__name__)})
        return {"ok": False, "error": "connection_timeout"}
    except PyMongoError as e:
        logger.warning("mongos ping failed", extra={"error": str(type(e).__name__)})
        return {"ok": False, "error": "connection_failed"}
