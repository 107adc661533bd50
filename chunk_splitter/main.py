"""FastAPI app entry: config, logging, shard connections, health, and graceful shutdown."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from chunk_splitter.config.logging import configure_logging, get_logger
from chunk_splitter.config.settings import get_settings
from chunk_splitter.controllers.routes.split import router as split_router
from chunk_splitter.repositories.mongodb.catalog_repository import MongoCatalog
from chunk_splitter.resources.mongo.client import close_mongo_client, get_config_database, get_mongo_client
from chunk_splitter.resources.mongo.session import ping_mongo
from chunk_splitter.resources.mongo.shards import ShardRegistry, build_shard_registry

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: config, logging, catalog and one client per shard. Shutdown: close all clients."""
    settings = get_settings()
    configure_logging()
    logger.info("Application starting", extra={"app_name": settings.app_name, "environment": settings.environment})
    catalog = MongoCatalog(get_config_database(), get_mongo_client())
    app.state.catalog = catalog
    try:
        app.state.shards = build_shard_registry(await catalog.list_shards())
    except Exception as e:
        logger.error("Failed to build shard registry on startup", extra={"error": str(e)})
        # Don't fail startup; /ready reports the missing shards and /split finds no owners
        app.state.shards = ShardRegistry({})
    yield
    logger.info("Application shutting down")
    app.state.shards.close()
    close_mongo_client()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Chunk Splitter",
    description="Find oversized chunks of a sharded collection and split them under a version fence",
    version="1.0.0",
    lifespan=lifespan,
)
app.include_router(split_router)


@app.get("/health")
async def health() -> dict[str, Any]:
    """Liveness: service is up. Does not check dependencies."""
    return {"status": "ok"}


@app.get("/ready")
async def ready(request: Request) -> dict[str, Any]:
    """Readiness: mongos answers and at least one shard connection exists."""
    mongo = await ping_mongo()
    shards = getattr(request.app.state, "shards", None)
    shard_count = len(shards) if shards is not None else 0
    ok = mongo.get("ok", False) and shard_count > 0
    body = {
        "status": "ok" if ok else "degraded",
        "mongo": {"ok": mongo.get("ok", False), "error": mongo.get("error")},
        "shards": {"ok": shard_count > 0, "count": shard_count},
    }
    return JSONResponse(content=body, status_code=200 if ok else 503)


@app.exception_handler(Exception)
async def global_exception_handler(_request: Request, exc: Exception):
    """Centralized error handling: connection failures and timeouts get clear, non-leaking messages."""
    exc_name = type(exc).__name__
    # Do not leak stack traces or internal details to the client
    if "Connection" in exc_name or "Timeout" in exc_name or "connection" in str(type(exc).__module__).lower():
        logger.warning("Connection or timeout error", extra={"error": exc_name})
        return JSONResponse(
            content={"detail": "A dependency is temporarily unavailable. Please retry later."},
            status_code=503,
        )
    logger.exception("Unhandled error")
    return JSONResponse(
        content={"detail": "An internal error occurred."},
        status_code=500,
    )
