"""
Per-shard Motor clients keyed by shard id. The registry is built once from config.shards
and is read-only afterwards; every pipeline component receives it explicitly.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient

from chunk_splitter.config.logging import get_logger
from chunk_splitter.config.storage.mongo import get_shard_connection_config

logger = get_logger(__name__)


class UnknownShardError(LookupError):
    """Raised when a chunk names an owner shard that has no registered connection."""

    def __init__(self, shard_id: str):
        super().__init__(f"No connection registered for shard {shard_id!r}")
        self.shard_id = shard_id


class ShardRegistry:
    """Immutable shard id -> client mapping. Clients are shared, pooled and safe for concurrent use."""

    def __init__(self, clients: Mapping[str, Any]):
        self._clients = MappingProxyType(dict(clients))

    def get(self, shard_id: str) -> Any:
        try:
            return self._clients[shard_id]
        except KeyError:
            raise UnknownShardError(shard_id) from None

    @property
    def shard_ids(self) -> list[str]:
        return sorted(self._clients)

    def __contains__(self, shard_id: object) -> bool:
        return shard_id in self._clients

    def __len__(self) -> int:
        return len(self._clients)

    def close(self) -> None:
        """Close every shard client. Call on app shutdown."""
        for shard_id, client in self._clients.items():
            try:
                client.close()
            except Exception as e:
                logger.warning("Error closing shard client", extra={"shard": shard_id, "error": str(e)})
        logger.info("Shard clients closed", extra={"shard_count": len(self._clients)})


def parse_shard_host(host: str) -> tuple[str | None, list[str]]:
    """
    Split a config.shards host string into (replica_set, seed_list).
    "rs0/a:27017,b:27017" -> ("rs0", ["a:27017", "b:27017"]); "a:27017" -> (None, ["a:27017"]).
    """
    replica_set, sep, seeds = host.partition("/")
    if not sep:
        replica_set, seeds = None, host
    seed_list = [s.strip() for s in seeds.split(",") if s.strip()]
    if not seed_list:
        raise ValueError(f"Shard host has no seeds: {host!r}")
    return replica_set or None, seed_list


def build_shard_registry(shard_docs: Iterable[dict[str, Any]]) -> ShardRegistry:
    """Open one pooled client per shard document ({"_id": ..., "host": ...}) and freeze them in a registry."""
    cfg = get_shard_connection_config()
    clients: dict[str, AsyncIOMotorClient] = {}
    for doc in shard_docs:
        replica_set, seeds = parse_shard_host(doc["host"])
        kwargs: dict[str, Any] = {
            "connectTimeoutMS": cfg["connect_timeout_ms"],
            "serverSelectionTimeoutMS": cfg["server_selection_timeout_ms"],
            "socketTimeoutMS": cfg["socket_timeout_ms"],
            "maxPoolSize": cfg["max_pool_size"],
            "retryReads": False,
            "retryWrites": False,
            **cfg.get("credentials", {}),
        }
        if replica_set:
            kwargs["replicaSet"] = replica_set
        clients[doc["_id"]] = AsyncIOMotorClient(seeds, **kwargs)
    logger.info("Shard registry built", extra={"shards": sorted(clients)})
    return ShardRegistry(clients)
