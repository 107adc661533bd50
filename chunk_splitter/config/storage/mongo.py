"""MongoDB connection config (read from settings). Read-only; no business logic."""

from chunk_splitter.config.settings import get_settings


def get_mongo_config() -> dict:
    """Return router connection parameters from settings for use by resources."""
    s = get_settings()
    return {
        "uri": s.mongo_uri,
        "config_database": s.mongo_config_database,
        "connect_timeout_ms": s.mongo_connect_timeout_ms,
        "server_selection_timeout_ms": s.mongo_server_selection_timeout_ms,
        "socket_timeout_ms": s.mongo_socket_timeout_ms,
        "max_pool_size": s.mongo_max_pool_size,
    }


def get_shard_connection_config() -> dict:
    """Return per-shard connection parameters. Credentials are omitted when no username is set."""
    s = get_settings()
    cfg = {
        "connect_timeout_ms": s.mongo_connect_timeout_ms,
        "server_selection_timeout_ms": s.mongo_server_selection_timeout_ms,
        "socket_timeout_ms": s.mongo_socket_timeout_ms,
        "max_pool_size": s.split_max_concurrency,
        "command_max_time_ms": s.shard_command_max_time_ms,
    }
    if s.shard_username:
        cfg["credentials"] = {
            "username": s.shard_username,
            "password": s.shard_password,
            "authSource": s.shard_auth_source,
        }
    return cfg
