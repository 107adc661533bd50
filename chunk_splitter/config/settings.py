"""Environment-based application settings. Read-only; no business logic."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="chunk-splitter", description="Service name")
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Runtime environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Log level name")

    # Server
    host: str = Field(default="0.0.0.0", description="Listen host")
    port: int = Field(default=8000, ge=1, le=65535, description="Listen port")

    # Router (mongos); the config database is read through it
    mongo_uri: str = Field(
        default="mongodb://localhost:27017",
        description="mongos connection URI",
    )
    mongo_config_database: str = Field(default="config", description="Routing metadata database name")
    mongo_connect_timeout_ms: int = Field(default=5000, ge=100, description="Connection timeout (ms)")
    mongo_server_selection_timeout_ms: int = Field(
        default=5000, ge=100, description="Server selection timeout (ms)"
    )
    mongo_socket_timeout_ms: int = Field(
        default=120000, ge=100, description="Upper bound for any single remote call (ms)"
    )
    mongo_max_pool_size: int = Field(default=50, ge=1, le=500, description="Max connection pool size")

    # Shard connections (opened directly against each shard for datasize/splitVector/splitChunk)
    shard_auth_source: str = Field(default="admin", description="Authentication database on the shards")
    shard_username: str = Field(default="", description="Shard user; needs the cluster 'internal' action")
    shard_password: str = Field(default="", description="Shard password")
    shard_command_max_time_ms: int = Field(
        default=60000, ge=1, description="maxTimeMS attached to shard read commands"
    )

    # Split runs
    split_profile: str = Field(default="active", description="Split profile name from static.json")
    split_max_concurrency: int = Field(default=8, ge=1, le=256, description="Parallel shard calls per stage")
    default_max_chunk_size_mb: int = Field(
        default=64, ge=1, description="Max chunk size used when config.settings has no chunksize"
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance. Use for app lifetime."""
    return Settings()
