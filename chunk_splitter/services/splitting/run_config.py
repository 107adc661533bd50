"""Assemble the immutable SplitRunConfig from settings, a split profile and the cluster chunksize."""

from typing import Any

from chunk_splitter.config.settings import get_settings
from chunk_splitter.config.splitting.models import SplitRunConfig
from chunk_splitter.config.splitting.static import resolve_split_profile
from chunk_splitter.repositories.mongodb.catalog_repository import MongoCatalog
from chunk_splitter.services.splitting.errors import ConfigurationError

MIB = 1024 * 1024


async def resolve_max_chunk_size_bytes(catalog: MongoCatalog, default_mb: int) -> int:
    """config.settings chunksize (MiB) in bytes, or default_mb when the cluster has none configured."""
    doc = await catalog.get_chunk_size_setting()
    if doc is None:
        return default_mb * MIB
    value = doc.get("value")
    if value is None:
        raise ConfigurationError("chunksize setting has no value field")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError(f"chunksize setting must be a positive number of MiB, got {value!r}")
    return int(value * MIB)


async def build_run_config(
    catalog: MongoCatalog,
    namespace: str | None,
    apply_splits: bool = False,
    profile_name: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> SplitRunConfig:
    """
    Resolve everything a run needs before touching any chunk. Raises ConfigurationError for a
    missing namespace, unknown profile, out-of-range override or bad chunksize setting.
    """
    if not namespace:
        raise ConfigurationError("namespace is required")
    settings = get_settings()
    try:
        profile = resolve_split_profile(profile_name or settings.split_profile, overrides)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    max_chunk_size_bytes = await resolve_max_chunk_size_bytes(catalog, settings.default_max_chunk_size_mb)
    try:
        return SplitRunConfig(
            namespace=namespace,
            apply_splits=apply_splits,
            sampling_fraction=profile.sampling_fraction,
            estimation_mode=profile.estimation_mode,
            max_chunk_size_bytes=max_chunk_size_bytes,
            split_threshold_ratio=profile.split_threshold_ratio,
            include_config_server_address=profile.include_config_server_address,
            max_concurrency=settings.split_max_concurrency,
        )
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
