"""Size Estimator: dispatch a chunk to the owning shard under the requested EstimationMode."""

from chunk_splitter.config.splitting.models import EstimationMode
from chunk_splitter.resources.mongo.shards import ShardRegistry, UnknownShardError
from chunk_splitter.services.splitting.errors import SHARD_UNKNOWN, EstimationError
from chunk_splitter.services.splitting.models import ChunkDescriptor, SizeMeasurement
from chunk_splitter.services.splitting.strategies import get_strategy_fn


async def estimate_chunk_size(
    shards: ShardRegistry,
    chunk: ChunkDescriptor,
    mode: EstimationMode,
    threshold_bytes: float,
    max_time_ms: int | None = None,
) -> SizeMeasurement:
    """
    Return the chunk's size under `mode`. threshold_bytes only matters for
    ESTIMATE_THEN_VERIFY, which re-measures exactly above it.
    Raises EstimationError for this chunk alone.
    """
    strategy_fn = get_strategy_fn(mode)
    if strategy_fn is None:
        raise ValueError(f"Unknown estimation mode: {mode!r}")
    try:
        client = shards.get(chunk.owner_node)
    except UnknownShardError as e:
        raise EstimationError(str(e), error_code=SHARD_UNKNOWN) from e
    return await strategy_fn(client, chunk, threshold_bytes, max_time_ms)
