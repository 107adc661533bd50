"""Single datasize round trip to the owning shard, shared by every estimation strategy."""

from typing import Any

from chunk_splitter.repositories.mongodb.base import ShardCommandError
from chunk_splitter.repositories.mongodb.shard_commands import datasize_command, run_shard_command
from chunk_splitter.services.splitting.errors import EstimationError
from chunk_splitter.services.splitting.models import ChunkDescriptor, SizeMeasurement


def _usable_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0


async def measure_chunk_size(
    client: Any,
    chunk: ChunkDescriptor,
    exact: bool,
    max_time_ms: int | None = None,
) -> SizeMeasurement:
    """
    Ask the shard for the byte size of [range_min, range_max). exact=False lets the shard use
    average document size * count instead of scanning. Raises EstimationError when the reply
    carries no usable size.
    """
    command = datasize_command(
        chunk.namespace,
        chunk.shard_key_pattern,
        chunk.range_min,
        chunk.range_max,
        estimate=not exact,
        max_time_ms=max_time_ms,
    )
    try:
        response = await run_shard_command(client, command)
    except ShardCommandError as e:
        raise EstimationError(str(e), request=e.command, response=e.response) from e

    size = response.get("size")
    if not _usable_number(size):
        raise EstimationError(
            "datasize response has no usable size field", request=command, response=response
        )
    count = response.get("numObjects")
    return SizeMeasurement(
        size_bytes=int(size),
        document_count=int(count) if _usable_number(count) else None,
        exact=exact,
    )
