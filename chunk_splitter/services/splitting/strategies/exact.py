"""Exact sizing: the shard scans every document in range. Slow, always accurate."""

from typing import Any

from chunk_splitter.services.splitting.models import ChunkDescriptor, SizeMeasurement
from chunk_splitter.services.splitting.sizing import measure_chunk_size


async def exact_size(
    client: Any,
    chunk: ChunkDescriptor,
    threshold_bytes: float,
    max_time_ms: int | None = None,
) -> SizeMeasurement:
    return await measure_chunk_size(client, chunk, exact=True, max_time_ms=max_time_ms)
