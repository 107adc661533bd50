"""Estimated sizing: average document size * documents in range. Fast; may over- or under-estimate."""

from typing import Any

from chunk_splitter.services.splitting.models import ChunkDescriptor, SizeMeasurement
from chunk_splitter.services.splitting.sizing import measure_chunk_size


async def estimated_size(
    client: Any,
    chunk: ChunkDescriptor,
    threshold_bytes: float,
    max_time_ms: int | None = None,
) -> SizeMeasurement:
    return await measure_chunk_size(client, chunk, exact=False, max_time_ms=max_time_ms)
