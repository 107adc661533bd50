"""
Estimate first; re-measure exactly only when the estimate is above the threshold.
Exact scans are paid for chunks that already look large, never for small ones.
"""

from typing import Any

from chunk_splitter.config.logging import get_logger
from chunk_splitter.services.splitting.models import ChunkDescriptor, SizeMeasurement
from chunk_splitter.services.splitting.sizing import measure_chunk_size

logger = get_logger(__name__)


async def verified_size(
    client: Any,
    chunk: ChunkDescriptor,
    threshold_bytes: float,
    max_time_ms: int | None = None,
) -> SizeMeasurement:
    estimate = await measure_chunk_size(client, chunk, exact=False, max_time_ms=max_time_ms)
    if estimate.size_bytes <= threshold_bytes:
        return estimate
    exact = await measure_chunk_size(client, chunk, exact=True, max_time_ms=max_time_ms)
    if exact.size_bytes <= threshold_bytes:
        logger.info(
            "Estimated size above threshold but exact size is not; dropping chunk",
            extra={
                "chunk": chunk.identity(),
                "estimated_bytes": estimate.size_bytes,
                "exact_bytes": exact.size_bytes,
            },
        )
    return exact
