"""Chunk size estimation strategies, one per EstimationMode."""

from typing import Awaitable, Callable

from chunk_splitter.config.splitting.models import EstimationMode
from chunk_splitter.services.splitting.models import SizeMeasurement
from chunk_splitter.services.splitting.strategies.estimate_only import estimated_size
from chunk_splitter.services.splitting.strategies.estimate_then_verify import verified_size
from chunk_splitter.services.splitting.strategies.exact import exact_size

STRATEGY_REGISTRY: dict[EstimationMode, Callable[..., Awaitable[SizeMeasurement]]] = {
    EstimationMode.EXACT: exact_size,
    EstimationMode.ESTIMATE_ONLY: estimated_size,
    EstimationMode.ESTIMATE_THEN_VERIFY: verified_size,
}


def get_strategy_fn(mode: EstimationMode):
    """Return the sizing function for the given mode, or None."""
    return STRATEGY_REGISTRY.get(mode)
