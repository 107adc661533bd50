"""Split pipeline error taxonomy. Only ConfigurationError aborts a run; the rest are per-chunk."""

from typing import Any

ESTIMATION_FAILED = "ESTIMATION_FAILED"
PLANNING_FAILED = "PLANNING_FAILED"
FENCE_FAILED = "FENCE_FAILED"
SPLIT_REJECTED = "SPLIT_REJECTED"
SHARD_UNKNOWN = "SHARD_UNKNOWN"


class ConfigurationError(Exception):
    """Fatal: the run cannot start or continue safely. Raised before any split is issued."""


class NamespaceNotFoundError(ConfigurationError):
    """The namespace is not a sharded collection known to the catalog."""


class ChunkError(Exception):
    """A failure confined to one chunk. Carries an error code and optional request/response context."""

    error_code = "CHUNK_FAILED"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        request: dict[str, Any] | None = None,
        response: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code
        self.request = request
        self.response = response


class EstimationError(ChunkError):
    error_code = ESTIMATION_FAILED


class PlanningError(ChunkError):
    error_code = PLANNING_FAILED


class FenceError(ChunkError):
    error_code = FENCE_FAILED
