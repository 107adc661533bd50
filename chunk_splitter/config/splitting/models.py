"""Split run configuration models. Read-only; no business logic."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_MAX_CHUNK_SIZE_BYTES = 64 * 1024 * 1024


class EstimationMode(str, Enum):
    """How chunk sizes are measured on the owning shard."""

    EXACT = "exact"
    ESTIMATE_ONLY = "estimate_only"
    ESTIMATE_THEN_VERIFY = "estimate_then_verify"


class SplitProfile(BaseModel):
    """Named accuracy/speed trade-off loaded from static.json."""

    estimation_mode: EstimationMode = Field(default=EstimationMode.ESTIMATE_ONLY)
    sampling_fraction: float = Field(default=1.0, gt=0, le=1, description="Portion of chunks to evaluate")
    split_threshold_ratio: float = Field(
        default=0.9, gt=0, le=1, description="Fraction of the max chunk size that qualifies a chunk"
    )
    include_config_server_address: bool = Field(
        default=True, description="Send configdb with splitChunk (required by older shard versions)"
    )


class SplitRunConfig(BaseModel):
    """Immutable configuration for one split run over one namespace."""

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(..., min_length=3, description="database.collection")
    apply_splits: bool = Field(default=False, description="Issue splitChunk; otherwise compute only")
    sampling_fraction: float = Field(default=1.0, gt=0, le=1)
    estimation_mode: EstimationMode = Field(default=EstimationMode.ESTIMATE_ONLY)
    max_chunk_size_bytes: int = Field(default=DEFAULT_MAX_CHUNK_SIZE_BYTES, gt=0)
    split_threshold_ratio: float = Field(default=0.9, gt=0, le=1)
    include_config_server_address: bool = Field(default=True)
    max_concurrency: int = Field(default=8, ge=1)

    @model_validator(mode="after")
    def validate_namespace(self):
        """Namespace must be 'database.collection'; the collection part may itself contain dots."""
        db, _, coll = self.namespace.partition(".")
        if not db or not coll:
            raise ValueError(f"namespace must be in 'database.collection' format, got {self.namespace!r}")
        return self

    @property
    def split_threshold_bytes(self) -> float:
        return self.max_chunk_size_bytes * self.split_threshold_ratio
