"""Request/response schemas for POST /split."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from chunk_splitter.config.splitting.models import EstimationMode


class SplitRequest(BaseModel):
    """POST /split request body. One namespace per run; profile from static.json unless overridden."""

    namespace: str = Field(..., min_length=1, description="Sharded collection as database.collection")
    apply_splits: bool = Field(default=False, description="Issue splitChunk; false only computes")
    profile: str = Field(default="active", min_length=1, description="Split profile name or 'active'")
    sampling_fraction: float | None = Field(default=None, gt=0, le=1, description="Override: portion of chunks")
    estimation_mode: EstimationMode | None = Field(default=None, description="Override: sizing mode")
    split_threshold_ratio: float | None = Field(
        default=None, gt=0, le=1, description="Override: fraction of max chunk size that qualifies"
    )
    include_config_server_address: bool | None = Field(
        default=None, description="Override: send configdb with splitChunk (false for shards that reject it)"
    )


class SplitResponse(BaseModel):
    """POST /split response body. Counts per stage plus per-chunk failures."""

    namespace: str
    status: str = Field(..., description="success|partial|failed|aborted")
    outcome: str = Field(..., description="no_candidates|no_splittable|splits_not_requested|completed|aborted")
    stage: str
    apply_splits: bool
    estimation_mode: str
    max_chunk_size_bytes: int = Field(..., ge=0)
    split_threshold_bytes: float = Field(..., ge=0)
    chunks_before: int = Field(..., ge=0)
    chunks_after: int | None = None
    chunk_delta: int | None = None
    chunks_sampled: int = Field(..., ge=0)
    candidates: int = Field(..., ge=0)
    splittable: int = Field(..., ge=0)
    resulting_chunks: int = Field(..., ge=0)
    splits_succeeded: int = Field(default=0, ge=0)
    splits_failed: int = Field(default=0, ge=0)
    errors: list[dict[str, Any]] = Field(default_factory=list)
    started_at: datetime
    finished_at: datetime | None = None
