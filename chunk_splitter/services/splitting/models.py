"""Chunk, candidate, version fence and run report models for the split pipeline."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from chunk_splitter.utils.time import utc_now


class RunStage(str, Enum):
    DISCOVER = "discover"
    ESTIMATE = "estimate"
    PLAN = "plan"
    EXECUTE = "execute"
    VERIFY = "verify"
    DONE = "done"
    ABORTED = "aborted"


class ChunkDescriptor(BaseModel):
    """One contiguous shard key range [range_min, range_max) owned by a single shard."""

    namespace: str
    shard_key_pattern: dict[str, Any]
    range_min: dict[str, Any]
    range_max: dict[str, Any]
    owner_node: str

    def identity(self) -> dict[str, Any]:
        """Loggable identity of the chunk."""
        return {
            "ns": self.namespace,
            "shard": self.owner_node,
            "min": self.range_min,
            "max": self.range_max,
        }


class SizeMeasurement(BaseModel):
    size_bytes: int = Field(..., ge=0)
    document_count: int | None = None
    exact: bool = False


class Candidate(BaseModel):
    """A chunk above the split threshold. Split points are filled in by the planner."""

    chunk: ChunkDescriptor
    estimated_size_bytes: int = Field(..., ge=0)
    estimated_document_count: int | None = None
    size_is_exact: bool = False
    split_points: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def splittable(self) -> bool:
        return len(self.split_points) > 0

    @property
    def resulting_chunk_count(self) -> int:
        return len(self.split_points) + 1 if self.splittable else 1


class VersionToken(BaseModel):
    """(major version, epoch) read right before a split and presented back to the shard."""

    major_version: Any
    epoch: Any

    def as_shard_version(self) -> list[Any]:
        return [self.major_version, self.epoch]


class SplitOutcome(BaseModel):
    chunk: ChunkDescriptor
    ok: bool
    reason: str | None = None
    error_code: str | None = None
    request: dict[str, Any] | None = None
    response: dict[str, Any] | None = None


class ChunkFailure(BaseModel):
    """Per-chunk error recorded in the run report."""

    stage: RunStage
    chunk: dict[str, Any]
    error: str
    error_code: str
    request: dict[str, Any] | None = None
    response: dict[str, Any] | None = None


class SplitRunReport(BaseModel):
    namespace: str
    stage: RunStage = RunStage.DISCOVER
    outcome: str = "running"
    apply_splits: bool = False
    estimation_mode: str = ""
    max_chunk_size_bytes: int = 0
    split_threshold_bytes: float = 0
    chunks_before: int = 0
    chunks_after: int | None = None
    chunks_sampled: int = 0
    candidates: int = 0
    splittable: int = 0
    resulting_chunks: int = 0
    splits_succeeded: int = 0
    splits_failed: int = 0
    failures: list[ChunkFailure] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utc_now)
    finished_at: datetime | None = None

    @property
    def chunk_delta(self) -> int | None:
        if self.chunks_after is None:
            return None
        return self.chunks_after - self.chunks_before
