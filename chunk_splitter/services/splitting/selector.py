"""
Candidate Selector: resolve the namespace, draw the chunk sample, estimate each sampled chunk
and keep the ones strictly above the split threshold.
"""

import math
from typing import Any

from pydantic import BaseModel, Field

from chunk_splitter.config.logging import get_logger
from chunk_splitter.config.splitting.models import EstimationMode
from chunk_splitter.repositories.mongodb.base import chunk_filter_for
from chunk_splitter.repositories.mongodb.catalog_repository import MongoCatalog
from chunk_splitter.resources.mongo.shards import ShardRegistry
from chunk_splitter.services.splitting.errors import (
    ConfigurationError,
    EstimationError,
    NamespaceNotFoundError,
)
from chunk_splitter.services.splitting.estimator import estimate_chunk_size
from chunk_splitter.services.splitting.models import Candidate, ChunkDescriptor, ChunkFailure, RunStage
from chunk_splitter.utils.aio import gather_bounded

logger = get_logger(__name__)


class Discovery(BaseModel):
    """Result of resolving a namespace and sampling its chunks."""

    namespace: str
    collection: dict[str, Any]
    total_chunks: int
    sampled: list[ChunkDescriptor] = Field(default_factory=list)


def compute_sample_size(total_chunks: int, sampling_fraction: float) -> int:
    """max(1, round(total * fraction)) with halves rounded up, never more than total."""
    return min(total_chunks, max(1, math.floor(total_chunks * sampling_fraction + 0.5)))


async def resolve_collection(catalog: MongoCatalog, namespace: str) -> dict[str, Any]:
    """Return the sharded collection entry. Raises NamespaceNotFoundError / ConfigurationError."""
    doc = await catalog.get_collection(namespace)
    if doc is None or doc.get("dropped"):
        raise NamespaceNotFoundError(f"Namespace {namespace!r} is not a sharded collection")
    if not doc.get("key"):
        raise ConfigurationError(f"Namespace {namespace!r} has no shard key pattern")
    return doc


async def count_namespace_chunks(catalog: MongoCatalog, collection: dict[str, Any]) -> int:
    return await catalog.count_chunks(chunk_filter_for(collection))


def _dedupe(docs: list[dict[str, Any]]) -> list[dict[str, Any]]:
    seen: set[Any] = set()
    out: list[dict[str, Any]] = []
    for doc in docs:
        key = doc.get("_id", repr(doc.get("min")))
        if key in seen:
            continue
        seen.add(key)
        out.append(doc)
    return out


async def discover_chunks(catalog: MongoCatalog, namespace: str, sampling_fraction: float) -> Discovery:
    """
    Resolve the shard key, count chunks, and pick the sample. A full sample reads every chunk
    exactly once; a partial one uses $sample and drops repeats.
    """
    collection = await resolve_collection(catalog, namespace)
    chunk_filter = chunk_filter_for(collection)
    total = await catalog.count_chunks(chunk_filter)
    if total < 1:
        raise ConfigurationError(f"No chunks found for {namespace!r}")

    sample_size = compute_sample_size(total, sampling_fraction)
    if sample_size >= total:
        docs = await catalog.list_chunks(chunk_filter)
    else:
        docs = _dedupe(await catalog.sample_chunks(chunk_filter, sample_size))

    key_pattern = collection["key"]
    sampled = [
        ChunkDescriptor(
            namespace=namespace,
            shard_key_pattern=key_pattern,
            range_min=doc["min"],
            range_max=doc["max"],
            owner_node=doc["shard"],
        )
        for doc in docs
    ]
    logger.info(
        "Discovered chunks",
        extra={"namespace": namespace, "total_chunks": total, "sampled": len(sampled)},
    )
    return Discovery(namespace=namespace, collection=collection, total_chunks=total, sampled=sampled)


async def select_candidates(
    shards: ShardRegistry,
    chunks: list[ChunkDescriptor],
    mode: EstimationMode,
    threshold_bytes: float,
    max_concurrency: int = 8,
    max_time_ms: int | None = None,
) -> tuple[list[Candidate], list[ChunkFailure]]:
    """
    Estimate every chunk and keep those whose size is strictly greater than threshold_bytes.
    Returns (candidates, failures); a chunk that cannot be estimated is a failure, not a candidate.
    """

    async def _evaluate(chunk: ChunkDescriptor) -> Candidate | ChunkFailure | None:
        try:
            measurement = await estimate_chunk_size(shards, chunk, mode, threshold_bytes, max_time_ms)
        except EstimationError as e:
            logger.warning(
                "Chunk size estimation failed",
                extra={"chunk": chunk.identity(), "error": str(e), "error_code": e.error_code},
            )
            return ChunkFailure(
                stage=RunStage.ESTIMATE,
                chunk=chunk.identity(),
                error=str(e),
                error_code=e.error_code,
                request=e.request,
                response=e.response,
            )
        if measurement.size_bytes <= threshold_bytes:
            return None
        return Candidate(
            chunk=chunk,
            estimated_size_bytes=measurement.size_bytes,
            estimated_document_count=measurement.document_count,
            size_is_exact=measurement.exact,
        )

    results = await gather_bounded(chunks, _evaluate, max_concurrency)
    candidates = [r for r in results if isinstance(r, Candidate)]
    failures = [r for r in results if isinstance(r, ChunkFailure)]
    return candidates, failures
