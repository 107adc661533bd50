"""
Run Coordinator: one namespace, one linear pass.

    DISCOVER -> ESTIMATE -> PLAN -> EXECUTE -> VERIFY -> DONE

ESTIMATE ends the run when nothing is above the threshold, PLAN when no candidate has split
points, and a run without apply_splits stops after PLAN. Each stage fans out over chunks with
bounded concurrency; chunks never depend on each other. Nothing is retried: a chunk that fails
is reported and the whole pipeline is simply run again later.
"""

import asyncio

from chunk_splitter.config.logging import get_logger
from chunk_splitter.config.splitting.models import SplitRunConfig
from chunk_splitter.repositories.mongodb.base import RepositoryError
from chunk_splitter.repositories.mongodb.catalog_repository import MongoCatalog
from chunk_splitter.resources.mongo.shards import ShardRegistry
from chunk_splitter.services.splitting.errors import (
    SPLIT_REJECTED,
    ConfigurationError,
    FenceError,
    PlanningError,
)
from chunk_splitter.services.splitting.executor import execute_split
from chunk_splitter.services.splitting.fence import read_version_fence
from chunk_splitter.services.splitting.models import (
    Candidate,
    ChunkFailure,
    RunStage,
    SplitOutcome,
    SplitRunReport,
)
from chunk_splitter.services.splitting.planner import plan_split
from chunk_splitter.services.splitting.selector import (
    count_namespace_chunks,
    discover_chunks,
    select_candidates,
)
from chunk_splitter.utils.aio import gather_bounded
from chunk_splitter.utils.time import utc_now

logger = get_logger(__name__)


def _finish(report: SplitRunReport, outcome: str) -> SplitRunReport:
    report.stage = RunStage.DONE
    report.outcome = outcome
    report.finished_at = utc_now()
    logger.info(
        "Split run finished",
        extra={
            "namespace": report.namespace,
            "outcome": outcome,
            "candidates": report.candidates,
            "splittable": report.splittable,
            "splits_succeeded": report.splits_succeeded,
            "splits_failed": report.splits_failed,
            "chunk_delta": report.chunk_delta,
        },
    )
    return report


def _cancelled(report: SplitRunReport, cancel_event: asyncio.Event | None) -> bool:
    if cancel_event is None or not cancel_event.is_set():
        return False
    logger.warning("Split run aborted", extra={"namespace": report.namespace, "after_stage": report.stage.value})
    report.stage = RunStage.ABORTED
    report.outcome = "aborted"
    report.finished_at = utc_now()
    return True


def _failure(stage: RunStage, candidate: Candidate, error: Exception, error_code: str) -> ChunkFailure:
    return ChunkFailure(
        stage=stage,
        chunk=candidate.chunk.identity(),
        error=str(error),
        error_code=error_code,
        request=getattr(error, "request", None),
        response=getattr(error, "response", None),
    )


async def run_split_pipeline(
    catalog: MongoCatalog,
    shards: ShardRegistry,
    config: SplitRunConfig,
    cancel_event: asyncio.Event | None = None,
    max_time_ms: int | None = None,
) -> SplitRunReport:
    """
    Find oversized chunks of config.namespace and, if config.apply_splits, split them.
    Raises ConfigurationError (and RepositoryError if the catalog is unreachable during
    discovery); per-chunk problems are collected in the report instead.
    """
    report = SplitRunReport(
        namespace=config.namespace,
        apply_splits=config.apply_splits,
        estimation_mode=config.estimation_mode.value,
        max_chunk_size_bytes=config.max_chunk_size_bytes,
        split_threshold_bytes=config.split_threshold_bytes,
    )
    limit = config.max_concurrency

    # Step 1: the chunks to look at
    report.stage = RunStage.DISCOVER
    logger.info("Looking for chunks", extra={"namespace": config.namespace})
    discovery = await discover_chunks(catalog, config.namespace, config.sampling_fraction)
    report.chunks_before = discovery.total_chunks
    report.chunks_sampled = len(discovery.sampled)
    if _cancelled(report, cancel_event):
        return report

    # Step 2: split candidates
    report.stage = RunStage.ESTIMATE
    logger.info(
        "Filtering split candidates",
        extra={"mode": config.estimation_mode.value, "threshold_bytes": config.split_threshold_bytes},
    )
    candidates, estimation_failures = await select_candidates(
        shards,
        discovery.sampled,
        config.estimation_mode,
        config.split_threshold_bytes,
        max_concurrency=limit,
        max_time_ms=max_time_ms,
    )
    report.failures.extend(estimation_failures)
    report.candidates = len(candidates)
    if not candidates:
        return _finish(report, "no_candidates")
    if _cancelled(report, cancel_event):
        return report

    # Step 3: split points
    report.stage = RunStage.PLAN

    async def _plan(candidate: Candidate) -> tuple[Candidate, ChunkFailure | None]:
        try:
            return await plan_split(shards, candidate, config.max_chunk_size_bytes, max_time_ms), None
        except PlanningError as e:
            logger.warning(
                "Split point computation failed",
                extra={"chunk": candidate.chunk.identity(), "error": str(e)},
            )
            return candidate, _failure(RunStage.PLAN, candidate, e, e.error_code)

    planned = await gather_bounded(candidates, _plan, limit)
    report.failures.extend(f for _, f in planned if f is not None)
    splittable = [c for c, _ in planned if c.splittable]
    report.splittable = len(splittable)
    report.resulting_chunks = sum(c.resulting_chunk_count for c in splittable)
    logger.info(
        "Identified splittable chunks",
        extra={"splittable": report.splittable, "resulting_chunks": report.resulting_chunks},
    )
    if not splittable:
        return _finish(report, "no_splittable")
    if not config.apply_splits:
        return _finish(report, "splits_not_requested")
    if _cancelled(report, cancel_event):
        return report

    # Step 4: fence + split, chunk by chunk
    report.stage = RunStage.EXECUTE
    config_server_address: str | None = None
    if config.include_config_server_address:
        config_server_address = await catalog.get_config_server_address()
        if not config_server_address:
            raise ConfigurationError("Router serverStatus has no sharding.configsvrConnectionString")

    async def _fence_and_split(candidate: Candidate) -> SplitOutcome | ChunkFailure:
        try:
            version = await read_version_fence(catalog, discovery.collection, candidate.chunk)
        except FenceError as e:
            logger.warning(
                "Version fence unavailable; skipping split",
                extra={"chunk": candidate.chunk.identity(), "error": str(e)},
            )
            return _failure(RunStage.EXECUTE, candidate, e, e.error_code)
        return await execute_split(shards, candidate, version, config_server_address)

    results = await gather_bounded(splittable, _fence_and_split, limit)
    for result in results:
        if isinstance(result, SplitOutcome) and result.ok:
            report.splits_succeeded += 1
            continue
        report.splits_failed += 1
        if isinstance(result, ChunkFailure):
            report.failures.append(result)
        else:
            report.failures.append(
                ChunkFailure(
                    stage=RunStage.EXECUTE,
                    chunk=result.chunk.identity(),
                    error=result.reason or "split rejected",
                    error_code=result.error_code or SPLIT_REJECTED,
                    request=result.request,
                    response=result.response,
                )
            )
    if _cancelled(report, cancel_event):
        return report

    # Step 5: did the chunk count move
    report.stage = RunStage.VERIFY
    try:
        report.chunks_after = await count_namespace_chunks(catalog, discovery.collection)
    except RepositoryError as e:
        logger.warning("Could not re-count chunks after splitting", extra={"error": str(e)})
    return _finish(report, "completed")
