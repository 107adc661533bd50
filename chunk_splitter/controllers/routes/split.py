"""POST /split: find and optionally split oversized chunks of one namespace."""

from fastapi import APIRouter, Depends, HTTPException, Request

from chunk_splitter.config.storage.mongo import get_shard_connection_config
from chunk_splitter.controllers.schema.split import SplitRequest, SplitResponse
from chunk_splitter.repositories.mongodb.base import RepositoryError
from chunk_splitter.repositories.mongodb.catalog_repository import MongoCatalog
from chunk_splitter.resources.mongo.shards import ShardRegistry
from chunk_splitter.services.splitting.coordinator import run_split_pipeline
from chunk_splitter.services.splitting.errors import ConfigurationError, NamespaceNotFoundError
from chunk_splitter.services.splitting.models import RunStage, SplitRunReport
from chunk_splitter.services.splitting.run_config import build_run_config
from chunk_splitter.utils.ext_json import to_jsonable

router = APIRouter(prefix="/split", tags=["splitting"])


def get_catalog(request: Request) -> MongoCatalog:
    return request.app.state.catalog


def get_shard_registry(request: Request) -> ShardRegistry:
    return request.app.state.shards


def _status(report: SplitRunReport) -> str:
    if report.stage == RunStage.ABORTED:
        return "aborted"
    if report.splits_failed and not report.splits_succeeded:
        return "failed"
    if report.failures:
        return "partial"
    return "success"


def _to_response(report: SplitRunReport) -> SplitResponse:
    return SplitResponse(
        namespace=report.namespace,
        status=_status(report),
        outcome=report.outcome,
        stage=report.stage.value,
        apply_splits=report.apply_splits,
        estimation_mode=report.estimation_mode,
        max_chunk_size_bytes=report.max_chunk_size_bytes,
        split_threshold_bytes=report.split_threshold_bytes,
        chunks_before=report.chunks_before,
        chunks_after=report.chunks_after,
        chunk_delta=report.chunk_delta,
        chunks_sampled=report.chunks_sampled,
        candidates=report.candidates,
        splittable=report.splittable,
        resulting_chunks=report.resulting_chunks,
        splits_succeeded=report.splits_succeeded,
        splits_failed=report.splits_failed,
        errors=[to_jsonable(f.model_dump(mode="python")) for f in report.failures],
        started_at=report.started_at,
        finished_at=report.finished_at,
    )


@router.post("", response_model=SplitResponse)
async def split_namespace(
    body: SplitRequest,
    catalog: MongoCatalog = Depends(get_catalog),
    shards: ShardRegistry = Depends(get_shard_registry),
) -> SplitResponse:
    """
    Run the split pipeline for one namespace. With apply_splits=false nothing is mutated;
    the response says what would be split. Failed chunks do not fail the request.
    """
    overrides = {
        "sampling_fraction": body.sampling_fraction,
        "estimation_mode": body.estimation_mode,
        "split_threshold_ratio": body.split_threshold_ratio,
        "include_config_server_address": body.include_config_server_address,
    }
    try:
        config = await build_run_config(
            catalog,
            body.namespace,
            apply_splits=body.apply_splits,
            profile_name=body.profile,
            overrides=overrides,
        )
        report = await run_split_pipeline(
            catalog,
            shards,
            config,
            max_time_ms=get_shard_connection_config()["command_max_time_ms"],
        )
    except NamespaceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except RepositoryError as e:
        raise HTTPException(status_code=503, detail="Routing metadata temporarily unavailable") from e
    return _to_response(report)
