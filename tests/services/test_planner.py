import pytest

from chunk_splitter.services.splitting.errors import PlanningError
from chunk_splitter.services.splitting.models import Candidate, ChunkDescriptor
from chunk_splitter.services.splitting.planner import plan_split
from tests.helpers.fake_cluster import KEY_PATTERN, MIB, NAMESPACE

MAX_CHUNK = 64 * MIB


def _candidate(lo: int, hi: int) -> Candidate:
    return Candidate(
        chunk=ChunkDescriptor(
            namespace=NAMESPACE,
            shard_key_pattern=KEY_PATTERN,
            range_min={"customer_id": lo},
            range_max={"customer_id": hi},
            owner_node="shard0",
        ),
        estimated_size_bytes=100 * MIB,
    )


@pytest.mark.asyncio
async def test_split_vector_targets_max_chunk_size(cluster) -> None:
    cluster.add_chunk(0, 100, size=100 * MIB, split_keys=[50])

    planned = await plan_split(cluster.registry(), _candidate(0, 100), MAX_CHUNK)

    assert planned.split_points == [{"customer_id": 50}]
    assert planned.splittable is True
    assert planned.resulting_chunk_count == 2
    [command] = cluster.commands_named("splitVector")
    assert command["maxChunkSizeBytes"] == MAX_CHUNK
    assert command["min"] == {"customer_id": 0}
    assert command["max"] == {"customer_id": 100}


@pytest.mark.asyncio
async def test_no_split_points_leaves_candidate_unsplittable(cluster) -> None:
    cluster.add_chunk(0, 100, size=100 * MIB, split_keys=[])
    candidate = _candidate(0, 100)

    planned = await plan_split(cluster.registry(), candidate, MAX_CHUNK)

    assert planned.split_points == []
    assert planned.splittable is False
    assert candidate.split_points == []


@pytest.mark.asyncio
async def test_range_bounds_are_not_split_points(cluster) -> None:
    cluster.add_chunk(0, 100, size=100 * MIB, split_keys=[0, 40, 100])

    planned = await plan_split(cluster.registry(), _candidate(0, 100), MAX_CHUNK)

    assert planned.split_points == [{"customer_id": 40}]


@pytest.mark.asyncio
async def test_split_vector_failure_is_a_planning_error(cluster) -> None:
    cluster.add_chunk(0, 100, size=100 * MIB, split_keys=[50])
    shards = cluster.registry()
    shards.get("shard0").fail_split_vector = True

    with pytest.raises(PlanningError) as exc_info:
        await plan_split(shards, _candidate(0, 100), MAX_CHUNK)

    assert exc_info.value.request["splitVector"] == NAMESPACE
    assert exc_info.value.response["errmsg"] == "splitVector failed"
