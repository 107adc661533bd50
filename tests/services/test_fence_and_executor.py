import pytest
from bson import ObjectId

from chunk_splitter.services.splitting.errors import FenceError
from chunk_splitter.services.splitting.executor import build_split_chunk_command, execute_split
from chunk_splitter.services.splitting.fence import read_version_fence
from chunk_splitter.services.splitting.models import Candidate, ChunkDescriptor, VersionToken
from tests.helpers.fake_cluster import KEY_PATTERN, MIB, NAMESPACE


def _candidate(lo: int, hi: int, points: list[int]) -> Candidate:
    return Candidate(
        chunk=ChunkDescriptor(
            namespace=NAMESPACE,
            shard_key_pattern=KEY_PATTERN,
            range_min={"customer_id": lo},
            range_max={"customer_id": hi},
            owner_node="shard0",
        ),
        estimated_size_bytes=100 * MIB,
        split_points=[{"customer_id": p} for p in points],
    )


@pytest.mark.asyncio
async def test_fence_reads_current_chunk_version(cluster) -> None:
    doc = cluster.add_chunk(0, 100)

    version = await read_version_fence(cluster.catalog(), cluster.collection, _candidate(0, 100, [50]).chunk)

    assert version == VersionToken(major_version=doc["lastmod"], epoch=cluster.epoch)


@pytest.mark.asyncio
async def test_fence_is_never_cached(cluster) -> None:
    cluster.add_chunk(0, 100)
    chunk = _candidate(0, 100, [50]).chunk
    first = await read_version_fence(cluster.catalog(), cluster.collection, chunk)

    cluster.bump_version(0)
    second = await read_version_fence(cluster.catalog(), cluster.collection, chunk)

    assert second.major_version != first.major_version


@pytest.mark.asyncio
async def test_fence_falls_back_to_collection_epoch(cluster) -> None:
    doc = cluster.add_chunk(0, 100)
    del doc["lastmodEpoch"]

    version = await read_version_fence(cluster.catalog(), cluster.collection, _candidate(0, 100, [50]).chunk)

    assert version.epoch == cluster.epoch


@pytest.mark.asyncio
async def test_fence_fails_when_chunk_bounds_changed(cluster) -> None:
    cluster.add_chunk(0, 100)

    with pytest.raises(FenceError):
        await read_version_fence(cluster.catalog(), cluster.collection, _candidate(0, 90, [50]).chunk)


def test_split_command_carries_identity_points_and_fence() -> None:
    epoch = ObjectId()
    command = build_split_chunk_command(
        _candidate(0, 100, [25, 50]), VersionToken(major_version=7, epoch=epoch), "csrs/cfg:27019"
    )

    assert next(iter(command)) == "splitChunk"
    assert command == {
        "splitChunk": NAMESPACE,
        "from": "shard0",
        "min": {"customer_id": 0},
        "max": {"customer_id": 100},
        "keyPattern": KEY_PATTERN,
        "splitKeys": [{"customer_id": 25}, {"customer_id": 50}],
        "shardVersion": [7, epoch],
        "configdb": "csrs/cfg:27019",
    }


def test_split_command_omits_configdb_when_not_given() -> None:
    command = build_split_chunk_command(_candidate(0, 100, [50]), VersionToken(major_version=1, epoch=ObjectId()))

    assert "configdb" not in command


@pytest.mark.asyncio
async def test_execute_split_applies_split(cluster) -> None:
    cluster.add_chunk(0, 100)
    candidate = _candidate(0, 100, [50])
    version = await read_version_fence(cluster.catalog(), cluster.collection, candidate.chunk)

    outcome = await execute_split(cluster.registry(), candidate, version)

    assert outcome.ok is True
    assert [(c["min"], c["max"]) for c in cluster.chunks] == [
        ({"customer_id": 0}, {"customer_id": 50}),
        ({"customer_id": 50}, {"customer_id": 100}),
    ]


@pytest.mark.asyncio
async def test_stale_fence_is_reported_not_raised(cluster) -> None:
    cluster.add_chunk(0, 100)
    candidate = _candidate(0, 100, [50])
    version = await read_version_fence(cluster.catalog(), cluster.collection, candidate.chunk)
    cluster.bump_version(0)

    outcome = await execute_split(cluster.registry(), candidate, version, "csrs/cfg:27019")

    assert outcome.ok is False
    assert "stale shard version" in outcome.reason
    assert outcome.request["configdb"] == "csrs/cfg:27019"
    assert outcome.response["codeName"] == "StaleConfig"
    assert len(cluster.chunks) == 1
    assert outcome.error_code == "SPLIT_REJECTED"


@pytest.mark.asyncio
async def test_split_to_unregistered_owner_is_not_sent(cluster) -> None:
    cluster.add_chunk(0, 100)
    candidate = _candidate(0, 100, [50])
    version = await read_version_fence(cluster.catalog(), cluster.collection, candidate.chunk)

    outcome = await execute_split(cluster.registry("shard1"), candidate, version)

    assert outcome.ok is False
    assert outcome.error_code == "SHARD_UNKNOWN"
    assert outcome.request["from"] == "shard0"
    assert cluster.commands_named("splitChunk") == []
