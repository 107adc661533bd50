import pytest

from chunk_splitter.config.splitting.models import EstimationMode
from chunk_splitter.services.splitting.errors import ConfigurationError, NamespaceNotFoundError
from chunk_splitter.services.splitting.models import RunStage
from chunk_splitter.services.splitting.selector import (
    compute_sample_size,
    discover_chunks,
    select_candidates,
)
from tests.helpers.fake_cluster import MIB, NAMESPACE

THRESHOLD = 90 * MIB


@pytest.mark.parametrize(
    "total, fraction, expected",
    [
        (10, 1.0, 10),
        (10, 0.25, 3),  # 2.5 rounds half up
        (10, 0.24, 2),
        (10, 0.01, 1),  # never below one chunk
        (1, 0.5, 1),
        (3, 0.999, 3),
    ],
)
def test_compute_sample_size(total: int, fraction: float, expected: int) -> None:
    assert compute_sample_size(total, fraction) == expected


@pytest.mark.asyncio
async def test_full_fraction_visits_every_chunk_once(cluster) -> None:
    cluster.add_uniform_chunks(25)

    discovery = await discover_chunks(cluster.catalog(), NAMESPACE, 1.0)

    assert discovery.total_chunks == 25
    assert cluster.sample_calls == []
    mins = [c.range_min["customer_id"] for c in discovery.sampled]
    assert sorted(mins) == [i * 100 for i in range(25)]
    assert len(set(mins)) == len(mins)
    assert all(c.shard_key_pattern == {"customer_id": 1} for c in discovery.sampled)


@pytest.mark.asyncio
async def test_partial_fraction_samples_and_drops_repeats(cluster) -> None:
    cluster.add_uniform_chunks(20)

    discovery = await discover_chunks(cluster.catalog(), NAMESPACE, 0.2)

    assert cluster.sample_calls == [4]
    mins = [c.range_min["customer_id"] for c in discovery.sampled]
    assert len(mins) == 4
    assert len(set(mins)) == 4


@pytest.mark.asyncio
async def test_unknown_namespace(cluster) -> None:
    cluster.add_uniform_chunks(2)

    with pytest.raises(NamespaceNotFoundError):
        await discover_chunks(cluster.catalog(), "shop.missing", 1.0)


@pytest.mark.asyncio
async def test_dropped_collection_is_not_found(cluster) -> None:
    cluster.add_uniform_chunks(2)
    cluster.collection["dropped"] = True

    with pytest.raises(NamespaceNotFoundError):
        await discover_chunks(cluster.catalog(), NAMESPACE, 1.0)


@pytest.mark.asyncio
async def test_zero_chunks_is_a_configuration_error(cluster) -> None:
    with pytest.raises(ConfigurationError, match="No chunks"):
        await discover_chunks(cluster.catalog(), NAMESPACE, 1.0)


@pytest.mark.asyncio
async def test_only_chunks_strictly_above_threshold_are_candidates(cluster) -> None:
    cluster.add_chunk(0, 100, size=THRESHOLD)
    cluster.add_chunk(100, 200, size=THRESHOLD + 1)
    cluster.add_chunk(200, 300, size=MIB)
    discovery = await discover_chunks(cluster.catalog(), NAMESPACE, 1.0)

    candidates, failures = await select_candidates(
        cluster.registry(), discovery.sampled, EstimationMode.EXACT, THRESHOLD
    )

    assert failures == []
    assert [c.chunk.range_min for c in candidates] == [{"customer_id": 100}]
    assert candidates[0].estimated_size_bytes == THRESHOLD + 1
    assert candidates[0].splittable is False


@pytest.mark.asyncio
async def test_verification_drops_false_positive_estimate(cluster) -> None:
    cluster.add_chunk(0, 100, size=80 * MIB, estimated_size=95 * MIB)
    cluster.add_chunk(100, 200, size=120 * MIB, estimated_size=95 * MIB)
    discovery = await discover_chunks(cluster.catalog(), NAMESPACE, 1.0)
    shards = cluster.registry()

    estimated, _ = await select_candidates(shards, discovery.sampled, EstimationMode.ESTIMATE_ONLY, THRESHOLD)
    verified, _ = await select_candidates(
        shards, discovery.sampled, EstimationMode.ESTIMATE_THEN_VERIFY, THRESHOLD
    )

    assert [c.chunk.range_min["customer_id"] for c in estimated] == [0, 100]
    assert [c.chunk.range_min["customer_id"] for c in verified] == [100]
    assert verified[0].estimated_size_bytes == 120 * MIB
    assert verified[0].size_is_exact is True


@pytest.mark.asyncio
async def test_verification_never_drops_what_estimation_keeps_when_exact_agrees(cluster) -> None:
    for i, (exact, estimate) in enumerate([(100, 95), (50, 20), (91, 150), (10, 10)]):
        cluster.add_chunk(i * 100, (i + 1) * 100, size=exact * MIB, estimated_size=estimate * MIB)
    discovery = await discover_chunks(cluster.catalog(), NAMESPACE, 1.0)
    shards = cluster.registry()

    estimated, _ = await select_candidates(shards, discovery.sampled, EstimationMode.ESTIMATE_ONLY, THRESHOLD)
    verified, _ = await select_candidates(
        shards, discovery.sampled, EstimationMode.ESTIMATE_THEN_VERIFY, THRESHOLD
    )

    verified_ids = {c.chunk.range_min["customer_id"] for c in verified}
    assert verified_ids <= {c.chunk.range_min["customer_id"] for c in estimated}
    assert verified_ids == {0, 200}


@pytest.mark.asyncio
async def test_estimation_failure_is_recorded_not_raised(cluster) -> None:
    cluster.add_chunk(0, 100, size=200 * MIB)
    cluster.add_chunk(100, 200, shard="shard1", size=200 * MIB)
    discovery = await discover_chunks(cluster.catalog(), NAMESPACE, 1.0)
    shards = cluster.registry("shard0", "shard1")
    shards.get("shard1").datasize_override = {"ok": 1}

    candidates, failures = await select_candidates(shards, discovery.sampled, EstimationMode.EXACT, THRESHOLD)

    assert [c.chunk.owner_node for c in candidates] == ["shard0"]
    assert len(failures) == 1
    assert failures[0].stage == RunStage.ESTIMATE
    assert failures[0].error_code == "ESTIMATION_FAILED"
    assert failures[0].chunk["shard"] == "shard1"
