import asyncio

import pytest

from chunk_splitter.utils.aio import gather_bounded


@pytest.mark.asyncio
async def test_results_keep_input_order() -> None:
    async def slow_square(n: int) -> int:
        await asyncio.sleep(0.001 * (5 - n))
        return n * n

    assert await gather_bounded(range(5), slow_square, 2) == [0, 1, 4, 9, 16]


@pytest.mark.asyncio
async def test_at_most_limit_in_flight() -> None:
    in_flight = 0
    peak = 0

    async def track(_: int) -> None:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.001)
        in_flight -= 1

    await gather_bounded(range(10), track, 3)

    assert peak == 3


@pytest.mark.asyncio
async def test_first_failure_cancels_the_rest() -> None:
    started: list[int] = []
    finished: list[int] = []

    async def work(n: int) -> int:
        started.append(n)
        if n == 0:
            raise RuntimeError("boom")
        await asyncio.sleep(0.05)
        finished.append(n)
        return n

    with pytest.raises(RuntimeError, match="boom"):
        await gather_bounded(range(6), work, 2)
    await asyncio.sleep(0.1)

    assert finished == []
    assert 5 not in started
