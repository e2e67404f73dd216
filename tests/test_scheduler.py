"""Scan scheduler tests."""

import asyncio

import pytest

from noon.scan.detector import detect_in_unit
from noon.scan.models import ScanConfig, TextSegment, TextUnit
from noon.scan.scheduler import ScanGeneration, ScanScheduler, TimeSlice

CONFIG = ScanConfig(min_length=3, max_length=30)


def _unit(text: str) -> TextUnit:
    return TextUnit(segments=[TextSegment(handle=0, text=text)])


def _detect(unit: TextUnit):
    return detect_in_unit(unit, CONFIG)


@pytest.mark.asyncio
async def test_zero_units_completes_synchronously():
    counts: list[int] = []
    task = ScanScheduler(_detect).start([], counts.append)
    assert task is None
    assert counts == [0]


@pytest.mark.asyncio
async def test_counts_matches_across_units():
    counts: list[int] = []
    seen: list[int] = []
    units = [_unit("level"), _unit("no match here"), _unit("noon sees a racecar")]

    task = ScanScheduler(_detect).start(
        units, counts.append, on_unit=lambda i, unit, found: seen.append(i)
    )
    assert await task == 4
    assert counts == [4]
    assert seen == [0, 1, 2]


@pytest.mark.asyncio
async def test_failing_unit_is_skipped():
    counts: list[int] = []

    def flaky(unit: TextUnit):
        if unit.text == "boom":
            raise RuntimeError("detector blew up")
        return _detect(unit)

    task = ScanScheduler(flaky).start([_unit("level"), _unit("boom"), _unit("kayak")], counts.append)
    assert await task == 2
    assert counts == [2]


@pytest.mark.asyncio
async def test_new_scan_abandons_previous():
    first: list[int] = []
    second: list[int] = []
    scheduler = ScanScheduler(_detect)

    stale = scheduler.start([_unit("level")] * 5, first.append)
    fresh = scheduler.start([_unit("kayak")], second.append)

    assert await stale is None
    assert await fresh == 1
    assert first == []
    assert second == [1]


@pytest.mark.asyncio
async def test_cancel_abandons_scan():
    counts: list[int] = []
    scheduler = ScanScheduler(_detect)
    task = scheduler.start([_unit("level")], counts.append)
    scheduler.cancel()
    assert await task is None
    assert counts == []


@pytest.mark.asyncio
async def test_shared_generation_token():
    generation = ScanGeneration()
    scheduler = ScanScheduler(_detect, generation=generation)
    counts: list[int] = []
    task = scheduler.start([_unit("level")], counts.append)
    assert generation.current == 1
    generation.advance()
    assert await task is None
    assert not generation.is_current(1)


@pytest.mark.asyncio
async def test_yields_between_units_when_slice_used():
    order: list[str] = []

    async def host():
        for _ in range(3):
            order.append("host")
            await asyncio.sleep(0)

    scheduler = ScanScheduler(_detect, slice_seconds=0.0)
    task = scheduler.start(
        [_unit("level"), _unit("kayak"), _unit("refer")],
        lambda count: None,
        on_unit=lambda i, unit, found: order.append(f"unit{i}"),
    )
    await asyncio.gather(task, host())

    first, last = order.index("unit0"), order.index("unit2")
    assert "host" in order[first:last]


@pytest.mark.asyncio
async def test_runs_units_back_to_back_within_slice():
    order: list[str] = []

    async def host():
        for _ in range(3):
            order.append("host")
            await asyncio.sleep(0)

    scheduler = ScanScheduler(_detect, slice_seconds=60.0)
    task = scheduler.start(
        [_unit("level"), _unit("kayak"), _unit("refer")],
        lambda count: None,
        on_unit=lambda i, unit, found: order.append(f"unit{i}"),
    )
    await asyncio.gather(task, host())

    first = order.index("unit0")
    assert order[first : first + 3] == ["unit0", "unit1", "unit2"]


def test_time_slice_with_fake_clock():
    now = [100.0]
    deadline = TimeSlice(0.5, clock=lambda: now[0])
    assert deadline.time_remaining() == pytest.approx(0.5)
    now[0] = 100.4
    assert deadline.time_remaining() == pytest.approx(0.1)
    deadline.renew()
    assert deadline.time_remaining() == pytest.approx(0.5)
