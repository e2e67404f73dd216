"""Cooperative, cancellable scanning of many text units."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Protocol, Sequence

from .models import ResolvedMatch, TextUnit

logger = logging.getLogger(__name__)

DetectFn = Callable[[TextUnit], Sequence[ResolvedMatch]]
CompleteCallback = Callable[[int], None]
UnitCallback = Callable[[int, TextUnit, Sequence[ResolvedMatch]], None]


class Deadline(Protocol):
    """Tells the scheduler how much of the current time slice is left."""

    def time_remaining(self) -> float: ...

    def renew(self) -> None: ...


class TimeSlice:
    """A fixed-length slice of wall time, renewed after each yield."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._seconds = seconds
        self._clock = clock
        self._started = clock()

    def time_remaining(self) -> float:
        return self._seconds - (self._clock() - self._started)

    def renew(self) -> None:
        self._started = self._clock()


class ScanGeneration:
    """Monotonic counter identifying the current scan.

    A scan holds the token it was started with; once the counter moves on,
    the scan is stale and must stop.
    """

    def __init__(self) -> None:
        self._value = 0

    @property
    def current(self) -> int:
        return self._value

    def advance(self) -> int:
        self._value += 1
        return self._value

    def is_current(self, token: int) -> bool:
        return token == self._value


class ScanScheduler:
    """Runs a detection function over units without hogging the event loop.

    Units are processed in order. Between units the scheduler yields to the
    loop whenever less than ``min_remaining`` seconds of the slice are left.
    Starting a new scan invalidates any scan in progress.
    """

    def __init__(
        self,
        detect: DetectFn,
        *,
        generation: ScanGeneration | None = None,
        slice_seconds: float = 0.008,
        min_remaining: float = 0.002,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._detect = detect
        self._generation = generation or ScanGeneration()
        self._slice_seconds = slice_seconds
        self._min_remaining = min_remaining
        self._clock = clock

    @property
    def generation(self) -> ScanGeneration:
        return self._generation

    def cancel(self) -> None:
        """Abandon whatever scan is in flight."""
        self._generation.advance()

    def start(
        self,
        units: Sequence[TextUnit],
        on_complete: CompleteCallback,
        on_unit: UnitCallback | None = None,
    ) -> asyncio.Task[int | None] | None:
        """Begin a new scan, cancelling the previous one.

        With no units, ``on_complete(0)`` fires before this returns and no
        task is created.
        """
        token = self._generation.advance()
        if not units:
            on_complete(0)
            return None
        deadline = TimeSlice(self._slice_seconds, self._clock)
        return asyncio.get_running_loop().create_task(
            self._run(token, list(units), deadline, on_complete, on_unit)
        )

    async def _run(
        self,
        token: int,
        units: list[TextUnit],
        deadline: Deadline,
        on_complete: CompleteCallback,
        on_unit: UnitCallback | None,
    ) -> int | None:
        # First chunk runs on a later loop iteration, like any continuation.
        await asyncio.sleep(0)
        deadline.renew()

        total = 0
        for index, unit in enumerate(units):
            if not self._generation.is_current(token):
                logger.debug("stale scan abandoned", extra={"token": token, "unit": index})
                return None

            try:
                found = self._detect(unit)
            except Exception:
                logger.warning("unit detection failed, skipping", extra={"unit": index}, exc_info=True)
                continue

            total += len(found)
            if on_unit is not None:
                on_unit(index, unit, found)

            if index + 1 < len(units) and deadline.time_remaining() < self._min_remaining:
                await asyncio.sleep(0)
                deadline.renew()

        if not self._generation.is_current(token):
            return None

        logger.debug("scan completed", extra={"token": token, "units": len(units), "matches": total})
        on_complete(total)
        return total
