"""Bounded-concurrency async map with progress and cancellation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from .models import ScanAborted

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Worker = Callable[[T, int], Awaitable[R]]
ProgressCallback = Callable[[int, int], Awaitable[None]]


async def map_with_concurrency(
    items: Sequence[T],
    limit: int,
    worker: Worker,
    on_progress: ProgressCallback | None = None,
    cancel: asyncio.Event | None = None,
) -> list[R | None]:
    """Run ``worker(item, index)`` over *items*, at most *limit* at a time.

    Results line up with *items*; a worker that raises yields ``None`` at its
    position. ``on_progress(done, total)`` is awaited after each completion.
    Once *cancel* is set no further items are dispatched, calls in flight are
    left to finish with their results dropped, and ScanAborted is raised.
    """
    if limit < 1:
        raise ValueError(f"concurrency limit must be >= 1, got {limit}")

    total = len(items)
    results: list[R | None] = [None] * total
    cancel = cancel or asyncio.Event()
    if cancel.is_set():
        raise ScanAborted()
    if total == 0:
        return results

    in_flight: dict[asyncio.Task[Any], int] = {}
    next_index = 0
    done = 0
    cancel_waiter = asyncio.ensure_future(cancel.wait())

    try:
        while done < total:
            while len(in_flight) < limit and next_index < total and not cancel.is_set():
                task = asyncio.ensure_future(worker(items[next_index], next_index))
                in_flight[task] = next_index
                next_index += 1

            if cancel.is_set():
                break

            finished, _ = await asyncio.wait(
                [*in_flight, cancel_waiter],
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in finished:
                if task is cancel_waiter:
                    continue
                index = in_flight.pop(task)
                exc = task.exception()
                if exc is None:
                    results[index] = task.result()
                else:
                    logger.debug(
                        "worker failed",
                        extra={"index": index, "error": f"{type(exc).__name__}: {exc}"},
                    )
                done += 1
                if on_progress is not None and not cancel.is_set():
                    await on_progress(done, total)
    except asyncio.CancelledError:
        for task in in_flight:
            task.cancel()
        raise
    finally:
        cancel_waiter.cancel()

    if cancel.is_set():
        if in_flight:
            logger.debug("draining in-flight work after cancel", extra={"in_flight": len(in_flight)})
            await asyncio.gather(*in_flight, return_exceptions=True)
        raise ScanAborted()

    return results
