"""Flat offset -> (segment, offset) translation for multi-segment text."""

from __future__ import annotations

from bisect import bisect_right
from typing import Iterable

from .models import SegmentPosition


class RunPositionResolver:
    """Maps offsets in a concatenated text back onto its segments."""

    def __init__(self, lengths: Iterable[int]) -> None:
        self._starts: list[int] = []
        total = 0
        for length in lengths:
            self._starts.append(total)
            total += length
        self._total = total

    @property
    def total(self) -> int:
        return self._total

    def resolve(self, offset: int) -> SegmentPosition:
        """Return the segment owning *offset* and the offset inside it."""
        if offset < 0 or offset >= self._total:
            raise IndexError(f"offset {offset} outside text of length {self._total}")
        # Greatest start <= offset; empty segments share a start with their
        # successor, so bisect_right skips them.
        index = bisect_right(self._starts, offset) - 1
        return SegmentPosition(segment=index, offset=offset - self._starts[index])

    def resolve_end(self, end: int) -> SegmentPosition:
        """Resolve an inclusive end offset to an exclusive segment boundary."""
        position = self.resolve(end)
        return SegmentPosition(segment=position.segment, offset=position.offset + 1)
