"""Data models for the palindrome scanner."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

DEFAULT_MIN_LENGTH = 5
DEFAULT_MAX_LENGTH = 30
LENGTH_FLOOR = 3
LENGTH_CEILING = 30

# Folding rules applied to lowercased letters before comparison.
# ALEF WITH MADDA ABOVE compares equal to a bare ALEF.
DEFAULT_FOLDS: tuple[tuple[str, str], ...] = (("آ", "ا"),)


def clamp_range(min_length: int | None, max_length: int | None) -> tuple[int, int]:
    """Clamp a length range into [3, 30], swapping the ends if inverted.

    Missing or non-finite values fall back to the defaults (5, 30).
    """
    min_val = _finite_or(min_length, DEFAULT_MIN_LENGTH)
    max_val = _finite_or(max_length, DEFAULT_MAX_LENGTH)
    min_val = min(max(min_val, LENGTH_FLOOR), LENGTH_CEILING)
    max_val = min(max(max_val, LENGTH_FLOOR), LENGTH_CEILING)
    if min_val > max_val:
        min_val, max_val = max_val, min_val
    return min_val, max_val


def _finite_or(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    return int(value)


@dataclass(frozen=True)
class ScanConfig:
    """Length bounds and folding rules for a detection pass.

    The bounds are normalized on construction, so every instance satisfies
    ``3 <= min_length <= max_length <= 30``.
    """

    min_length: int = DEFAULT_MIN_LENGTH
    max_length: int = DEFAULT_MAX_LENGTH
    folds: tuple[tuple[str, str], ...] = DEFAULT_FOLDS

    def __post_init__(self) -> None:
        min_val, max_val = clamp_range(self.min_length, self.max_length)
        object.__setattr__(self, "min_length", min_val)
        object.__setattr__(self, "max_length", max_val)

    @classmethod
    def from_bounds(
        cls,
        min_length: int | None,
        max_length: int | None,
        default: ScanConfig | None = None,
    ) -> ScanConfig:
        """Build a config, taking missing bounds from *default*."""
        base = default or cls()
        return cls(
            min_length=base.min_length if min_length is None else min_length,
            max_length=base.max_length if max_length is None else max_length,
            folds=base.folds,
        )


@dataclass(frozen=True)
class Match:
    """A palindrome span in original-text offsets (inclusive on both ends).

    ``length`` counts the letters that were compared; ``span_length`` also
    counts the whitespace between words of a multi-word match.
    """

    start: int
    end: int
    length: int

    @property
    def span_length(self) -> int:
        return self.end - self.start + 1

    def contains(self, other: Match) -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True)
class TextSegment:
    """One atomic piece of text; ``handle`` is opaque to the scanner."""

    handle: Any
    text: str


@dataclass
class TextUnit:
    """An ordered run of segments scanned as one contiguous text."""

    segments: list[TextSegment] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(s.text for s in self.segments)

    @property
    def lengths(self) -> list[int]:
        return [len(s.text) for s in self.segments]


@dataclass(frozen=True)
class SegmentPosition:
    segment: int
    offset: int


@dataclass(frozen=True)
class ResolvedMatch:
    """A match within a TextUnit, with its ends mapped onto segments.

    ``end_position`` is exclusive: it points one character past the match.
    """

    match: Match
    text: str
    start_position: SegmentPosition
    end_position: SegmentPosition
