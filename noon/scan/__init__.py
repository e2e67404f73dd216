"""Palindrome scanning submodule: cleaning, detection, position mapping, scheduling."""

from __future__ import annotations

from .cleaner import CleanedStream, clean_text
from .detector import count_words, detect_in_unit, find_palindromes, match_text
from .models import (
    Match,
    ResolvedMatch,
    ScanConfig,
    SegmentPosition,
    TextSegment,
    TextUnit,
    clamp_range,
)
from .runs import RunPositionResolver
from .scheduler import ScanGeneration, ScanScheduler
from .segments import units_from_text

__all__ = [
    "CleanedStream",
    "Match",
    "ResolvedMatch",
    "RunPositionResolver",
    "ScanConfig",
    "ScanGeneration",
    "ScanScheduler",
    "SegmentPosition",
    "TextSegment",
    "TextUnit",
    "clamp_range",
    "clean_text",
    "count_words",
    "detect_in_unit",
    "find_palindromes",
    "match_text",
    "units_from_text",
]
