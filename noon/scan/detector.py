"""Expand-around-center palindrome detection over the cleaned stream."""

from __future__ import annotations

import logging

from .cleaner import CleanedStream, clean_text, has_digit, has_foreign_symbol, is_space
from .models import Match, ResolvedMatch, ScanConfig, TextUnit
from .runs import RunPositionResolver

logger = logging.getLogger(__name__)


def count_words(text: str) -> int:
    """Number of whitespace-separated tokens in *text*."""
    return len(text.split())


def match_text(text: str, match: Match) -> str:
    return text[match.start : match.end + 1]


def _expand(stream: CleanedStream, lo: int, hi: int, limit: int) -> tuple[int, int]:
    """Grow (lo, hi) while the ends agree; return the last agreeing pair.

    Growth stops as soon as the pair spans more than *limit* letters and that
    pair is returned instead. It fails the length bound just as the full
    expansion would, without walking a long run to its end.
    """
    chars = stream.chars
    n = len(chars)
    while lo >= 0 and hi < n and chars[lo] == chars[hi]:
        if hi - lo + 1 > limit:
            return lo, hi
        lo -= 1
        hi += 1
    return lo + 1, hi - 1


def _accept(text: str, stream: CleanedStream, lo: int, hi: int, config: ScanConfig) -> Match | None:
    length = hi - lo + 1
    if length < config.min_length or length > config.max_length:
        return None

    start = stream.offsets[lo]
    end = stream.offsets[hi]
    # Cleaning dropped digits and symbols, so check the original span.
    original = text[start : end + 1]
    if has_digit(original) or has_foreign_symbol(original):
        return None
    if start > 0 and not is_space(text[start - 1]):
        return None
    if end < len(text) - 1 and not is_space(text[end + 1]):
        return None
    return Match(start=start, end=end, length=length)


def _maximal(candidates: list[Match]) -> list[Match]:
    """Drop every candidate whose span sits inside a longer kept one."""
    kept: list[Match] = []
    for candidate in sorted(candidates, key=lambda m: m.length, reverse=True):
        if any(k.contains(candidate) for k in kept):
            continue
        kept.append(candidate)
    return kept


def find_palindromes(text: str, config: ScanConfig | None = None) -> list[Match]:
    """Find maximal whitespace-delimited palindromes in *text*.

    Every odd and even center of the cleaned stream is expanded as far as it
    goes and only that widest span is tested against the length bounds and
    the character/boundary rules. Survivors are reduced to spans not
    contained in any other survivor, longest first; ties keep center order.
    Callers wanting left-to-right order should sort by ``start``.
    """
    config = config or ScanConfig()
    if not text:
        return []

    stream = clean_text(text, config.folds)
    if len(stream) < config.min_length:
        return []

    limit = config.max_length
    candidates: list[Match] = []
    for i in range(len(stream)):
        for lo, hi in (_expand(stream, i, i, limit), _expand(stream, i, i + 1, limit)):
            if hi < lo:
                continue
            match = _accept(text, stream, lo, hi, config)
            if match is not None:
                candidates.append(match)

    return _maximal(candidates)


def detect_in_unit(unit: TextUnit, config: ScanConfig | None = None) -> list[ResolvedMatch]:
    """Run detection over a TextUnit and map each match onto its segments."""
    text = unit.text
    matches = find_palindromes(text, config)
    if not matches:
        return []

    resolver = RunPositionResolver(unit.lengths)
    resolved = [
        ResolvedMatch(
            match=m,
            text=match_text(text, m),
            start_position=resolver.resolve(m.start),
            end_position=resolver.resolve_end(m.end),
        )
        for m in sorted(matches, key=lambda m: m.start)
    ]
    logger.debug("unit scanned", extra={"segments": len(unit.segments), "matches": len(resolved)})
    return resolved
