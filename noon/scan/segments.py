"""Plain-text segment provider: paragraphs become units, lines become segments."""

from __future__ import annotations

from .models import TextSegment, TextUnit


def units_from_text(text: str) -> list[TextUnit]:
    """Split *text* into paragraph units.

    Paragraphs are separated by blank lines. Each line of a paragraph is one
    segment (line ending kept) whose handle is its absolute offset in *text*.
    """
    units: list[TextUnit] = []
    current: list[TextSegment] = []
    offset = 0
    for line in text.splitlines(keepends=True):
        if line.strip():
            current.append(TextSegment(handle=offset, text=line))
        elif current:
            units.append(TextUnit(segments=current))
            current = []
        offset += len(line)
    if current:
        units.append(TextUnit(segments=current))
    return units


def absolute_offset(unit: TextUnit, segment: int, offset: int) -> int:
    """Translate a segment position of a unit from ``units_from_text`` back to *text*."""
    return unit.segments[segment].handle + offset
