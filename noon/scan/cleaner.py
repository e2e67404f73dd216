"""Text cleaning: a letters-only comparison stream with offsets into the original."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from typing import Iterable

from .models import DEFAULT_FOLDS


@dataclass
class CleanedStream:
    """Comparison characters and, in parallel, their offsets in the original text.

    ``offsets`` is strictly increasing.
    """

    chars: list[str] = field(default_factory=list)
    offsets: list[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.chars)


def is_letter(ch: str) -> bool:
    return ch.isalpha()


def is_space(ch: str) -> bool:
    return ch.isspace()


def is_digit(ch: str) -> bool:
    """True for any Unicode number (Nd, Nl, No)."""
    return unicodedata.category(ch).startswith("N")


def has_digit(text: str) -> bool:
    return any(is_digit(ch) for ch in text)


def has_foreign_symbol(text: str) -> bool:
    """True if *text* holds anything besides letters and whitespace."""
    return any(not ch.isalpha() and not ch.isspace() for ch in text)


def clean_text(
    text: str,
    folds: Iterable[tuple[str, str]] = DEFAULT_FOLDS,
) -> CleanedStream:
    """Keep only letters, lowercased and folded, remembering where each came from.

    Digits, punctuation and whitespace are dropped from the stream entirely;
    they neither match nor break adjacency.
    """
    fold_map = dict(folds)
    stream = CleanedStream()
    for offset, ch in enumerate(text):
        if not is_letter(ch):
            continue
        lowered = ch.lower()
        stream.chars.append(fold_map.get(lowered, lowered))
        stream.offsets.append(offset)
    return stream
