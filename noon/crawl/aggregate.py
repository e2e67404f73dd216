"""Grouping of crawl findings and the export document."""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field

from noon.scan.detector import count_words


class ExportWord(BaseModel):
    url: list[str]
    word: str


class ExportGroup(BaseModel):
    word_count: int
    words: list[ExportWord] = []


class ExportDocument(BaseModel):
    """The downloadable crawl report; field names are consumed by other tools."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    finded_str: int = 0
    groups: list[ExportGroup] = Field(default_factory=list, alias="list")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def derive_title(url: str) -> str:
    """Host of *url*, or ``"sitemap"`` when it has none."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        hostname = None
    return hostname or "sitemap"


class ResultAggregator:
    """Groups palindromes by word count, then by text, collecting source URLs.

    Words and URLs keep first-seen order. ``total`` counts every ingested
    pair, duplicates included.
    """

    def __init__(self) -> None:
        # word_count -> word -> url (dicts as ordered sets)
        self._groups: dict[int, dict[str, dict[str, None]]] = {}
        self.total = 0

    def add(self, word: str, url: str) -> None:
        words = self._groups.setdefault(count_words(word), {})
        words.setdefault(word, {})[url] = None
        self.total += 1

    def add_page(self, url: str, words: Iterable[str]) -> None:
        for word in words:
            self.add(word, url)

    @property
    def distinct_words(self) -> int:
        return sum(len(words) for words in self._groups.values())

    def finalize(self, title: str) -> ExportDocument:
        groups = [
            ExportGroup(
                word_count=word_count,
                words=[ExportWord(url=list(urls), word=word) for word, urls in words.items()],
            )
            for word_count, words in sorted(self._groups.items())
        ]
        return ExportDocument(title=title, finded_str=self.total, groups=groups)
