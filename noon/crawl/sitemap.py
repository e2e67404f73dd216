"""Recursive, cycle-safe expansion of leaf and index sitemaps."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from .fetch import TextFetcher
from .models import CrawlState, FetchError

logger = logging.getLogger(__name__)


def _locations(root: ET.Element, entry: str) -> list[str]:
    """Trimmed, non-empty ``<entry><loc>`` values in any (or no) namespace."""
    values: list[str] = []
    for el in root.iter():
        if not isinstance(el.tag, str) or el.tag.rsplit("}", 1)[-1] != entry:
            continue
        for loc in el.findall("{*}loc"):
            value = (loc.text or "").strip()
            if value:
                values.append(value)
    return values


def parse_sitemap(xml_text: str) -> tuple[list[str], list[str]]:
    """Return ``(page_urls, child_sitemaps)`` declared by *xml_text*.

    A document with any ``url > loc`` entry is a leaf sitemap and its child
    sitemaps are ignored. Unparseable documents yield nothing.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError:
        logger.debug("sitemap not parseable", extra={"length": len(xml_text)})
        return [], []

    pages = _locations(root, "url")
    if pages:
        return pages, []
    return [], _locations(root, "sitemap")


async def resolve_sitemap(
    url: str,
    fetcher: TextFetcher,
    state: CrawlState,
    *,
    _root: bool = True,
) -> list[str]:
    """Expand *url* into the page URLs it lists, following index sitemaps.

    URLs already in ``state.visited`` resolve to nothing, so cyclic
    references terminate. Cancellation is checked before every fetch and
    every recursive step and raises ScanAborted. A failure to fetch the root
    sitemap propagates; a failing child sitemap is skipped.
    """
    state.check()
    if url in state.visited:
        logger.debug("sitemap already visited", extra={"url": url})
        return []
    state.visited.add(url)

    try:
        xml_text = await fetcher.fetch_text(url)
    except FetchError:
        if _root:
            raise
        logger.warning("child sitemap fetch failed, skipping", extra={"url": url}, exc_info=True)
        return []
    state.check()

    pages, children = parse_sitemap(xml_text)
    if pages:
        logger.debug("leaf sitemap", extra={"url": url, "url_count": len(pages)})
        collected = pages
    else:
        logger.debug("index sitemap", extra={"url": url, "child_count": len(children)})
        collected = []
        for child in children:
            state.check()
            collected.extend(await resolve_sitemap(child, fetcher, state, _root=False))

    if _root:
        # Same page listed by several sitemaps is crawled once.
        return list(dict.fromkeys(collected))
    return collected
