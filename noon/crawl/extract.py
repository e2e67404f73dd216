"""HTML -> TextUnit extraction for crawled pages."""

from __future__ import annotations

from bs4 import BeautifulSoup
from bs4.element import CData, Comment, Declaration, Doctype, NavigableString, ProcessingInstruction

from noon.scan.models import TextSegment, TextUnit

# Text directly inside these elements is never scanned.
SKIP_TAGS = frozenset({
    "script", "style", "noscript", "iframe", "object", "embed",
    "svg", "canvas", "template", "textarea", "input", "select",
})

_NON_TEXT = (Comment, Declaration, Doctype, ProcessingInstruction, CData)


def html_to_unit(html: str) -> TextUnit | None:
    """Collect the visible text nodes of a page's body, in document order.

    Each text node becomes one segment, handle = its position among the
    accepted nodes. Nodes are concatenated without separators. Returns
    ``None`` when the page holds no text at all.
    """
    soup = BeautifulSoup(html, "html.parser")
    root = soup.body or soup

    segments: list[TextSegment] = []
    for node in root.find_all(string=True):
        if not isinstance(node, NavigableString) or isinstance(node, _NON_TEXT):
            continue
        if not node.strip():
            continue
        parent = node.parent
        if parent is not None and parent.name in SKIP_TAGS:
            continue
        segments.append(TextSegment(handle=len(segments), text=str(node)))

    if not segments:
        return None
    return TextUnit(segments=segments)
