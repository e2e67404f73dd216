"""Sitemap parsing and resolution tests."""

import pytest
from conftest import FakeFetcher, sitemapindex, urlset

from noon.crawl.models import CrawlState, FetchError, ScanAborted
from noon.crawl.sitemap import parse_sitemap, resolve_sitemap

ROOT = "https://example.com/sitemap.xml"


# --- Parsing (sync) ---


def test_parse_leaf_sitemap_trims_and_drops_empty():
    xml = urlset("  https://example.com/a  ", "", "https://example.com/b")
    assert parse_sitemap(xml) == (["https://example.com/a", "https://example.com/b"], [])


def test_parse_index_sitemap():
    xml = sitemapindex("https://example.com/s1.xml", "https://example.com/s2.xml")
    assert parse_sitemap(xml) == ([], ["https://example.com/s1.xml", "https://example.com/s2.xml"])


def test_parse_without_namespace():
    xml = "<urlset><url><loc>https://example.com/x</loc></url></urlset>"
    assert parse_sitemap(xml) == (["https://example.com/x"], [])


def test_parse_url_entries_win_over_sitemap_entries():
    xml = (
        "<root><sitemap><loc>https://example.com/s.xml</loc></sitemap>"
        "<url><loc>https://example.com/page</loc></url></root>"
    )
    assert parse_sitemap(xml) == (["https://example.com/page"], [])


def test_parse_unrecognised_shape():
    assert parse_sitemap("<rss><channel><link>https://x</link></channel></rss>") == ([], [])


def test_parse_malformed_xml():
    assert parse_sitemap("<html><body>not a sitemap") == ([], [])
    assert parse_sitemap("") == ([], [])


# --- Resolution (async) ---


@pytest.mark.asyncio
async def test_resolve_leaf():
    fetcher = FakeFetcher({ROOT: urlset("https://example.com/a", "https://example.com/b")})
    state = CrawlState()
    urls = await resolve_sitemap(ROOT, fetcher, state)
    assert urls == ["https://example.com/a", "https://example.com/b"]
    assert state.visited == {ROOT}


@pytest.mark.asyncio
async def test_resolve_nested_index_concatenates_in_order():
    fetcher = FakeFetcher({
        ROOT: sitemapindex("https://example.com/s1.xml", "https://example.com/s2.xml"),
        "https://example.com/s1.xml": urlset("https://example.com/1a", "https://example.com/1b"),
        "https://example.com/s2.xml": sitemapindex("https://example.com/s3.xml"),
        "https://example.com/s3.xml": urlset("https://example.com/3a"),
    })
    urls = await resolve_sitemap(ROOT, fetcher, CrawlState())
    assert urls == ["https://example.com/1a", "https://example.com/1b", "https://example.com/3a"]


@pytest.mark.asyncio
async def test_resolve_self_reference_terminates():
    fetcher = FakeFetcher({
        ROOT: sitemapindex(ROOT, "https://example.com/s1.xml"),
        "https://example.com/s1.xml": urlset("https://example.com/page"),
    })
    urls = await resolve_sitemap(ROOT, fetcher, CrawlState())
    assert urls == ["https://example.com/page"]
    assert fetcher.calls.count(ROOT) == 1


@pytest.mark.asyncio
async def test_resolve_transitive_cycle_terminates():
    a, b, c = (f"https://example.com/{n}.xml" for n in "abc")
    fetcher = FakeFetcher({
        a: sitemapindex(b),
        b: sitemapindex(c, a),
        c: sitemapindex(a, b),
    })
    state = CrawlState()
    assert await resolve_sitemap(a, fetcher, state) == []
    assert sorted(fetcher.calls) == sorted([a, b, c])
    assert state.visited == {a, b, c}


@pytest.mark.asyncio
async def test_resolve_deduplicates_pages():
    fetcher = FakeFetcher({
        ROOT: sitemapindex("https://example.com/s1.xml", "https://example.com/s2.xml"),
        "https://example.com/s1.xml": urlset("https://example.com/a", "https://example.com/b"),
        "https://example.com/s2.xml": urlset("https://example.com/b", "https://example.com/c"),
    })
    urls = await resolve_sitemap(ROOT, fetcher, CrawlState())
    assert urls == ["https://example.com/a", "https://example.com/b", "https://example.com/c"]


@pytest.mark.asyncio
async def test_resolve_already_visited_returns_empty():
    fetcher = FakeFetcher({ROOT: urlset("https://example.com/a")})
    state = CrawlState(visited={ROOT})
    assert await resolve_sitemap(ROOT, fetcher, state) == []
    assert fetcher.calls == []


@pytest.mark.asyncio
async def test_resolve_root_fetch_failure_propagates():
    fetcher = FakeFetcher({})
    with pytest.raises(FetchError):
        await resolve_sitemap(ROOT, fetcher, CrawlState())


@pytest.mark.asyncio
async def test_resolve_child_fetch_failure_is_skipped():
    fetcher = FakeFetcher({
        ROOT: sitemapindex("https://example.com/missing.xml", "https://example.com/ok.xml"),
        "https://example.com/ok.xml": urlset("https://example.com/page"),
    })
    assert await resolve_sitemap(ROOT, fetcher, CrawlState()) == ["https://example.com/page"]


@pytest.mark.asyncio
async def test_resolve_cancelled_before_fetch():
    fetcher = FakeFetcher({ROOT: urlset("https://example.com/a")})
    state = CrawlState()
    state.cancel.set()
    with pytest.raises(ScanAborted):
        await resolve_sitemap(ROOT, fetcher, state)
    assert fetcher.calls == []


@pytest.mark.asyncio
async def test_resolve_cancelled_between_children():
    state = CrawlState()

    class CancellingFetcher(FakeFetcher):
        async def fetch_text(self, url: str) -> str:
            body = await super().fetch_text(url)
            if url.endswith("s1.xml"):
                state.cancel.set()
            return body

    fetcher = CancellingFetcher({
        ROOT: sitemapindex("https://example.com/s1.xml", "https://example.com/s2.xml"),
        "https://example.com/s1.xml": urlset("https://example.com/a"),
        "https://example.com/s2.xml": urlset("https://example.com/b"),
    })
    with pytest.raises(ScanAborted):
        await resolve_sitemap(ROOT, fetcher, state)
    assert "https://example.com/s2.xml" not in fetcher.calls
