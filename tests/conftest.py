"""Fixtures — fake fetcher, mock Redis."""

import asyncio

import pytest_asyncio
from fakeredis.aioredis import FakeRedis

from noon.cache.redis import RedisCache
from noon.crawl.models import FetchError


class FakeFetcher:
    """In-memory fetch collaborator: url -> body, or url -> exception."""

    def __init__(self, pages: dict[str, str | Exception] | None = None, delay: float = 0) -> None:
        self.pages = dict(pages or {})
        self.delay = delay
        self.calls: list[str] = []

    async def fetch_text(self, url: str) -> str:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        body = self.pages.get(url)
        if body is None:
            raise FetchError(url, "status 404", status_code=404)
        if isinstance(body, Exception):
            raise body
        return body


def urlset(*locs: str) -> str:
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


def sitemapindex(*locs: str) -> str:
    entries = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'


def page(body: str) -> str:
    return f"<html><head><title>t</title><script>var level = 1;</script></head><body>{body}</body></html>"


@pytest_asyncio.fixture
async def redis_cache():
    """RedisCache backed by an in-memory FakeRedis instance."""
    client = FakeRedis(decode_responses=True)
    cache = RedisCache(client, default_ttl=3600)
    yield cache
    await client.aclose()
