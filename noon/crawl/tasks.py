"""Background crawl runner and callback logic."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

from noon.api.schemas import CrawlResult
from noon.cache.redis import RedisCache
from noon.config import Settings
from noon.crawl.engine import CrawlEngine
from noon.scan.models import ScanConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for exponential-backoff retry on callback POST."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0


_DEFAULT_RETRY = RetryConfig()

_VALID_SCHEMES = {"http", "https"}

_RETRYABLE = (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout, httpx.WriteTimeout, httpx.PoolTimeout)


def validate_callback_url(url: str, allowed_hosts: str) -> bool:
    """Check that *url*'s host is in the comma-separated allow-list.

    The URL must use http(s), carry no credentials and have a hostname;
    hosts compare case-insensitively.
    """
    if not allowed_hosts:
        return False

    parsed = urlparse(url)
    if parsed.scheme not in _VALID_SCHEMES:
        return False
    if parsed.username or parsed.password:
        return False
    hostname = parsed.hostname
    if not hostname:
        return False

    allowed = {h.strip().lower() for h in allowed_hosts.split(",") if h.strip()}
    return hostname.lower() in allowed


def callback_payload(result: CrawlResult) -> dict:
    return {
        "task_id": result.task_id,
        "status": result.status,
        "message": result.message,
        "result_url": f"/crawl/{result.task_id}",
    }


async def post_callback(
    url: str,
    payload: dict,
    retry_config: RetryConfig = _DEFAULT_RETRY,
) -> bool:
    """POST a JSON payload to the callback URL with exponential-backoff retry.

    Only network errors are retried; an error status is final.
    """
    for attempt in range(1 + retry_config.max_retries):
        try:
            async with httpx.AsyncClient(timeout=10) as client:
                resp = await client.post(url, json=payload)
                resp.raise_for_status()
                return True
        except _RETRYABLE as exc:
            if attempt < retry_config.max_retries:
                delay = min(
                    retry_config.base_delay * (2 ** attempt),
                    retry_config.max_delay,
                )
                logger.warning(
                    "callback POST to %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    url, attempt + 1, retry_config.max_retries + 1, delay, exc,
                )
                await asyncio.sleep(delay)
            else:
                logger.warning(
                    "callback POST to %s failed after %d attempts",
                    url, retry_config.max_retries + 1, exc_info=True,
                )
        except httpx.HTTPError:
            logger.warning("callback POST to %s failed (non-retryable)", url, exc_info=True)
            return False
    return False


async def run_background_crawl(
    engine: CrawlEngine,
    cache: RedisCache,
    settings: Settings,
    sitemap_url: str,
    config: ScanConfig,
    concurrency_limit: int | None,
    task_id: str,
    callback_url: str | None = None,
) -> None:
    """Run a crawl in the background, cache the result, and optionally POST callback."""
    try:
        result = await engine.run(
            sitemap_url=sitemap_url,
            config=config,
            concurrency_limit=concurrency_limit,
            task_id=task_id,
        )
        await cache.set(task_id, result, ttl=settings.result_ttl_seconds)

        if callback_url:
            await post_callback(callback_url, callback_payload(result))
    except Exception:
        logger.exception("background crawl failed for sitemap=%r", sitemap_url)
