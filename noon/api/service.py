"""Service layer — orchestrates scan and crawl operations for the API routes."""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Any, AsyncGenerator

from noon.api.schemas import CrawlRequest, CrawlResult, TextMatch, TextScanRequest, TextScanResponse
from noon.cache.redis import RedisCache
from noon.config import Settings
from noon.crawl.engine import STATUS_MESSAGES, CrawlEngine
from noon.crawl.tasks import callback_payload, post_callback, run_background_crawl
from noon.scan.detector import count_words, detect_in_unit
from noon.scan.models import ResolvedMatch, ScanConfig, TextUnit
from noon.scan.scheduler import ScanScheduler
from noon.scan.segments import absolute_offset, units_from_text

logger = logging.getLogger(__name__)


def _generate_task_id() -> str:
    return uuid.uuid4().hex[:12]


def _to_text_match(paragraph: int, unit: TextUnit, found: ResolvedMatch) -> TextMatch:
    start, end = found.start_position, found.end_position
    return TextMatch(
        text=found.text,
        start=absolute_offset(unit, start.segment, start.offset),
        end=absolute_offset(unit, end.segment, end.offset) - 1,
        length=found.match.length,
        word_count=count_words(found.text),
        paragraph=paragraph,
        start_segment=start.segment,
        start_offset=start.offset,
        end_segment=end.segment,
        end_offset=end.offset,
    )


async def scan_text(body: TextScanRequest, default_config: ScanConfig) -> TextScanResponse:
    """Scan a plain-text document paragraph by paragraph."""
    config = ScanConfig.from_bounds(body.min_length, body.max_length, default_config)
    units = units_from_text(body.text)
    matches: list[TextMatch] = []

    def on_unit(index: int, unit: TextUnit, found: list[ResolvedMatch]) -> None:
        matches.extend(_to_text_match(index, unit, m) for m in found)

    finished: asyncio.Future[int] = asyncio.get_running_loop().create_future()
    scheduler = ScanScheduler(lambda unit: detect_in_unit(unit, config))
    scheduler.start(units, finished.set_result, on_unit)
    count = await finished

    logger.info(
        "text scanned",
        extra={
            "chars": len(body.text),
            "paragraphs": len(units),
            "matches": count,
            "min_length": config.min_length,
            "max_length": config.max_length,
        },
    )
    return TextScanResponse(
        count=count,
        min_length=config.min_length,
        max_length=config.max_length,
        matches=matches,
    )


async def start_background_crawl(
    engine: CrawlEngine,
    cache: RedisCache,
    settings: Settings,
    body: CrawlRequest,
) -> dict[str, str]:
    """Launch a background crawl and return the acceptance payload with task_id."""
    config = ScanConfig.from_bounds(body.min_length, body.max_length, engine.default_config)
    task_id = _generate_task_id()
    logger.info(
        "background crawl started",
        extra={
            "task_id": task_id,
            "sitemap_url": body.sitemap_url,
            "min_length": config.min_length,
            "max_length": config.max_length,
        },
    )

    asyncio.create_task(
        run_background_crawl(
            engine=engine,
            cache=cache,
            settings=settings,
            sitemap_url=body.sitemap_url,
            config=config,
            concurrency_limit=body.concurrency_limit,
            task_id=task_id,
            callback_url=body.callback_url,
        )
    )

    return {
        "status": "accepted",
        "task_id": task_id,
        "message": "Crawl started. Results will be sent to callback URL.",
    }


async def stream_crawl(
    engine: CrawlEngine,
    cache: RedisCache,
    settings: Settings,
    body: CrawlRequest,
) -> AsyncGenerator[dict[str, str], None]:
    """Yield SSE-formatted events from the crawl engine.

    If the client disconnects, the crawl keeps running so the result still
    gets cached.
    """
    config = ScanConfig.from_bounds(body.min_length, body.max_length, engine.default_config)
    logger.info(
        "streaming crawl started",
        extra={
            "sitemap_url": body.sitemap_url,
            "min_length": config.min_length,
            "max_length": config.max_length,
        },
    )

    queue: asyncio.Queue[tuple[str, dict[str, Any]] | None] = asyncio.Queue()

    async def on_event(event: str, data: dict[str, Any]) -> None:
        await queue.put((event, data))

    async def run_and_signal_done() -> None:
        try:
            result = await engine.run(
                sitemap_url=body.sitemap_url,
                config=config,
                concurrency_limit=body.concurrency_limit,
                on_event=on_event,
            )
            await cache.set(result.task_id, result, ttl=settings.result_ttl_seconds)

            if body.callback_url:
                await post_callback(body.callback_url, callback_payload(result))
        except Exception:
            logger.exception("streaming crawl failed", extra={"sitemap_url": body.sitemap_url})
            await queue.put(("error", {"message": STATUS_MESSAGES["failed"]}))
        finally:
            await queue.put(None)  # sentinel

    asyncio.create_task(run_and_signal_done())

    while True:
        item = await queue.get()
        if item is None:
            break
        event, data = item
        yield {"event": event, "data": json.dumps(data)}


async def get_crawl_result(
    cache: RedisCache,
    task_id: str,
) -> CrawlResult | None:
    """Retrieve a cached crawl result by task_id."""
    return await cache.get(task_id)
