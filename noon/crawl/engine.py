"""Crawl engine — sitemap -> fetch -> scan -> aggregate orchestrator."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from noon.api.schemas import CrawlResult, CrawlStatus
from noon.config import Settings
from noon.crawl.aggregate import ExportDocument, ResultAggregator, derive_title
from noon.crawl.events import EventCallback, emit_event, emit_status
from noon.crawl.extract import html_to_unit
from noon.crawl.fetch import TextFetcher
from noon.crawl.mapper import map_with_concurrency
from noon.crawl.models import CrawlPage, CrawlState, FetchError, ScanAborted
from noon.crawl.sitemap import resolve_sitemap
from noon.scan.detector import find_palindromes, match_text
from noon.scan.models import ScanConfig

logger = logging.getLogger(__name__)

STATUS_MESSAGES: dict[str, str] = {
    "empty": "No links found in sitemap",
    "cancelled": "Scan cancelled",
    "failed": "Sitemap scan failed",
}


@dataclass
class _ActiveCrawl:
    task_id: str
    state: CrawlState
    finished: asyncio.Event = field(default_factory=asyncio.Event)


class CrawlEngine:
    """Runs one sitemap crawl at a time.

    Starting a crawl cancels the one in progress and waits for it to wind
    down before the new one begins.
    """

    def __init__(self, settings: Settings, fetcher: TextFetcher) -> None:
        self._settings = settings
        self._fetcher = fetcher
        self._default_config = settings.scan_config()
        self._active: _ActiveCrawl | None = None
        self._handover = asyncio.Lock()

    @property
    def default_config(self) -> ScanConfig:
        return self._default_config

    @property
    def active(self) -> str | None:
        """Task id of the crawl in progress, if any."""
        return self._active.task_id if self._active else None

    def cancel(self) -> bool:
        """Signal the active crawl to stop. Returns False if none is running."""
        if self._active is None:
            return False
        logger.info("crawl cancel requested", extra={"task_id": self._active.task_id})
        self._active.state.cancel.set()
        return True

    async def run(
        self,
        sitemap_url: str,
        config: ScanConfig | None = None,
        concurrency_limit: int | None = None,
        on_event: EventCallback | None = None,
        task_id: str | None = None,
    ) -> CrawlResult:
        """Crawl every page listed by *sitemap_url* and return the grouped report."""
        task_id = task_id or uuid.uuid4().hex[:12]
        config = config or self._default_config
        limit = concurrency_limit or self._settings.concurrency_limit

        current = await self._take_over(task_id)
        logger.info(
            "crawl started",
            extra={
                "task_id": task_id,
                "sitemap_url": sitemap_url,
                "min_length": config.min_length,
                "max_length": config.max_length,
                "concurrency_limit": limit,
            },
        )
        try:
            await emit_event(on_event, "started", {"task_id": task_id})
            result = await self._crawl(task_id, sitemap_url, config, limit, current.state, on_event)
        finally:
            current.finished.set()
            if self._active is current:
                self._active = None

        logger.info(
            "crawl finished",
            extra={
                "task_id": task_id,
                "status": result.status,
                "pages": result.page_count,
                "failed_pages": result.failed_pages,
                "found": result.export.finded_str if result.export else 0,
            },
        )
        await emit_event(on_event, "result", result.model_dump(mode="json", by_alias=True))
        await emit_event(on_event, "done", {})
        return result

    async def _take_over(self, task_id: str) -> _ActiveCrawl:
        async with self._handover:
            prior = self._active
            if prior is not None:
                logger.info(
                    "cancelling previous crawl",
                    extra={"task_id": task_id, "previous_task_id": prior.task_id},
                )
                prior.state.cancel.set()
                await prior.finished.wait()
            current = _ActiveCrawl(task_id=task_id, state=CrawlState())
            self._active = current
            return current

    async def _crawl(
        self,
        task_id: str,
        sitemap_url: str,
        config: ScanConfig,
        limit: int,
        state: CrawlState,
        on_event: EventCallback | None,
    ) -> CrawlResult:
        def finish(
            status: CrawlStatus,
            message: str | None = None,
            export: ExportDocument | None = None,
            page_count: int = 0,
            failed_pages: int = 0,
        ) -> CrawlResult:
            return CrawlResult(
                task_id=task_id,
                status=status,
                message=message or STATUS_MESSAGES[status],
                sitemap_url=sitemap_url,
                min_length=config.min_length,
                max_length=config.max_length,
                page_count=page_count,
                failed_pages=failed_pages,
                export=export,
                created_at=datetime.now(timezone.utc),
            )

        async def scan_page(url: str, index: int) -> CrawlPage:
            state.check()
            html = await self._fetcher.fetch_text(url)
            state.check()
            unit = html_to_unit(html)
            if unit is None:
                return CrawlPage(url=url)
            text = unit.text
            return CrawlPage(url=url, words=[match_text(text, m) for m in find_palindromes(text, config)])

        async def on_progress(done: int, total: int) -> None:
            await emit_status(on_event, "scanning", f"Scanning {done} of {total}", completed=done, total=total)

        await emit_status(on_event, "fetching", "Fetching sitemap...")
        try:
            urls = await resolve_sitemap(sitemap_url, self._fetcher, state)
            state.check()
            logger.info("sitemap resolved", extra={"task_id": task_id, "url_count": len(urls)})
            if not urls:
                return finish("empty")

            pages = await map_with_concurrency(urls, limit, scan_page, on_progress, state.cancel)
            state.check()
        except ScanAborted:
            logger.info("crawl cancelled", extra={"task_id": task_id})
            return finish("cancelled")
        except FetchError as exc:
            logger.warning(
                "sitemap fetch failed",
                extra={"task_id": task_id, "sitemap_url": sitemap_url, "reason": exc.reason},
            )
            return finish("failed")
        except Exception:
            logger.exception("crawl failed", extra={"task_id": task_id})
            return finish("failed")

        aggregator = ResultAggregator()
        failed = 0
        for page in pages:
            if page is None:
                failed += 1
                continue
            aggregator.add_page(page.url, page.words)

        export = aggregator.finalize(derive_title(sitemap_url))
        return finish(
            "completed",
            f"Done: {aggregator.total} palindromes",
            export=export,
            page_count=len(urls),
            failed_pages=failed,
        )
