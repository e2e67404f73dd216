"""Request/response Pydantic models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from noon.crawl.aggregate import ExportDocument

CrawlStatus = Literal["completed", "empty", "cancelled", "failed"]

# A paragraph is scanned without yielding to the event loop.
MAX_SCAN_TEXT_CHARS = 100_000


class TextScanRequest(BaseModel):
    text: str = Field(max_length=MAX_SCAN_TEXT_CHARS)
    min_length: int | None = None
    max_length: int | None = None


class TextMatch(BaseModel):
    text: str
    start: int
    end: int
    length: int
    word_count: int
    paragraph: int
    start_segment: int
    start_offset: int
    end_segment: int
    end_offset: int


class TextScanResponse(BaseModel):
    count: int
    min_length: int
    max_length: int
    matches: list[TextMatch] = []


class CrawlRequest(BaseModel):
    sitemap_url: str
    mode: Literal["stream", "background"]
    min_length: int | None = None
    max_length: int | None = None
    concurrency_limit: int | None = Field(default=None, ge=1)
    callback_url: str | None = None


class CrawlResult(BaseModel):
    task_id: str
    status: CrawlStatus = "completed"
    message: str = ""
    sitemap_url: str
    min_length: int
    max_length: int
    page_count: int = 0
    failed_pages: int = 0
    export: ExportDocument | None = None
    created_at: datetime
    expires_at: datetime | None = None
