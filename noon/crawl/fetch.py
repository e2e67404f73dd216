"""Text fetching over HTTP."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from .models import FetchError

logger = logging.getLogger(__name__)


class TextFetcher(Protocol):
    """Protocol for fetch collaborators."""

    async def fetch_text(self, url: str) -> str: ...


class HttpTextFetcher:
    """Fetches response bodies with a shared httpx client."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout: float = 15.0,
    ) -> None:
        self._client = client
        self._timeout = timeout

    async def fetch_text(self, url: str) -> str:
        """GET *url* and return its body, raising FetchError on any failure."""
        try:
            resp = await self._client.get(url, timeout=self._timeout)
        except httpx.HTTPError as exc:
            logger.debug("fetch transport error", extra={"url": url, "error": str(exc)})
            raise FetchError(url, type(exc).__name__) from exc

        if not resp.is_success:
            logger.debug("fetch bad status", extra={"url": url, "status_code": resp.status_code})
            raise FetchError(url, f"status {resp.status_code}", status_code=resp.status_code)

        logger.debug("fetched", extra={"url": url, "length": len(resp.text)})
        return resp.text


def create_http_client(
    user_agent: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        follow_redirects=True,
        headers={"User-Agent": user_agent},
        transport=transport,
    )
