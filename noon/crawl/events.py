"""Event handling helpers for the crawl pipeline."""

from __future__ import annotations

import logging
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

# Type alias for the SSE event callback used across the crawl.
EventCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


async def emit_event(
    on_event: EventCallback | None,
    event: str,
    data: dict[str, Any] | None = None,
) -> None:
    """Emit a crawl event if a callback is registered."""
    if on_event:
        logger.debug("crawl event emitted", extra={"event": event})
        await on_event(event, data or {})


async def emit_status(on_event: EventCallback | None, step: str, message: str, **extra: Any) -> None:
    await emit_event(on_event, "status", {"step": step, "message": message, **extra})
