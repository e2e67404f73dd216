"""FastAPI app entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from noon.api.routes import router
from noon.cache.redis import RedisCache, create_redis_client
from noon.config import get_settings
from noon.crawl.engine import CrawlEngine
from noon.crawl.fetch import HttpTextFetcher, create_http_client
from noon.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # Logging first so everything below is emitted as JSON
    setup_logging(settings.log_level)
    logger.info("starting palindrome scanner")

    redis_client = await create_redis_client(settings.redis_url)
    cache = RedisCache(redis_client, default_ttl=settings.result_ttl_seconds)

    http_client = create_http_client(settings.user_agent)
    fetcher = HttpTextFetcher(http_client, timeout=settings.fetch_timeout_seconds)
    engine = CrawlEngine(settings, fetcher)

    app.state.settings = settings
    app.state.cache = cache
    app.state.engine = engine

    logger.info(
        "palindrome scanner ready",
        extra={
            "min_length": engine.default_config.min_length,
            "max_length": engine.default_config.max_length,
            "concurrency_limit": settings.concurrency_limit,
        },
    )

    yield

    logger.info("shutting down palindrome scanner")
    engine.cancel()
    await http_client.aclose()
    await redis_client.aclose()


app = FastAPI(title="Palindrome Scanner", lifespan=lifespan)
app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok"}
