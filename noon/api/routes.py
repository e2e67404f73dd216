"""POST /scan, POST /crawl, GET /crawl/{id}, DELETE /crawl endpoint handlers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sse_starlette.sse import EventSourceResponse

from noon.api.schemas import CrawlRequest, CrawlResult, TextScanRequest, TextScanResponse
from noon.api.service import get_crawl_result, scan_text, start_background_crawl, stream_crawl
from noon.auth.dependencies import require_api_key
from noon.cache.redis import RedisCache
from noon.config import Settings
from noon.crawl.engine import CrawlEngine
from noon.crawl.tasks import validate_callback_url

router = APIRouter(dependencies=[Depends(require_api_key)])


def _get_engine(request: Request) -> CrawlEngine:
    return request.app.state.engine


def _get_cache(request: Request) -> RedisCache:
    return request.app.state.cache


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.post("/scan", response_model=TextScanResponse)
async def create_scan(
    body: TextScanRequest,
    engine: CrawlEngine = Depends(_get_engine),
):
    return await scan_text(body, engine.default_config)


@router.post("/crawl")
async def create_crawl(
    body: CrawlRequest,
    engine: CrawlEngine = Depends(_get_engine),
    cache: RedisCache = Depends(_get_cache),
    settings: Settings = Depends(_get_settings),
):
    if body.callback_url:
        if not validate_callback_url(body.callback_url, settings.allowed_callback_hosts):
            raise HTTPException(
                status_code=422,
                detail="callback_url host not in ALLOWED_CALLBACK_HOSTS",
            )

    if body.mode == "background":
        if not body.callback_url:
            raise HTTPException(
                status_code=422,
                detail="callback_url is required for background mode",
            )
        return await start_background_crawl(engine, cache, settings, body)

    return EventSourceResponse(stream_crawl(engine, cache, settings, body))


@router.delete("/crawl")
async def cancel_crawl(engine: CrawlEngine = Depends(_get_engine)):
    task_id = engine.active
    if not engine.cancel():
        raise HTTPException(status_code=404, detail="No crawl in progress")
    return {"status": "cancelling", "task_id": task_id}


@router.get("/crawl/{task_id}", response_model=CrawlResult, response_model_by_alias=True)
async def get_crawl(
    task_id: str,
    cache: RedisCache = Depends(_get_cache),
):
    result = await get_crawl_result(cache, task_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Result not found or expired")
    return result


@router.get("/crawl/{task_id}/export")
async def export_crawl(
    task_id: str,
    cache: RedisCache = Depends(_get_cache),
):
    result = await get_crawl_result(cache, task_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Result not found or expired")
    if result.export is None:
        raise HTTPException(status_code=409, detail=result.message or "Crawl produced no export")

    filename = f"palindromes-{int(result.created_at.timestamp() * 1000)}.json"
    return Response(
        content=result.export.to_json(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
