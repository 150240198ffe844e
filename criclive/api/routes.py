"""API route definitions."""

import logging
import time
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from criclive import __version__
from criclive.api.dependencies import get_cache, get_match_service, get_strategy
from criclive.exceptions import (
    CacheNotReady,
    CricLiveError,
    InvalidMatchId,
    MatchNotFound,
    UpstreamShapeChanged,
    UpstreamUnavailable,
)
from criclive.services.cache import CacheService
from criclive.services.match_service import CachedResult, MatchService
from criclive.services.refresh import RefreshStrategy
from criclive.types import HealthDict

logger = logging.getLogger(__name__)
router = APIRouter()


def _to_json(data: Any) -> Any:
    """Serialize models with their wire aliases."""
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [_to_json(item) for item in data]
    return data


def _success(result: CachedResult) -> JSONResponse:
    headers = {
        "X-Cache-Hit": "true" if result.cache_hit else "false",
        "X-Cache-Age": str(result.age_seconds or 0),
    }
    return JSONResponse(
        content={
            "status": "success",
            "data": _to_json(result.data),
            "cachedAt": result.cached_at.isoformat() if result.cached_at else None,
        },
        headers=headers,
    )


def _http_error(e: CricLiveError) -> HTTPException:
    """Map a CricLive error to the HTTP status callers see."""
    if isinstance(e, CacheNotReady):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, MatchNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidMatchId):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, UpstreamShapeChanged):
        return HTTPException(
            status_code=502,
            detail=f"Cricbuzz source layout changed, data unavailable: {e}",
        )
    if isinstance(e, UpstreamUnavailable):
        return HTTPException(status_code=502, detail=f"Cricbuzz unavailable: {e}")
    return HTTPException(status_code=500, detail=str(e))


@router.get("/api/matches")
async def list_matches(
    service: MatchService = Depends(get_match_service),
) -> JSONResponse:
    """All current and upcoming matches, deduplicated by id."""
    try:
        return _success(await service.get_matches())
    except CricLiveError as e:
        logger.error(f"Error serving matches: {e}")
        raise _http_error(e)


@router.get("/api/matches/live")
async def list_live_matches(
    service: MatchService = Depends(get_match_service),
) -> JSONResponse:
    """Matches that have started and not yet ended."""
    try:
        return _success(await service.get_live_matches())
    except CricLiveError as e:
        logger.error(f"Error serving live matches: {e}")
        raise _http_error(e)


@router.get("/api/match/{match_id}/score")
async def get_score(
    match_id: str,
    service: MatchService = Depends(get_match_service),
) -> JSONResponse:
    """Innings scores and state for one match.

    Args:
        match_id: Composite match id, e.g. "12345~ind-vs-aus-1st-test"
    """
    try:
        return _success(await service.get_score(match_id))
    except CricLiveError as e:
        raise _http_error(e)


@router.get("/api/match/{match_id}/scorecard")
async def get_scorecard(
    match_id: str,
    service: MatchService = Depends(get_match_service),
) -> JSONResponse:
    """Full batting and bowling scorecard for one match."""
    try:
        return _success(await service.get_scorecard(match_id))
    except CricLiveError as e:
        logger.error(f"Error serving scorecard for {match_id}: {e}")
        raise _http_error(e)


@router.get("/api/match/{match_id}/info")
async def get_match_info(
    match_id: str,
    service: MatchService = Depends(get_match_service),
) -> JSONResponse:
    """Venue, toss and officials for one match."""
    try:
        return _success(await service.get_match_info(match_id))
    except CricLiveError as e:
        logger.error(f"Error serving match info for {match_id}: {e}")
        raise _http_error(e)


@router.get("/api/health")
async def health(
    request: Request,
    cache: CacheService = Depends(get_cache),
    strategy: RefreshStrategy = Depends(get_strategy),
) -> dict:
    """Health check with cache and refresh status."""
    started_at = getattr(request.app.state, "started_at", None)
    payload: HealthDict = {
        "status": "ok",
        "version": __version__,
        "uptime": int(time.monotonic() - started_at) if started_at is not None else 0,
        "cache": cache.stats(),
        "poller": strategy.status(),
        "env": {
            "refreshMode": strategy.mode,
            "pollInterval": getattr(strategy, "poll_interval", None),
        },
    }
    return payload


@router.post("/api/cache/flush")
async def flush_cache(cache: CacheService = Depends(get_cache)) -> dict:
    """Drop every cached entry."""
    cache.flush()
    logger.info("Cache flushed")
    return {"status": "success", "message": "Cache flushed"}
