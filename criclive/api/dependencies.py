"""FastAPI dependencies for dependency injection."""

from fastapi import Request

from criclive.services.cache import CacheService
from criclive.services.match_service import MatchService
from criclive.services.refresh import RefreshStrategy


def get_match_service(request: Request) -> MatchService:
    """Get match service dependency."""
    return request.app.state.match_service


def get_cache(request: Request) -> CacheService:
    """Get cache service dependency."""
    return request.app.state.cache


def get_strategy(request: Request) -> RefreshStrategy:
    """Get refresh strategy dependency."""
    return request.app.state.strategy
