"""Services for caching, refreshing and serving match data."""

from criclive.services.cache import CacheService, CacheEntry
from criclive.services.coalescer import RequestCoalescer
from criclive.services.refresh import (
    CURRENT_MATCHES_KEY,
    UPCOMING_MATCHES_KEY,
    RefreshStrategy,
    OnDemandRefresh,
    build_strategy,
)
from criclive.services.match_service import MatchService, CachedResult, merge_match_lists

__all__ = [
    "CacheService",
    "CacheEntry",
    "RequestCoalescer",
    "CURRENT_MATCHES_KEY",
    "UPCOMING_MATCHES_KEY",
    "RefreshStrategy",
    "OnDemandRefresh",
    "build_strategy",
    "MatchService",
    "CachedResult",
    "merge_match_lists",
]
