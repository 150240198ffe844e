"""
Type definitions for CricLive.

Provides TypedDict classes for introspection payloads.
"""

from typing import TypedDict, Optional


class CacheStatsDict(TypedDict):
    """Statistics about the cache store."""
    total: int
    active: int


class RefreshStatusDict(TypedDict):
    """Refresh strategy status snapshot."""
    mode: str
    attemptCount: int
    lastSuccessTime: Optional[str]
    lastErrorMessage: Optional[str]


class CoalescerStatsDict(TypedDict):
    """In-flight request statistics."""
    active_requests: int
    active_keys: list[str]


class HealthDict(TypedDict, total=False):
    """Response from /api/health endpoint."""
    status: str
    version: str
    uptime: int
    cache: CacheStatsDict
    poller: RefreshStatusDict
    env: dict
