"""
Custom exceptions for CricLive.

These exceptions provide clear error categories for the caching proxy:
- UpstreamUnavailable: network, timeout or non-success HTTP status (transient)
- UpstreamShapeChanged: expected markers missing from the source page (needs a human)
- RecordMalformed: a single list entry or row failed to parse (never leaves the parsers)
- InvalidMatchId / MatchNotFound: bad or unknown match ids from callers
- CacheCold / CacheExpired: no data to serve yet, or not any more
"""

from typing import Optional


class CricLiveError(Exception):
    """Base exception for all CricLive errors."""
    pass


class UpstreamError(CricLiveError):
    """Base exception for failures talking to or reading the upstream site."""
    pass


class UpstreamUnavailable(UpstreamError):
    """Transport failure, timeout or non-success HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamShapeChanged(UpstreamError):
    """An expected marker or anchor was not found in the upstream page."""

    def __init__(self, marker: str, context: str = ""):
        message = f"Could not locate {marker!r} in upstream page"
        if context:
            message += f" ({context})"
        super().__init__(message)
        self.marker = marker
        self.context = context


class RecordMalformed(CricLiveError):
    """A single match entry or scorecard row could not be parsed."""
    pass


class InvalidMatchId(CricLiveError):
    """A composite match id does not start with a numeric source id."""
    pass


class MatchNotFound(CricLiveError):
    """The match id is not present in any cached match list."""
    pass


class CacheNotReady(CricLiveError):
    """No cached data can be served for the request."""
    pass


class CacheCold(CacheNotReady):
    """The cache has never been populated since startup."""
    pass


class CacheExpired(CacheNotReady):
    """The cache was populated before but its entries have expired."""
    pass
