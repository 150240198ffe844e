"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

import os


def _get_int(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_str(key: str, default: str) -> str:
    """Get string from environment variable."""
    return os.environ.get(key, default)


def _get_list(key: str, default: str) -> list[str]:
    """Get comma-separated list from environment variable."""
    return [item.strip() for item in _get_str(key, default).split(',') if item.strip()]


# =============================================================================
# SERVER SETTINGS
# =============================================================================
PORT = _get_int('PORT', 3001)
HOST = _get_str('HOST', '0.0.0.0')

# Allowed CORS origins, "*" allows any
CORS_ORIGINS = _get_list('CORS_ORIGIN', '*')

# =============================================================================
# UPSTREAM SETTINGS
# =============================================================================
CRICBUZZ_BASE_URL = _get_str('CRICBUZZ_BASE_URL', 'https://www.cricbuzz.com')
UPSTREAM_TIMEOUT_SECONDS = _get_int('UPSTREAM_TIMEOUT_SECONDS', 15)

# =============================================================================
# CACHE SETTINGS (seconds)
# =============================================================================
CACHE_CURRENT_TTL = _get_int('CACHE_CURRENT_TTL', 30)
CACHE_UPCOMING_TTL = _get_int('CACHE_UPCOMING_TTL', 300)
CACHE_SCORECARD_TTL = _get_int('CACHE_SCORECARD_TTL', 30)
CACHE_MATCH_INFO_TTL = _get_int('CACHE_MATCH_INFO_TTL', 60)

# Upper bound on resident keys; least recently used entries go first
CACHE_MAX_ENTRIES = _get_int('CACHE_MAX_ENTRIES', 1024)

# =============================================================================
# REFRESH SETTINGS
# =============================================================================
# "on-demand" (warm up once, fetch on cache miss) or "scheduled" (background polling)
REFRESH_MODE = _get_str('REFRESH_MODE', 'on-demand')

# Polling periods for the scheduled mode (seconds)
LIVE_POLL_INTERVAL = _get_int('LIVE_POLL_INTERVAL', 30)
UPCOMING_POLL_INTERVAL = _get_int('UPCOMING_POLL_INTERVAL', 300)

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = _get_str('LOG_LEVEL', 'INFO')
