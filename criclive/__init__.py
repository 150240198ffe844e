"""CricLive - caching proxy for live cricket scores."""

__version__ = "1.0.0"
