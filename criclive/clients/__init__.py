"""Upstream clients."""

from criclive.clients.cricbuzz import CricbuzzClient

__all__ = ["CricbuzzClient"]
