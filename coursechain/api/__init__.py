"""
HTTP facade.

aiohttp application exposing the course contract client over REST and a
WebSocket event feed.
"""

from coursechain.api.server import SERVICE_KEY, create_app, main


__all__ = ["SERVICE_KEY", "create_app", "main"]
