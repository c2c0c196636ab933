"""HTTP scrape endpoint and its response cache."""

from podstats.server.app import create_app, create_scrape_router
from podstats.server.cache import ResponseCache

__all__ = [
    "ResponseCache",
    "create_app",
    "create_scrape_router",
]
