"""Short-lived cache in front of the scrape renderer."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from urllib.parse import urlencode

from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 10.0
DEFAULT_CAPACITY = 100
DEFAULT_REFRESH_KEY = "opn"


class ResponseCache:
    """TTL cache of rendered bodies keyed by request path and query.

    Entries expire ``ttl`` seconds after they are stored; once ``capacity``
    entries are held the least recently used one is evicted. A request whose
    query contains ``refresh_key`` skips the cached body and stores a fresh
    render in its place.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        capacity: int = DEFAULT_CAPACITY,
        refresh_key: str = DEFAULT_REFRESH_KEY,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.capacity = capacity
        self.refresh_key = refresh_key
        self._entries: TTLCache[str, str] = TTLCache(maxsize=capacity, ttl=ttl, timer=timer)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def key_for(self, path: str, query: Iterable[tuple[str, str]]) -> str:
        """Cache key for a request: path plus its sorted query, minus the refresh key."""
        params = sorted((k, v) for k, v in query if k != self.refresh_key)
        if not params:
            return path
        return f"{path}?{urlencode(params)}"

    def wants_refresh(self, query: Iterable[tuple[str, str]]) -> bool:
        return any(k == self.refresh_key for k, _ in query)

    def get_or_render(self, key: str, render: Callable[[], str], refresh: bool = False) -> str:
        """Return the cached body for ``key``, rendering and storing it on a miss or refresh."""
        with self._lock:
            if not refresh:
                body = self._entries.get(key)
                if body is not None:
                    self.hits += 1
                    return body
            self.misses += 1
            body = render()
            self._entries[key] = body
            return body

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
