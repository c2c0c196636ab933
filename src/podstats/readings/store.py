"""Aggregate store: the single authoritative map of reading key to merged reading."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable

from podstats.exceptions import KindMismatchError
from podstats.readings.models import Reading, ReadingKind

logger = logging.getLogger(__name__)


def merge(old: Reading | None, new: Reading) -> Reading:
    """Merge ``new`` into ``old`` (which shares its key).

    Instant readings replace the stored value and time; counter readings add
    to the stored value and take the new time.
    """
    if old is None:
        return new
    if old.kind != new.kind:
        raise KindMismatchError(new.key, old.kind.value, new.kind.value)
    if new.kind == ReadingKind.COUNTER:
        return Reading(key=new.key, value=old.value + new.value, time=new.time, kind=new.kind)
    return new


class AggregateStore:
    """Thread-safe map from reading key to the latest merged reading.

    Every merge and every snapshot holds the same lock, so a snapshot never
    observes a merge halfway through. Keys are never removed unless
    ``stale_after`` is set, in which case ``evict_stale`` drops keys that have
    not been merged for that many seconds.
    """

    def __init__(
        self,
        stale_after: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.stale_after = stale_after
        self._clock = clock
        self._readings: dict[str, Reading] = {}
        self._touched: dict[str, float] = {}
        self._lock = threading.Lock()

    def merge(self, reading: Reading) -> Reading:
        """Merge one reading and return the value now stored under its key."""
        with self._lock:
            merged = merge(self._readings.get(reading.key), reading)
            self._readings[reading.key] = merged
            self._touched[reading.key] = self._clock()
            return merged

    def merge_many(self, readings: Iterable[Reading]) -> int:
        """Merge readings in order, skipping any whose kind conflicts. Returns the merged count."""
        count = 0
        for reading in readings:
            try:
                self.merge(reading)
            except KindMismatchError as e:
                logger.warning("Dropping reading: %s", e)
                continue
            count += 1
        return count

    def snapshot(self) -> list[Reading]:
        """Return a point-in-time copy of every stored reading."""
        with self._lock:
            return list(self._readings.values())

    def get(self, key: str) -> Reading | None:
        with self._lock:
            return self._readings.get(key)

    def evict_stale(self) -> int:
        """Drop keys not merged within ``stale_after`` seconds. Returns the number evicted."""
        if self.stale_after is None:
            return 0
        with self._lock:
            cutoff = self._clock() - self.stale_after
            stale = [k for k, touched in self._touched.items() if touched < cutoff]
            for key in stale:
                del self._readings[key]
                del self._touched[key]
        if stale:
            logger.debug("Evicted %d stale series", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._readings)
