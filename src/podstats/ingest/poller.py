"""Periodic List polling."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from podstats.connectors.models import ListOptions, UsageSnapshot, WorkloadSpecSnapshot
from podstats.connectors.ports import Lister

logger = logging.getLogger(__name__)

# Seconds between two List calls
DEFAULT_POLL_INTERVAL = 10.0


class ListPoller:
    """Calls ``lister.list`` on a fixed interval and hands every object to ``sink``.

    Failures are logged and retried on the next tick.
    """

    def __init__(
        self,
        name: str,
        lister: Lister,
        sink: Callable[[WorkloadSpecSnapshot | UsageSnapshot], object],
        interval: float = DEFAULT_POLL_INTERVAL,
        options: ListOptions | None = None,
    ) -> None:
        self.name = name
        self.lister = lister
        self.sink = sink
        self.interval = interval
        self.options = options or ListOptions()
        self.ticks = 0

    def poll_once(self, stop: threading.Event | None = None) -> int:
        """List once and forward the result. Returns the number of objects forwarded."""
        self.ticks += 1
        try:
            objects = self.lister.list(self.options)
        except Exception as e:
            logger.warning("Listing %s failed: %s", self.name, e)
            return 0
        if stop is not None and stop.is_set():
            logger.debug("Discarding %s listing received after stop", self.name)
            return 0
        for obj in objects:
            self.sink(obj)
        logger.debug("Listed %d %s objects", len(objects), self.name)
        return len(objects)

    def run(self, stop: threading.Event) -> None:
        """Poll immediately, then every ``interval`` seconds until ``stop`` is set."""
        logger.info("Polling %s every %.1fs", self.name, self.interval)
        while not stop.is_set():
            self.poll_once(stop)
            if stop.wait(self.interval):
                break
        logger.info("Stopped polling %s", self.name)
