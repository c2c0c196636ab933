"""Drive a Watcher with reconnects, resuming from the last bookmark."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from enum import Enum

from podstats.connectors.models import (
    ResumeMarker,
    UsageSnapshot,
    WatchOptions,
    WorkloadSpecSnapshot,
)
from podstats.connectors.ports import StreamEvent, Watcher
from podstats.exceptions import MalformedMarkerError, ResumeTokenExpired

logger = logging.getLogger(__name__)

# Fixed delay before reconnecting after a failure; retries are unbounded
DEFAULT_RECONNECT_DELAY = 2.0


class WatchState(str, Enum):
    """Connection state of a resumable watch."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    CLOSED = "closed"


class ResumingWatcher:
    """Keeps a watch stream open for as long as ``stop`` is not set.

    Objects are forwarded to ``sink`` in stream order. Resume markers only
    update the stored token, which is passed to every new ``watch`` call so
    the next stream continues where the previous one ended. Events may be
    delivered twice across a reconnect.
    """

    def __init__(
        self,
        name: str,
        watcher: Watcher,
        sink: Callable[[WorkloadSpecSnapshot | UsageSnapshot], object],
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        options: WatchOptions | None = None,
    ) -> None:
        self.name = name
        self.watcher = watcher
        self.sink = sink
        self.reconnect_delay = reconnect_delay
        self.options = options or WatchOptions()
        self.token = self.options.resume_token
        self.state = WatchState.DISCONNECTED
        self.attempts = 0

    def _transition(self, state: WatchState) -> None:
        if state != self.state:
            logger.debug("Watch %s: %s -> %s", self.name, self.state.value, state.value)
            self.state = state

    def _advance(self, marker: ResumeMarker) -> None:
        try:
            self.token = marker.token()
        except MalformedMarkerError as e:
            logger.warning("Watch %s: ignoring resume marker: %s", self.name, e)

    def _failed(self, error: Exception) -> None:
        if isinstance(error, ResumeTokenExpired):
            logger.info("Watch %s: resume token %r expired, restarting from current state", self.name, self.token)
            self.token = ""
        else:
            logger.warning("Watch %s failed: %s", self.name, error)
        self._transition(WatchState.DISCONNECTED)

    def stream_once(self, stop: threading.Event) -> bool:
        """Connect once and forward events until the stream ends.

        Returns True if the stream closed cleanly, False if connecting or
        streaming failed.
        """
        self.attempts += 1
        self._transition(WatchState.CONNECTING)
        options = self.options.model_copy(update={"resume_token": self.token})
        try:
            stream: Iterator[StreamEvent] = iter(self.watcher.watch(options))
        except Exception as e:
            self._failed(e)
            return False

        self._transition(WatchState.STREAMING)
        try:
            for event in stream:
                if stop.is_set():
                    break
                if isinstance(event, ResumeMarker):
                    self._advance(event)
                    continue
                self.sink(event)
        except Exception as e:
            self._failed(e)
            return False
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()
        self._transition(WatchState.DISCONNECTED)
        return True

    def run(self, stop: threading.Event) -> None:
        """Reconnect until ``stop`` is set, then move to CLOSED."""
        logger.info("Watching %s", self.name)
        try:
            while not stop.is_set():
                if self.stream_once(stop):
                    continue
                if stop.wait(self.reconnect_delay):
                    break
        finally:
            self._transition(WatchState.CLOSED)
            logger.info("Stopped watching %s", self.name)
