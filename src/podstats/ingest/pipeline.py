"""Wire connectors, the normalizer and the aggregate store together with worker threads."""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable

from podstats.connectors.models import ListOptions, UsageSnapshot, WatchOptions, WorkloadSpecSnapshot
from podstats.connectors.ports import Lister, Watcher
from podstats.exceptions import NormalizationError
from podstats.ingest.poller import DEFAULT_POLL_INTERVAL, ListPoller
from podstats.ingest.resume import DEFAULT_RECONNECT_DELAY, ResumingWatcher
from podstats.readings.models import Reading
from podstats.readings.normalize import Normalizer
from podstats.readings.store import AggregateStore

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1024

# How long consumers block on an empty queue before re-checking the stop signal
_QUEUE_POLL_SECONDS = 0.5


class Pipeline:
    """Connector workers -> raw queue -> normalizer -> readings queue -> store.

    Each queue is bounded and has exactly one consumer thread, so every
    store merge happens on the merge thread in arrival order.
    """

    def __init__(
        self,
        store: AggregateStore,
        normalizer: Normalizer | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        self.store = store
        self.normalizer = normalizer or Normalizer()
        self.stop_event = threading.Event()
        self._raw: queue.Queue[WorkloadSpecSnapshot | UsageSnapshot] = queue.Queue(maxsize=queue_size)
        self._readings: queue.Queue[list[Reading]] = queue.Queue(maxsize=queue_size)
        self._workers: list[tuple[str, Callable[[threading.Event], None]]] = []
        self._threads: list[threading.Thread] = []
        self.pollers: list[ListPoller] = []
        self.watchers: list[ResumingWatcher] = []

    def add_lister(
        self,
        name: str,
        lister: Lister,
        interval: float = DEFAULT_POLL_INTERVAL,
        options: ListOptions | None = None,
    ) -> ListPoller:
        poller = ListPoller(name, lister, self.submit, interval=interval, options=options)
        self.pollers.append(poller)
        self._workers.append((f"poll-{name}", poller.run))
        return poller

    def add_watcher(
        self,
        name: str,
        watcher: Watcher,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        options: WatchOptions | None = None,
    ) -> ResumingWatcher:
        resuming = ResumingWatcher(name, watcher, self.submit, reconnect_delay=reconnect_delay, options=options)
        self.watchers.append(resuming)
        self._workers.append((f"watch-{name}", resuming.run))
        return resuming

    def _offer(self, q: queue.Queue, item: object) -> bool:
        while not self.stop_event.is_set():
            try:
                q.put(item, timeout=_QUEUE_POLL_SECONDS)
                return True
            except queue.Full:
                logger.debug("Queue full, waiting")
        return False

    def submit(self, obj: WorkloadSpecSnapshot | UsageSnapshot) -> bool:
        """Queue a raw object for normalization; blocks while the queue is full.

        Returns False if the pipeline stopped before the object was queued.
        """
        return self._offer(self._raw, obj)

    def _normalize_loop(self, stop: threading.Event) -> None:
        while not stop.is_set():
            try:
                obj = self._raw.get(timeout=_QUEUE_POLL_SECONDS)
            except queue.Empty:
                continue
            try:
                readings = self.normalizer.normalize(obj)
                if readings:
                    self._offer(self._readings, readings)
            except NormalizationError as e:
                logger.warning("Dropping %s %s/%s: %s", obj.tag, obj.namespace, obj.name, e)
            except Exception:
                logger.exception("Normalizing %s %s/%s failed", obj.tag, obj.namespace, obj.name)
            finally:
                self._raw.task_done()

    def _merge_loop(self, stop: threading.Event) -> None:
        while not stop.is_set():
            try:
                batch = self._readings.get(timeout=_QUEUE_POLL_SECONDS)
            except queue.Empty:
                batch = None
            try:
                if batch is not None:
                    self.store.merge_many(batch)
                self.store.evict_stale()
            except Exception:
                logger.exception("Merging %d readings failed", len(batch or []))
            finally:
                if batch is not None:
                    self._readings.task_done()

    def start(self) -> None:
        """Start the merge, normalizer and connector threads."""
        workers = [("merge", self._merge_loop), ("normalize", self._normalize_loop), *self._workers]
        for name, target in workers:
            thread = threading.Thread(target=target, args=(self.stop_event,), name=f"podstats-{name}", daemon=True)
            thread.start()
            self._threads.append(thread)
        logger.info("Pipeline started with %d connector workers", len(self._workers))

    def flush(self) -> None:
        """Block until every submitted object has been normalized and merged."""
        self._raw.join()
        self._readings.join()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal every worker to stop and wait for them to exit.

        Workers blocked in a network call finish that call first; threads
        still running after ``timeout`` are left behind as daemons.
        """
        self.stop_event.set()
        for thread in self._threads:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Worker %s did not stop within %ss", thread.name, timeout)
        self._threads.clear()
