"""Ingestion: polling, resumable watches and the worker pipeline."""

from podstats.ingest.pipeline import Pipeline
from podstats.ingest.poller import ListPoller
from podstats.ingest.resume import ResumingWatcher, WatchState

__all__ = [
    "ListPoller",
    "Pipeline",
    "ResumingWatcher",
    "WatchState",
]
