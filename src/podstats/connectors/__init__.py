"""Connectors: list or watch pod state from the Kubernetes API."""

from podstats.connectors.kube import (
    PodLister,
    PodMetricsLister,
    PodWatcher,
    load_api_client,
)
from podstats.connectors.models import (
    ListOptions,
    RawObject,
    ResumeMarker,
    UsageSnapshot,
    WatchOptions,
    WorkloadSpecSnapshot,
)
from podstats.connectors.ports import Lister, StreamEvent, Watcher

__all__ = [
    "Lister",
    "ListOptions",
    "PodLister",
    "PodMetricsLister",
    "PodWatcher",
    "RawObject",
    "ResumeMarker",
    "StreamEvent",
    "UsageSnapshot",
    "WatchOptions",
    "Watcher",
    "WorkloadSpecSnapshot",
    "load_api_client",
]
