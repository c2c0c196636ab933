"""Connector interfaces consumed by the ingestion workers.

Connectors report every error to the caller and never retry; retrying is
left to the list poller and the resumable watch driver.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol, Union, runtime_checkable

from podstats.connectors.models import (
    ListOptions,
    ResumeMarker,
    UsageSnapshot,
    WatchOptions,
    WorkloadSpecSnapshot,
)

StreamEvent = Union[WorkloadSpecSnapshot, UsageSnapshot, ResumeMarker]


@runtime_checkable
class Lister(Protocol):
    """Point-in-time snapshot fetch over one resource type."""

    def list(self, options: ListOptions) -> list[WorkloadSpecSnapshot | UsageSnapshot]:
        """Fetch every object currently visible to the connector."""
        ...


@runtime_checkable
class Watcher(Protocol):
    """Continuous event stream over one resource type."""

    def watch(self, options: WatchOptions) -> Iterator[StreamEvent]:
        """Open a stream, continuing after ``options.resume_token`` if set.

        Connection failures may be raised either by this call or by the
        first ``next()`` on the returned iterator.
        """
        ...
