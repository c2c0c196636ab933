"""Render store contents as line-oriented scrape text."""

from __future__ import annotations

from collections.abc import Iterable

from podstats.readings.models import Reading
from podstats.readings.store import AggregateStore

CONTENT_TYPE = "text/plain; charset=utf-8"


def render_exposition(readings: Iterable[Reading]) -> str:
    """Render one ``<key> <value> <time>`` line per reading.

    Lines follow the iteration order of ``readings``; no metadata lines are
    written.
    """
    return "".join(f"{r.key} {r.value:f} {r.time}\n" for r in readings)


def render_store(store: AggregateStore) -> str:
    """Render an atomic snapshot of ``store``."""
    return render_exposition(store.snapshot())
