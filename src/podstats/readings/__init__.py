"""Readings: normalization, aggregation and exposition."""

from podstats.readings.exposition import render_exposition, render_store
from podstats.readings.models import Reading, ReadingKind
from podstats.readings.normalize import LabelSanitizer, Normalizer, quantity_to_float
from podstats.readings.store import AggregateStore, merge

__all__ = [
    "AggregateStore",
    "LabelSanitizer",
    "Normalizer",
    "Reading",
    "ReadingKind",
    "merge",
    "quantity_to_float",
    "render_exposition",
    "render_store",
]
