"""Canonical readings produced by the normalizer and held by the store."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ReadingKind(str, Enum):
    """How a reading merges with the value already stored under its key."""

    COUNTER = "counter"  # added to the stored value
    INSTANT = "instant"  # replaces the stored value


class Reading(BaseModel):
    """A single named, labeled observation."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description='Metric name plus rendered label set, e.g. name{a="b"}')
    value: float
    time: str = Field(default="", description="Observation time as epoch milliseconds")
    kind: ReadingKind = ReadingKind.INSTANT
