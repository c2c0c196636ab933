"""Shared test fixtures."""

import pytest

from podstats.readings.store import AggregateStore


@pytest.fixture
def store() -> AggregateStore:
    """Provide an empty aggregate store that never evicts."""
    return AggregateStore()
