"""Tests for rendering readings as scrape text."""

from podstats.readings.exposition import render_exposition, render_store
from podstats.readings.models import Reading
from podstats.readings.store import AggregateStore


def test_empty_store_renders_empty_body(store: AggregateStore) -> None:
    assert render_store(store) == ""


def test_one_line_per_reading() -> None:
    readings = [
        Reading(key='ps_cpu_usage_cores{pod_name="a"}', value=0.25, time="1714564800000"),
        Reading(key='ps_memory_usage_bytes{pod_name="a"}', value=134217728.0, time="1714564800000"),
    ]

    body = render_exposition(readings)

    assert body.splitlines() == [
        'ps_cpu_usage_cores{pod_name="a"} 0.250000 1714564800000',
        'ps_memory_usage_bytes{pod_name="a"} 134217728.000000 1714564800000',
    ]
    assert body.endswith("\n")


def test_render_store_contains_every_key(store: AggregateStore) -> None:
    for i in range(5):
        store.merge(Reading(key=f"m{{i=\"{i}\"}}", value=float(i), time="0"))

    lines = render_store(store).splitlines()

    assert sorted(lines) == sorted(f'm{{i="{i}"}} {i:.6f} 0' for i in range(5))
    assert not any(line.startswith("#") for line in lines)
