"""Assemble connectors, pipeline and HTTP app from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import uvicorn
from fastapi import FastAPI
from kubernetes import client

from podstats.config import Settings, get_settings
from podstats.connectors import PodLister, PodMetricsLister, PodWatcher, load_api_client
from podstats.ingest import Pipeline
from podstats.readings import AggregateStore
from podstats.server import ResponseCache, create_app

logger = logging.getLogger(__name__)


@dataclass
class Exporter:
    """Everything a running exporter owns."""

    settings: Settings
    store: AggregateStore
    pipeline: Pipeline
    cache: ResponseCache
    app: FastAPI


def build_exporter(settings: Settings | None = None, api_client: client.ApiClient | None = None) -> Exporter:
    """Build store, connectors, pipeline and app without starting any thread.

    Raises ConnectorError if no API client can be built from the configured
    credentials.
    """
    opts = settings or get_settings()
    api = api_client or load_api_client(
        str(opts.kubeconfig) if opts.kubeconfig else None,
        opts.context,
    )

    store = AggregateStore(stale_after=opts.stale_series_ttl)
    pipeline = Pipeline(store, queue_size=opts.queue_size)
    if opts.spec_source == "watch":
        pipeline.add_watcher(
            "spec",
            PodWatcher(api, opts.namespace, timeout_seconds=opts.watch_timeout_seconds),
            reconnect_delay=opts.reconnect_delay,
        )
    else:
        pipeline.add_lister("spec", PodLister(api, opts.namespace), interval=opts.poll_interval)
    pipeline.add_lister("usage", PodMetricsLister(api, opts.namespace), interval=opts.poll_interval)

    cache = ResponseCache(ttl=opts.cache_ttl, capacity=opts.cache_capacity, refresh_key=opts.refresh_key)
    app = create_app(store, cache)
    return Exporter(settings=opts, store=store, pipeline=pipeline, cache=cache, app=app)


def serve(exporter: Exporter) -> None:
    """Start the pipeline and serve scrapes until the server is shut down."""
    opts = exporter.settings
    exporter.pipeline.start()
    logger.info("Serving %s namespace on %s:%d", opts.namespace, opts.host, opts.port)
    try:
        uvicorn.run(exporter.app, host=opts.host, port=opts.port, log_config=None)
    finally:
        exporter.pipeline.stop()
