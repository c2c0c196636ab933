"""FastAPI application serving the scrape endpoint."""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import APIRouter, FastAPI, Request, Response

from podstats import __version__
from podstats.readings.exposition import CONTENT_TYPE, render_store
from podstats.readings.store import AggregateStore
from podstats.server.cache import ResponseCache

logger = logging.getLogger(__name__)


def create_scrape_router(
    store: AggregateStore,
    cache: ResponseCache | None = None,
    render: Callable[[AggregateStore], str] = render_store,
) -> APIRouter:
    """Create a router whose ``GET /`` returns the store as scrape text.

    Args:
        store: Store to render on each (uncached) request.
        cache: Optional response cache; when omitted every request renders.
        render: Renderer taking the store and returning the response body.

    Returns:
        APIRouter with the scrape endpoint configured.
    """
    router = APIRouter()

    @router.get("/")
    def scrape(request: Request) -> Response:
        """Return every stored reading, one per line."""
        try:
            if cache is None:
                body = render(store)
            else:
                query = list(request.query_params.multi_items())
                body = cache.get_or_render(
                    cache.key_for(request.url.path, query),
                    lambda: render(store),
                    refresh=cache.wants_refresh(query),
                )
        except Exception:
            logger.exception("Rendering scrape response failed")
            return Response(content="render failed\n", status_code=500, media_type="text/plain")
        return Response(content=body, media_type=CONTENT_TYPE)

    return router


def create_app(
    store: AggregateStore,
    cache: ResponseCache | None = None,
    render: Callable[[AggregateStore], str] = render_store,
) -> FastAPI:
    """Create the podstats ASGI application."""
    app = FastAPI(title="podstats", version=__version__, docs_url=None, redoc_url=None, openapi_url=None)
    app.include_router(create_scrape_router(store, cache, render))
    return app
