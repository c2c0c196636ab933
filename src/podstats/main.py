"""CLI entrypoint for podstats."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.logging import RichHandler

from podstats import __version__
from podstats.config import get_settings
from podstats.exceptions import ConnectorError
from podstats.exporter import build_exporter, serve


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="podstats: serve Kubernetes pod resource specs and usage as scrapeable series.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--namespace",
        "-n",
        default=None,
        help="Kubernetes namespace to observe (default: from env or 'default')",
    )
    parser.add_argument(
        "--kubeconfig",
        type=Path,
        default=None,
        help="Path to kubeconfig (default: KUBECONFIG env or ~/.kube/config)",
    )
    parser.add_argument(
        "--context",
        default=None,
        help="Kubernetes context to use",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port of the scrape endpoint (default: from env or 8080)",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Follow pod specs with a resumable watch instead of periodic listing",
    )
    parser.add_argument(
        "--debug",
        "-v",
        action="store_true",
        help="Show debug messages",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the podstats CLI."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    logger = logging.getLogger("podstats")
    if not args.debug:
        # kubernetes and urllib3 are noisy at DEBUG; keep them quiet unless asked
        logging.getLogger("kubernetes").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)

    try:
        settings = get_settings()
        if args.namespace:
            settings.namespace = args.namespace
        if args.kubeconfig:
            settings.kubeconfig = args.kubeconfig
        if args.context:
            settings.context = args.context
        if args.port:
            settings.port = args.port
        if args.watch:
            settings.spec_source = "watch"
        exporter = build_exporter(settings)
    except (ConnectorError, ValidationError) as e:
        logger.error("Startup failed: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    serve(exporter)
    return 0


if __name__ == "__main__":
    sys.exit(main())
