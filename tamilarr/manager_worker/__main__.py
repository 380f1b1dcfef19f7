"""Entry point for running a single Tamilarr sync outside the API process."""
from __future__ import annotations

import argparse
import logging
import sys

from tamilarr.manager_api.settings import ManagerSettings
from tamilarr.manager_api.state import AppState
from tamilarr.resolver.errors import ConfigurationError

logger = logging.getLogger("tamilarr.worker")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one Tamilarr catalog sync.")
    parser.add_argument(
        "--mode",
        choices=("full", "incremental"),
        help="Crawl mode (defaults to TAMILARR_CRAWL_MODE)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run one sync and return a process exit code."""

    args = parse_args(argv)
    settings = ManagerSettings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        state = AppState(settings)
    except ConfigurationError as exc:
        logger.error("Cannot start sync: %s", exc)
        return 1

    try:
        report = state.pipeline.orchestrator.run(args.mode)
    except ConfigurationError as exc:
        logger.error("Sync aborted: %s", exc)
        return 1
    finally:
        state.close()

    if report is None or report.status != "completed":
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - manual entrypoint
    sys.exit(main())
