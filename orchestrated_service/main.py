"""Main entrypoint for the orchestrated service."""

import argparse
import asyncio
import logging
import sys
from typing import get_args

from pydantic import ValidationError

from .api import ServiceConfig, create_app
from .config import LogLevel, Settings
from .errors import StartupError
from .lifecycle import LifecycleCoordinator
from .processor import EchoProcessor, FaultInjector

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the resource lookup service with liveness/readiness probes."
    )
    parser.add_argument("--host", help="Address to bind (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port to bind (default: $PORT or 50001)")
    parser.add_argument(
        "--drain-timeout",
        type=float,
        help="Seconds to let in-flight requests finish on shutdown (default: 5)",
    )
    parser.add_argument(
        "--failure-rate",
        type=float,
        help="Fraction of lookups that fail with a problem document (default: 0)",
    )
    parser.add_argument(
        "--log-level",
        choices=get_args(LogLevel),
        help="Logging level (default: info)",
    )
    return parser


def load_settings(argv: list[str] | None = None) -> Settings:
    """Build settings from the environment, overridden by command line flags."""
    args = _build_parser().parse_args(argv)
    overrides = {
        "host": args.host,
        "port": args.port,
        "drain_timeout": args.drain_timeout,
        "failure_rate": args.failure_rate,
        "log_level": args.log_level,
    }
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def main(argv: list[str] | None = None) -> int:
    """Run the service until SIGINT/SIGTERM."""
    try:
        settings = load_settings(argv)
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    processor = EchoProcessor(
        message=settings.message,
        fault_injector=FaultInjector(settings.failure_rate),
        name=settings.service_name,
    )
    app = create_app(
        processor,
        ServiceConfig(version=settings.service_version),
        settings=settings,
    )
    coordinator = LifecycleCoordinator(app, settings)

    try:
        asyncio.run(coordinator.run())
    except StartupError as exc:
        logger.error("Failed to start: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
