"""
utils/logging.py — structlog configuration for the API process.

Sets up structured logging with JSON or human-readable console output
controlled by settings.log_format, and binds the staking contract and
data source into the context of every event. Called once at startup
by the app lifespan and the CLI.

Usage:
    from oxt_api.utils.logging import configure_logging

    configure_logging(settings)
    log = structlog.get_logger("oxt_api").bind(service="ranking")
    log.info("ranking_computed", delegators=42)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from oxt_shared.config import Settings


def configure_logging(
    settings: Settings,
    log_level: str | None = None,
    log_format: str | None = None,
) -> None:
    """
    Configure structlog for the API process. Idempotent.

    Args:
        settings:   Source of the default level and format.
        log_level:  Override settings.log_level ("DEBUG", "INFO", …).
        log_format: Override settings.log_format ("json" | "console").
    """
    level = log_level or settings.log_level
    fmt = log_format or settings.log_format

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if fmt == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(
        contract=settings.validators_contract_address,
        data_source=settings.data_source,
    )

