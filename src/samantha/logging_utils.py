"""Runtime logging helpers."""

from __future__ import annotations

import sys
from logging import Handler

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

from samantha.config import Environment

_LEVELS: dict[Environment, str] = {"DEV": "DEBUG", "PROD": "WARNING"}
_CONFIGURED: tuple[Environment, str] | None = None


def _build_dev_handler() -> Handler:
    return RichHandler(
        console=Console(file=sys.stdout),
        show_level=True,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )


def configure_logging(environment: Environment = "DEV", level: str | None = None) -> None:
    """Configure process-level logging once per environment and level.

    DEV logs everything in a human-readable form, PROD only logs warnings and
    above, serialized as JSON. Both write to stdout.
    """
    global _CONFIGURED
    resolved = (level or _LEVELS[environment]).upper()
    if _CONFIGURED == (environment, resolved):
        return

    logger.remove()
    if environment == "PROD":
        logger.add(sys.stdout, level=resolved, serialize=True, backtrace=False, diagnose=False)
    else:
        logger.add(
            _build_dev_handler(),
            level=resolved,
            format="{name}:{function}:{line} | {message}",
            backtrace=False,
            diagnose=False,
        )
    _CONFIGURED = (environment, resolved)
