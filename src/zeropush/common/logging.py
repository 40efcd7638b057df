"""Shared logging helpers for zeropush."""

from __future__ import annotations

import logging
import os
from typing import Final

LOG_LEVEL_ENV: Final[str] = "ZEROPUSH_LOG_LEVEL"
LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def resolve_log_level(level: int | str | None = None) -> int:
    """Turn a level name, number or ``None`` (read ``ZEROPUSH_LOG_LEVEL``) into a number."""

    candidate = level if level is not None else os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(candidate, int):
        return candidate
    resolved = logging.getLevelNamesMapping().get(candidate.strip().upper())
    if resolved is None:
        raise ValueError(f"Unknown log level: {candidate}")
    return resolved


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger once for CLI use.

    Push processing logs one line per batch at INFO and every abort at WARNING, so
    INFO stays readable. SQL echo from SQLAlchemy is only let through at DEBUG.
    Pass ``force=True`` to reconfigure during tests.
    """

    resolved = resolve_log_level(level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if resolved <= logging.DEBUG else logging.WARNING
    )
