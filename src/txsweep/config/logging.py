"""Root logger setup for the sweeper entry points."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "TXSWEEP_LOG_LEVEL"

# Per-request INFO lines from the HTTP stack drown out the sweep log.
_CHATTY_LOGGERS = ("httpx", "httpcore")


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Configure the root logger for cron and CLI output.

    ``level`` defaults to ``TXSWEEP_LOG_LEVEL`` (a level name such as ``DEBUG``)
    and falls back to INFO for unset or unknown names.
    """

    if level is None:
        named = logging.getLevelNamesMapping().get(os.getenv(LOG_LEVEL_ENV, "").strip().upper())
        level = named if named is not None else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        force=force,
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
