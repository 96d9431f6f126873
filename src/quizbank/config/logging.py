"""Logging setup for the command line."""

from __future__ import annotations

import logging
import os

from .errors import InvalidConfigurationError

LOG_LEVEL_ENV_VAR = "QUIZBANK_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def log_level_from_env(*, default: int = logging.INFO) -> int:
    """Read a level name such as ``DEBUG`` from ``QUIZBANK_LOG_LEVEL``."""

    raw = os.getenv(LOG_LEVEL_ENV_VAR, "").strip()
    if not raw:
        return default
    level = logging.getLevelNamesMapping().get(raw.upper())
    if level is None:
        raise InvalidConfigurationError(f"{LOG_LEVEL_ENV_VAR} is not a log level: {raw!r}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Configure the root logger for CLI output.

    Without an explicit ``level`` the environment decides, defaulting to INFO.
    """

    logging.basicConfig(
        level=level if level is not None else log_level_from_env(),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
