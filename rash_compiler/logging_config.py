"""Logging setup shared by every rash_compiler module.

Modules call :func:`get_logger` with ``__name__``; only entry points
(the CLI) call :func:`configure_logging`.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "rash_compiler"
LOG_LEVEL_ENV = "RASH_LOG_LEVEL"

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a logger inside the ``rash_compiler`` hierarchy.

    Args:
        name: Usually the calling module's ``__name__``.

    Returns:
        A standard library logger.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(level: str | int | None = None, use_rich: bool = True) -> None:
    """Attach a single handler to the package root logger.

    Calling this again only updates the level.

    Args:
        level: Level name or number. Falls back to ``RASH_LOG_LEVEL`` and then
            ``WARNING``.
        use_rich: Render records with :class:`rich.logging.RichHandler` on
            stderr instead of a plain stream handler.
    """
    global _configured

    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "WARNING")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    if _configured:
        return

    if use_rich:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)-8s] %(name)s - %(message)s")
        )

    root.addHandler(handler)
    root.propagate = False
    _configured = True
