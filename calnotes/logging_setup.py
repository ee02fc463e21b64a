from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

APP_NAME = "calnotes"
LOG_LEVEL_ENV = "CALNOTES_LOG_LEVEL"


def setup_logging(level: str | None = None) -> logging.Logger:
    logger = logging.getLogger(APP_NAME)
    name = (level or os.getenv(LOG_LEVEL_ENV) or "WARNING").upper()
    logger.setLevel(getattr(logging, name, logging.WARNING))

    if logger.handlers:
        return logger

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
