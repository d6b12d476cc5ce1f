"""Logging setup for the OTV engine.

Modules log through ``logging.getLogger(__name__)``; applications call
``configure_logging`` once to attach a handler to the ``otv`` logger.
"""

from __future__ import annotations

import logging
import sys

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_NAME = "otv-stream"


def configure_logging(level: int | str = logging.INFO, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Attach a single stream handler to the ``otv`` logger.

    Calling it again updates the level and format instead of adding handlers.
    """
    logger = logging.getLogger("otv")
    logger.setLevel(level)

    handler = next((h for h in logger.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        logger.addHandler(handler)
    handler.setFormatter(logging.Formatter(fmt))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``otv`` namespace."""
    if name != "otv" and not name.startswith("otv."):
        name = f"otv.{name}"
    return logging.getLogger(name)
