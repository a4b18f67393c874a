"""
Package logger setup.

Every module logs through ``logging.getLogger(__name__)``; this helper only
attaches a handler to the package logger so applications and scripts get
readable output without touching the root logger.
"""

import logging
from typing import Optional, Union

PACKAGE_LOGGER_NAME = "tradetrust_escrow"

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger(PACKAGE_LOGGER_NAME)

_handler: Optional[logging.Handler] = None


def setup_logger(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Configure the package logger with a single stream handler.

    Calling it again only changes the level; no duplicate handlers are added.

    Args:
        level: Logging level as an int or a name such as ``"DEBUG"``.

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level!r}")

    global _handler
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(_handler)

    logger.setLevel(level)
    return logger
