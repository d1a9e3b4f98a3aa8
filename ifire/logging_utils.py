"""Logging helpers shared by the iFire modules."""
import logging
import os

_FORMAT = "[%(asctime)s][%(levelname)s][%(name)s] %(message)s"
_DATEFMT = "%H:%M:%S"


def get_logger(name: str, level: str = None) -> logging.Logger:
    """
    Create or fetch a logger with a single console handler.

    Args:
        name: Logger name, usually ``__name__``
        level: Level name; defaults to ``IFIRE_LOG_LEVEL`` or INFO

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    # Streamlit re-runs the script on every interaction; avoid stacking handlers.
    if getattr(logger, "_ifire_configured", False):
        return logger

    level_name = (level or os.environ.get("IFIRE_LOG_LEVEL", "INFO")).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    logger.addHandler(handler)
    logger.propagate = False

    logger._ifire_configured = True  # type: ignore[attr-defined]
    return logger


def set_level(level: str) -> None:
    """Apply a level to every logger created through get_logger."""
    value = getattr(logging, level.upper(), logging.INFO)
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and getattr(logger, "_ifire_configured", False):
            logger.setLevel(value)
