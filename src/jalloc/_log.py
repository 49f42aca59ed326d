import logging
import sys

LOGGER_NAME = "jalloc"
LOG_FORMAT = "%(levelname)s(%(funcName)s): %(message)s"

_handler = None


def set_log_level(level: int) -> None:
    """Configure the package logger to emit records of ``level`` and above."""
    global _handler
    logger = logging.getLogger(LOGGER_NAME)
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_handler)
    else:
        _handler.setStream(sys.stderr)
    logger.setLevel(level)
