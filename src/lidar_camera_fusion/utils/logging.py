"""Simple logging utility.

Provides a lightweight wrapper around Python's standard logging
module so that every stage of the fusion pipeline reports frame skips,
rejected detections and per-frame summaries in the same format.
"""

import logging


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """Return a configured logger with a preset format.

    The handler is attached only once per logger name, so calling this
    at import time in several modules does not duplicate output.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt='[%(asctime)s] [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger
