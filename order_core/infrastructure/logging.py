"""
Logging infrastructure.

Provides logging utilities for scripts and the demo.
"""
import logging


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Get logger instance with a stream handler attached.

    Args:
        name: Logger name (usually module name)
        level: Level set on first configuration

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level)
    return logger
