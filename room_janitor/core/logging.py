# room_janitor/core/logging.py

import logging
import sys


DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level_name: str = "INFO") -> None:
    """
    Configure process-wide logging.

    - Sets root logger level (default: INFO, set via --log-level / LOG_LEVEL)
    - Sends logs to stdout so the container runtime picks them up
    - Reduces noise from httpx and Uvicorn access logs
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    # If logging is already configured (e.g. by a test runner), don't re-add handlers
    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(DEFAULT_FORMAT)
    handler.setFormatter(formatter)

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Quiet down noisy libraries; every API call would otherwise log a line
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    # Probes hit /health and /metrics constantly
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Helper to get a logger with the janitor's configuration applied.

    Usage:
        from room_janitor.core.logging import get_logger

        logger = get_logger(__name__)
        logger.info("Sweep finished")
    """
    return logging.getLogger(name)
