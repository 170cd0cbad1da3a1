from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Install a single stream handler on the package logger (idempotent)."""

    logger = logging.getLogger("market_ops")
    logger.setLevel(level)
    if not any(getattr(h, "_market_ops", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._market_ops = True
        logger.addHandler(handler)
