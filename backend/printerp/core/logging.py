"""
Logging setup for the ledger service.

Modules log through ``logging.getLogger(__name__)``; everything under the
``printerp`` namespace shares the handler installed here.
"""
import logging
import sys
import threading
from typing import Optional

LOGGER_NAMESPACE = "printerp"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False
_lock = threading.Lock()


def configure_logging(level: str = "INFO", handler: Optional[logging.Handler] = None) -> None:
    """Configure the printerp logger hierarchy (idempotent)."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(LOGGER_NAMESPACE)
    root_logger.setLevel(level.upper())
    root_logger.propagate = False

    h = handler or logging.StreamHandler(sys.stderr)
    h.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Reset logging configuration. Used by tests."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
    logger.propagate = True
