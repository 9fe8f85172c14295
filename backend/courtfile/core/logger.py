"""
Application logger
"""
import logging
import sys
from contextvars import ContextVar

from courtfile.core.config import settings

# Set per request by CorrelationMiddleware
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


class CorrelationFilter(logging.Filter):
    """Stamp every record with the current request's correlation id."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = correlation_id_var.get()
        return True


def setup_logging() -> logging.Logger:
    root = logging.getLogger()
    if not any(getattr(h, "_courtfile", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)s [%(name)s] [cid=%(correlation_id)s] %(message)s"
            )
        )
        handler.addFilter(CorrelationFilter())
        handler._courtfile = True
        root.addHandler(handler)
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    return logging.getLogger("courtfile")


logger = setup_logging()
