"""Stashboard client logging.

Each record becomes one JSON object per line on stdout. Request context
passed through ``extra=`` (method, path, status, timing) is lifted into the
object so log pipelines can filter on it.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional

from stashboard.config import settings

LOGGER_PREFIX = "stashboard"
REQUEST_FIELDS = ("method", "path", "status_code", "duration_ms")


class JSONFormatter(logging.Formatter):
    """Renders a record and its request context as a JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (field, getattr(record, field))
            for field in REQUEST_FIELDS
            if getattr(record, field, None) is not None
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Return ``stashboard.<name>`` with a JSON stdout handler attached once.

    ``level`` overrides ``Settings.log_level``; unknown names fall back to INFO.
    """
    logger = logging.getLogger(f"{LOGGER_PREFIX}.{name}")
    if not any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    resolved = getattr(logging, (level or settings.log_level).upper(), None)
    logger.setLevel(resolved if isinstance(resolved, int) else logging.INFO)
    return logger
