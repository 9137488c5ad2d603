"""Structured Logging — JSON formatter and setup for production observability.

Invariants:
    - Every line carries timestamp, level, logger, service and message
    - Store and route context (slug, event_id, error_code, path, ...) surfaced when present
    - JSON format in production, human-readable in development
    - setup_logging is idempotent: calling it twice never duplicates output

Design Decisions:
    - JSONFormatter over third-party libs: stdlib logging only, full control
    - Driver loggers (pymongo, httpx) capped at WARNING: heartbeats and per-request
      lines drown the application's own events
"""

import logging
import json
from datetime import datetime, timezone

SERVICE_NAME = "devevent-api"

EXTRA_FIELDS: tuple[str, ...] = (
    "error_code", "path", "slug", "event_id", "attempt", "status_code",
)

NOISY_LOGGERS: tuple[str, ...] = ("pymongo", "httpx", "httpcore")

_HANDLER_NAME = "devevent"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": SERVICE_NAME,
            "message": record.getMessage(),
        }
        log.update({
            key: record.__dict__[key]
            for key in EXTRA_FIELDS
            if record.__dict__.get(key) is not None
        })
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        # ObjectId / datetime extras fall back to str()
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the application handler on the root logger, replacing a previous one."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
