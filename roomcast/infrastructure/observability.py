"""Structured Logging — one JSON line per record, carrying command and store context.

Invariants:
    - Every line has timestamp, level, logger name and message
    - Command context (command, event_type, collection, error_code, user_id, room_id,
      sequence, version) is copied from `extra=` only when present
    - setup_logging() replaces the handler it installed earlier instead of stacking another
    - Driver loggers (aiosqlite, asyncpg, sqlalchemy.engine) never log below WARNING

Design Decisions:
    - stdlib logging with a small formatter: records come from module loggers
      (logging.getLogger(__name__)) in every layer
    - Called by the application root (main.open_backend), which removes the handler on exit
"""

import logging
import json
from datetime import datetime, timezone

CONTEXT_KEYS = (
    "command", "event_type", "collection", "error_code",
    "user_id", "room_id", "sequence", "version",
)
_DRIVER_LOGGERS = ("aiosqlite", "asyncpg", "sqlalchemy.engine")
_HANDLER_NAME = "roomcast"


class JSONFormatter(logging.Formatter):
    """Format records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log.update(
            (key, record.__dict__[key])
            for key in CONTEXT_KEYS
            if record.__dict__.get(key) is not None
        )
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the roomcast handler on the root logger and return it."""
    for existing in list(logging.root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            logging.root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(command)s]: %(message)s",
            defaults={"command": "-"},
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
