"""
Logging setup for the Activity Tracker API.

Every record passes through ``RequestContextFilter``, which stamps it with
the current request id and caller id (when there is a request), so service
code can log plainly with ``logger.info(...)`` and still be traceable.

    development / testing   one coloured line per record
    production              one JSON object per line

LOG_LEVEL (env or config) overrides the default level.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

# extra= keys that end up as top-level JSON fields
LOG_FIELDS = (
    "request_id",
    "user_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
    "project_id",
    "activity_id",
    "event_type",
)

_HANDLER_MARKER = "_activity_tracker"


class RequestContextFilter(logging.Filter):
    """Attach request_id / user_id from ``flask.g`` unless the caller set them."""

    def filter(self, record):
        if has_request_context():
            if getattr(record, "request_id", None) is None:
                record.request_id = getattr(g, "request_id", None)
            if getattr(record, "user_id", None) is None:
                user = getattr(g, "current_user", None)
                record.user_id = user.id if user is not None else None
        return True


class JSONFormatter(logging.Formatter):

    def format(self, record):
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in LOG_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """``12:03:44 INFO  [req 3fa1c2 user 4] tracker.services...: message``"""

    LEVEL_COLOURS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record):
        colour = self.LEVEL_COLOURS.get(record.levelno, "")
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        context = []
        if getattr(record, "request_id", None):
            context.append(f"req {record.request_id}")
        if getattr(record, "user_id", None):
            context.append(f"user {record.user_id}")
        prefix = f"[{' '.join(context)}] " if context else ""
        line = f"{colour}{stamp} {record.levelname:<5}{self.RESET} {prefix}{record.name}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(app):
    """Install one stderr handler on the root logger.

    Calling it again (the test suite builds several apps) replaces the
    handler instead of stacking another.
    """
    production = not (app.config.get("DEBUG") or app.config.get("TESTING"))
    default_level = "INFO" if production else "DEBUG"
    level_name = (os.getenv("LOG_LEVEL") or app.config.get("LOG_LEVEL") or default_level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if production else ConsoleFormatter())
    handler.addFilter(RequestContextFilter())
    setattr(handler, _HANDLER_MARKER, True)

    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not getattr(h, _HANDLER_MARKER, False)]
    root.addHandler(handler)
    root.setLevel(level)
    app.logger.setLevel(level)

    # third-party chatter stays at WARNING
    for name in ("werkzeug", "sqlalchemy.engine", "flask_limiter"):
        logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.debug("Logging ready (level=%s, %s)", level_name, "json" if production else "console")
