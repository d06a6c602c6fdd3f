"""Logging setup for valut: plain or JSON lines on stderr."""

from __future__ import annotations

import json
import logging
from datetime import UTC, date, datetime
from typing import Any

LOGGING_CONFIG_FLAG = "_logging_configured"
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
FEED_SOURCE = "cbr"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class JSONLogFormatter(logging.Formatter):
    """Render a record as one compact JSON object per line.

    Fields passed through ``extra`` are merged into the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_record_extras(record))

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info

        return json.dumps(payload, separators=(",", ":"), default=str)


def setup_logging(app) -> None:
    """Install a single stderr handler on the root logger.

    Safe to call more than once per app.
    """

    if app.config.get(LOGGING_CONFIG_FLAG):
        return

    level = _level_from(app.config.get("LOG_LEVEL", "INFO"))
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(_build_formatter(app.config))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # APScheduler logs every tick at INFO.
    logging.getLogger("apscheduler").setLevel(max(level, logging.WARNING))
    for name in ("werkzeug", app.logger.name):
        child = logging.getLogger(name)
        child.handlers = []
        child.setLevel(level)
        child.propagate = True

    app.config[LOGGING_CONFIG_FLAG] = True


def refresh_log_extra(
    *,
    event: str,
    status: str,
    day: date | None = None,
    currency: str | None = None,
    duration_ms: float | None = None,
    error: str | None = None,
) -> dict[str, Any]:
    """Build the ``extra`` mapping attached to refresh-related log records."""

    extra: dict[str, Any] = {"event": event, "status": status, "source": FEED_SOURCE}
    if day is not None:
        extra["day"] = day.isoformat()
    if currency is not None:
        extra["currency"] = currency
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 3)
    if error:
        extra["error"] = error
    return extra


def _build_formatter(config) -> logging.Formatter:
    json_enabled = config.get("LOG_JSON_ENABLED", False)
    if isinstance(json_enabled, str):
        json_enabled = json_enabled.strip().lower() in {"1", "true", "yes", "on"}
    if json_enabled:
        return JSONLogFormatter()
    return logging.Formatter(config.get("LOG_FORMAT") or DEFAULT_LOG_FORMAT)


def _record_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
    }


def _level_from(value: Any) -> int:
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value or "INFO").upper())
    return resolved if isinstance(resolved, int) else logging.INFO
