"""Logging setup.

Code logs a short event name as the message (``order.transition``) and puts
the details in ``extra={"extra_data": {...}}``. The JSON formatter emits them
under ``data`` next to the request id and principal of the current request.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from ..middlewares import current_request_id, principal_ctx_var
from .config import settings

# Replaced by our own request.completed line.
MUTED_LOGGERS = ("uvicorn.access",)


def _context() -> dict[str, Any]:
    context: dict[str, Any] = {}
    request_id = current_request_id()
    if request_id:
        context["request_id"] = request_id
    principal = principal_ctx_var.get()
    if principal:
        context["principal"] = principal
    return context


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(),
        }
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, Mapping) and extra:
            payload["data"] = dict(extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


class TextLogFormatter(logging.Formatter):
    """Human-readable lines for a terminal: ``... message key=value ...``."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {**_context(), **(getattr(record, "extra_data", None) or {})}
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter() if settings.LOG_JSON else TextLogFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel(settings.LOG_LEVEL)
    for name in MUTED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
