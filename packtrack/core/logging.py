from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Mapping

from ..middlewares import principal_ctx_var, request_id_ctx_var


class JsonLogFormatter(logging.Formatter):
    """Render log records as one JSON object per line.

    Keys from ``extra_data`` are merged at the top level so slot ids and
    gamepack numbers can be filtered on directly; a key that clashes with a
    record field is kept under a ``data_`` prefix instead.
    """

    def __init__(self, service: str = "packtrack") -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "message": record.getMessage(),
        }
        request_id = request_id_ctx_var.get()
        if request_id:
            payload["request_id"] = request_id
        principal = principal_ctx_var.get()
        if principal:
            payload["principal"] = principal
        extra = getattr(record, "extra_data", None)
        if isinstance(extra, Mapping):
            for key, value in extra.items():
                payload[f"data_{key}" if key in payload else key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


def configure_logging(level: str | int = logging.INFO, *, service: str = "packtrack") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter(service=service))
    logging.root.handlers = [handler]
    logging.root.setLevel(level)
    # RequestIdMiddleware already logs one line per request.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
