from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_ctx_var: ContextVar[str | None] = ContextVar("principal_id", default=None)
logger = logging.getLogger("packtrack.request")

HEADER_NAME = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with a correlation id and log its outcome.

    Scanner terminals may send their own id so a scan can be traced from the
    device log to the service log; otherwise a fresh UUID is issued.
    """

    def __init__(self, app, header_name: str = HEADER_NAME) -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self.header_name) or uuid4().hex
        token = request_id_ctx_var.set(request_id)
        principal_token = principal_ctx_var.set(None)
        request.state.request_id = request_id
        started = time.perf_counter()
        try:
            response = await call_next(request)
            principal = getattr(request.state, "principal", None)
        finally:
            request_id_ctx_var.reset(token)
            principal_ctx_var.reset(principal_token)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[self.header_name] = request_id
        response.headers.setdefault("X-Response-Time", f"{elapsed_ms:.2f}ms")
        details = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": elapsed_ms,
        }
        if principal:
            details["principal"] = principal
        logger.info("request.completed", extra={"extra_data": details})
        return response
