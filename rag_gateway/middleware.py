"""
Trace Middleware
================
Assigns every request a trace id at entry, binds it into the log context,
logs request and response, and turns any exception nobody classified into
the INTERNAL_ERROR envelope.

Usage:
    app.add_middleware(TraceMiddleware)
"""

import time
import uuid

import structlog
from starlette.datastructures import MutableHeaders

from .errors import ErrorCode, error_response
from .log import bind_trace_id

TRACE_HEADER = "X-Trace-Id"

logger = structlog.get_logger("rag_gateway.http")


def create_trace_id() -> str:
    return str(uuid.uuid4())


class TraceMiddleware:
    """Pure ASGI middleware; request.state.trace_id is set for the handlers."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        trace_id = create_trace_id()
        scope.setdefault("state", {})["trace_id"] = trace_id
        bind_trace_id(trace_id)

        method = scope.get("method", "")
        path = scope.get("path", "")
        start_time = time.monotonic()
        status_code = 500
        response_started = False

        logger.info("request_received", method=method, path=path)

        async def send_wrapper(message):
            nonlocal status_code, response_started
            if message["type"] == "http.response.start":
                response_started = True
                status_code = message.get("status", 500)
                headers = MutableHeaders(scope=message)
                headers[TRACE_HEADER] = trace_id
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            logger.exception("request_crashed", method=method, path=path)
            if response_started:
                raise
            response = error_response(
                500,
                ErrorCode.INTERNAL_ERROR,
                "Unexpected server error",
                trace_id,
            )
            await response(scope, receive, send_wrapper)
        finally:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            level = "info" if status_code < 400 else "warning" if status_code < 500 else "error"
            getattr(logger, level)(
                "request_completed",
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=duration_ms,
            )
