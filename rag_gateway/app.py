"""
Application Factory
===================
Builds the FastAPI gateway: settings are loaded once here and injected
through `app.state`; a configuration problem stops the process.

Usage:
    uvicorn rag_gateway.app:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import GatewaySettings, load_settings
from .errors import ErrorCode, GatewayError, error_response, gateway_error_response
from .health import create_health_router
from .http import UpstreamForwarder
from .log import configure_logging
from .metrics import get_metrics_app
from .middleware import TraceMiddleware
from .routes import admin_router, chat_router
from .routes.deps import get_trace_id
from .schemas import validation_details

SERVICE_NAME = "rag-gateway"

logger = structlog.get_logger(__name__)


async def _gateway_error_handler(request: Request, exc: GatewayError):
    return gateway_error_response(exc, get_trace_id(request))


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(
        400,
        ErrorCode.INVALID_REQUEST,
        "Invalid request",
        get_trace_id(request),
        details=[
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in exc.errors()
        ],
    )


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        code = ErrorCode.NOT_FOUND
    elif exc.status_code == 405:
        code = ErrorCode.METHOD_NOT_ALLOWED
    elif exc.status_code < 500:
        code = ErrorCode.INVALID_REQUEST
    else:
        code = ErrorCode.INTERNAL_ERROR
    message = str(exc.detail) if exc.status_code < 500 else "Unexpected server error"
    return error_response(
        exc.status_code,
        code,
        message,
        get_trace_id(request),
        headers=getattr(exc, "headers", None),
    )


def create_app(
    settings: Optional[GatewaySettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Create the gateway application.

    Args:
        settings: Pre-built settings; loaded from the environment when omitted
        transport: Optional httpx transport for upstream calls (tests)

    Raises:
        ConfigurationError: if the environment is missing or invalid
    """
    if settings is None:
        settings = load_settings()

    configure_logging(level=settings.log_level, json_output=settings.log_json)

    forwarder = UpstreamForwarder(
        secret=settings.webhook_shared_secret,
        transport=transport,
        default_timeout_ms=settings.query_timeout_ms,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "gateway_started",
            version=__version__,
            log_retention_days=settings.log_retention_days,
            signature_max_skew_ms=settings.signature_max_skew_ms,
        )
        yield
        await forwarder.aclose()

    app = FastAPI(title=SERVICE_NAME, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.forwarder = forwarder

    app.add_middleware(TraceMiddleware)

    app.add_exception_handler(GatewayError, _gateway_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    app.include_router(create_health_router(SERVICE_NAME, __version__))
    app.include_router(chat_router)
    app.include_router(admin_router)
    app.mount("/metrics", get_metrics_app())

    return app
