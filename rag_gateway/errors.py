"""
Gateway Error Taxonomy
======================
Stable client-facing error codes and the uniform JSON error envelope.

CRITICAL: Never expose internal exception details to clients. Anything
beyond the taxonomy below goes to the structured log, keyed by trace id.
"""

from enum import Enum
from typing import Any, Dict, Optional

from starlette.responses import JSONResponse


class ErrorCode(str, Enum):
    """Client-visible error codes."""
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_SOURCE_TYPE = "INVALID_SOURCE_TYPE"
    INVALID_FILE = "INVALID_FILE"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    EMPTY_FILE = "EMPTY_FILE"
    INVALID_DOC_ID = "INVALID_DOC_ID"
    UNAUTHORIZED = "UNAUTHORIZED"
    UPSTREAM_REJECTED = "UPSTREAM_REJECTED"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    UPSTREAM_BAD_RESPONSE = "UPSTREAM_BAD_RESPONSE"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    CLIENT_DISCONNECTED = "CLIENT_DISCONNECTED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ConfigurationError(Exception):
    """Raised at startup when the environment is missing or invalid."""


class GatewayError(Exception):
    """Base exception for every error that maps onto the error envelope."""

    def __init__(
        self,
        code: ErrorCode,
        status_code: int,
        message: str,
        details: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.status_code = status_code
        self.message = message
        self.details = details
        self.headers = headers
        super().__init__(f"[{code.value}] {message} (Status: {status_code})")


class ProxyError(GatewayError):
    """Raised at the forwarder boundary when an upstream call does not succeed."""


class AdminAuthError(GatewayError):
    """Missing or invalid admin credentials."""

    def __init__(self, realm: str):
        super().__init__(
            ErrorCode.UNAUTHORIZED,
            401,
            "Missing or invalid admin credentials",
            headers={"WWW-Authenticate": f'Basic realm="{realm}"'},
        )
        self.realm = realm


def error_envelope(
    code: ErrorCode,
    message: str,
    trace_id: str,
    details: Any = None,
) -> Dict[str, Any]:
    """Build the `{error: {...}}` body. `details` is omitted when None."""
    error: Dict[str, Any] = {
        "code": code.value,
        "message": message,
        "trace_id": trace_id,
    }
    if details is not None:
        error["details"] = details
    return {"error": error}


def error_response(
    status_code: int,
    code: ErrorCode,
    message: str,
    trace_id: str,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_envelope(code, message, trace_id, details),
        headers=headers,
    )


def gateway_error_response(exc: GatewayError, trace_id: str) -> JSONResponse:
    """Render a GatewayError into the uniform envelope."""
    return error_response(
        exc.status_code,
        exc.code,
        exc.message,
        trace_id,
        details=exc.details,
        headers=exc.headers,
    )
