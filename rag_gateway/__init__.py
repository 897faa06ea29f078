"""
RAG Signing Gateway
===================
Authenticates the chat and admin UIs, signs their requests with the
X-RAG-* HMAC envelope, forwards them to the workflow engine's webhooks and
validates what comes back.
"""

__version__ = "0.1.0"

# Errors
from rag_gateway.errors import (
    AdminAuthError,
    ConfigurationError,
    ErrorCode,
    GatewayError,
    ProxyError,
)

# Configuration
from rag_gateway.config import GatewaySettings, load_settings

# Signing
from rag_gateway.signing import (
    NonceCache,
    build_canonical_string,
    compute_signature,
    create_signed_headers,
    verify_signed_request,
)

# Admin Auth
from rag_gateway.auth import AdminAuthResult, verify_admin_basic_auth

# Upstream
from rag_gateway.http import UpstreamForwarder

# Application
from rag_gateway.app import create_app

__all__ = [
    # Errors
    "AdminAuthError",
    "ConfigurationError",
    "ErrorCode",
    "GatewayError",
    "ProxyError",
    # Configuration
    "GatewaySettings",
    "load_settings",
    # Signing
    "NonceCache",
    "build_canonical_string",
    "compute_signature",
    "create_signed_headers",
    "verify_signed_request",
    # Admin Auth
    "AdminAuthResult",
    "verify_admin_basic_auth",
    # Upstream
    "UpstreamForwarder",
    # Application
    "create_app",
]
