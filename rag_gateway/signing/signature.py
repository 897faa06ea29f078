"""
Signature Functions
===================
HMAC-SHA256 signing of outbound webhook calls.
"""

import hmac
import hashlib
import time
import uuid
from typing import Mapping, Optional

from .canonical import (
    SIGNATURE_VERSION,
    build_canonical_string,
    metadata_hash,
    sha256_hex,
    url_path_with_search,
)
from .headers import (
    HEADER_BODY_SHA256,
    HEADER_META_SHA256,
    HEADER_METHOD,
    HEADER_NONCE,
    HEADER_PATH,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    HEADER_TRACE_ID,
    HEADER_VERSION,
)
from .models import SignatureEnvelope, SignedRequest


def compute_signature(secret: str, canonical: str) -> str:
    """
    Compute the versioned signature over a canonical string.

    Args:
        secret: Shared webhook secret
        canonical: Output of build_canonical_string

    Returns:
        "v1=" followed by the hex-encoded HMAC-SHA256 digest
    """
    digest = hmac.new(
        secret.encode("utf-8"),
        canonical.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def generate_nonce() -> str:
    """Generate a single-use nonce for request signing."""
    return str(uuid.uuid4())


def current_timestamp_ms() -> str:
    """Epoch milliseconds as a decimal string."""
    return str(int(time.time() * 1000))


def create_signed_headers(
    secret: str,
    method: str,
    url: str,
    body: bytes,
    trace_id: str,
    metadata: Optional[Mapping[str, str]] = None,
    timestamp: Optional[str] = None,
    nonce: Optional[str] = None,
) -> SignatureEnvelope:
    """
    Create the signature envelope for one outbound call.

    Timestamp and nonce default to "now" and a fresh UUID; pass them
    explicitly to get a reproducible envelope.
    """
    timestamp = timestamp if timestamp is not None else current_timestamp_ms()
    nonce = nonce if nonce is not None else generate_nonce()
    method = method.upper()
    path = url_path_with_search(url)
    body_hash = sha256_hex(body)
    meta_hash = metadata_hash(metadata or {})

    canonical = build_canonical_string(
        timestamp=timestamp,
        nonce=nonce,
        method=method,
        path=path,
        body_hash=body_hash,
        metadata_hash=meta_hash,
    )

    return SignatureEnvelope(
        headers={
            HEADER_VERSION: SIGNATURE_VERSION,
            HEADER_TIMESTAMP: timestamp,
            HEADER_NONCE: nonce,
            HEADER_TRACE_ID: trace_id,
            HEADER_METHOD: method,
            HEADER_PATH: path,
            HEADER_BODY_SHA256: body_hash,
            HEADER_META_SHA256: meta_hash,
            HEADER_SIGNATURE: compute_signature(secret, canonical),
        },
        canonical=canonical,
    )


def sign_request(request: SignedRequest) -> SignatureEnvelope:
    """Create the signature envelope for a SignedRequest."""
    return create_signed_headers(
        secret=request.secret,
        method=request.method,
        url=request.url,
        body=request.body,
        trace_id=request.trace_id,
        metadata=request.metadata,
        timestamp=request.timestamp,
        nonce=request.nonce,
    )
