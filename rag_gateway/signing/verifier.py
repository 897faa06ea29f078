"""
Signature Verification
======================
Receiver-side mirror of the signer. A webhook endpoint that accepts calls
from this gateway runs the same checks to authenticate them.
"""

import hmac
import time
from typing import Mapping, Optional

import structlog

from .canonical import SIGNATURE_VERSION, build_canonical_string, metadata_hash, sha256_hex
from .headers import (
    ENVELOPE_HEADERS,
    HEADER_BODY_SHA256,
    HEADER_META_SHA256,
    HEADER_METHOD,
    HEADER_NONCE,
    HEADER_PATH,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    HEADER_TRACE_ID,
    HEADER_VERSION,
    get_header,
)
from .models import RejectReason, VerificationResult, VerifyDecision
from .nonce_cache import NonceCache
from .signature import compute_signature

logger = structlog.get_logger(__name__)

MAX_TIMESTAMP_SKEW_MS = 300_000  # 5 minutes


def _reject(reason_code: RejectReason, reason: str, trace_id: Optional[str] = None) -> VerificationResult:
    logger.warning("Signed request rejected", reason_code=reason_code.value, trace_id=trace_id)
    return VerificationResult(
        decision=VerifyDecision.REJECT,
        reason=reason,
        reason_code=reason_code,
        trace_id=trace_id,
    )


def check_timestamp_skew(
    timestamp: str,
    max_skew_ms: int = MAX_TIMESTAMP_SKEW_MS,
    now_ms: Optional[int] = None,
) -> bool:
    """
    Check if an epoch-millisecond timestamp is within acceptable skew.

    Non-numeric timestamps are never acceptable.
    """
    try:
        signed_at = int(timestamp)
    except (TypeError, ValueError):
        return False
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return abs(now_ms - signed_at) <= max_skew_ms


def verify_signed_request(
    headers: Mapping[str, str],
    secret: str,
    *,
    body: Optional[bytes] = None,
    metadata: Optional[Mapping[str, str]] = None,
    now_ms: Optional[int] = None,
    max_skew_ms: int = MAX_TIMESTAMP_SKEW_MS,
    nonce_cache: Optional[NonceCache] = None,
) -> VerificationResult:
    """
    Verify the X-RAG-* envelope of an incoming webhook call.

    Args:
        headers: Received headers (any case)
        secret: Shared webhook secret
        body: Raw received body; when given, its hash must match the envelope
        metadata: Logical metadata; when given, its hash must match the envelope
        now_ms: Current time in epoch milliseconds (defaults to now)
        max_skew_ms: Accepted clock difference either way
        nonce_cache: When given, nonces already seen are rejected

    Returns:
        VerificationResult with decision ALLOW or REJECT
    """
    values = {name: get_header(headers, name) for name in ENVELOPE_HEADERS}
    trace_id = values[HEADER_TRACE_ID] or None

    missing = [name for name, value in values.items() if not value]
    if missing:
        return _reject(
            RejectReason.MISSING_SIGNATURE_HEADERS,
            "Missing signature headers: " + ", ".join(missing),
            trace_id,
        )

    signature = values[HEADER_SIGNATURE]
    if values[HEADER_VERSION] != SIGNATURE_VERSION or not signature.startswith(f"{SIGNATURE_VERSION}="):
        return _reject(RejectReason.UNSUPPORTED_VERSION, "Unsupported signature version", trace_id)

    timestamp = values[HEADER_TIMESTAMP]
    if not check_timestamp_skew(timestamp, max_skew_ms, now_ms):
        return _reject(
            RejectReason.STALE_SIGNATURE,
            "Signature timestamp outside allowed window",
            trace_id,
        )

    body_hash = values[HEADER_BODY_SHA256]
    if body is not None and not hmac.compare_digest(sha256_hex(body), body_hash):
        return _reject(RejectReason.BODY_MISMATCH, "Body does not match signed hash", trace_id)

    meta_hash = values[HEADER_META_SHA256]
    if metadata is not None and not hmac.compare_digest(metadata_hash(metadata), meta_hash):
        return _reject(RejectReason.METADATA_MISMATCH, "Metadata does not match signed hash", trace_id)

    method = values[HEADER_METHOD].upper()
    path = values[HEADER_PATH]
    nonce = values[HEADER_NONCE]
    canonical = build_canonical_string(
        timestamp=timestamp,
        nonce=nonce,
        method=method,
        path=path,
        body_hash=body_hash,
        metadata_hash=meta_hash,
    )
    expected = compute_signature(secret, canonical)
    if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
        return _reject(RejectReason.INVALID_SIGNATURE, "Invalid webhook signature", trace_id)

    # Record only authenticated nonces so forged calls cannot fill the cache
    if nonce_cache is not None and not nonce_cache.check_and_store(nonce):
        return _reject(RejectReason.REPLAY_DETECTED, "Nonce already used", trace_id)

    return VerificationResult(
        decision=VerifyDecision.ALLOW,
        trace_id=trace_id,
        nonce=nonce,
        method=method,
        path=path,
    )
