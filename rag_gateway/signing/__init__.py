"""
Webhook Request Signing
=======================
HMAC-SHA256 signing of outbound webhook calls, plus the matching
receiver-side verification and replay protection.
"""

from .models import (
    RejectReason,
    SignatureEnvelope,
    SignedRequest,
    VerificationResult,
    VerifyDecision,
)
from .canonical import (
    SIGNATURE_VERSION,
    build_canonical_string,
    canonical_metadata,
    metadata_hash,
    sha256_hex,
    url_path_with_search,
)
from .signature import (
    compute_signature,
    create_signed_headers,
    generate_nonce,
    sign_request,
)
from .headers import ENVELOPE_HEADERS, metadata_headers, sanitize_metadata_key
from .verifier import MAX_TIMESTAMP_SKEW_MS, check_timestamp_skew, verify_signed_request
from .nonce_cache import NonceCache

__all__ = [
    # Models
    "RejectReason",
    "SignatureEnvelope",
    "SignedRequest",
    "VerificationResult",
    "VerifyDecision",
    # Canonical string
    "SIGNATURE_VERSION",
    "build_canonical_string",
    "canonical_metadata",
    "metadata_hash",
    "sha256_hex",
    "url_path_with_search",
    # Signing
    "compute_signature",
    "create_signed_headers",
    "generate_nonce",
    "sign_request",
    # Headers
    "ENVELOPE_HEADERS",
    "metadata_headers",
    "sanitize_metadata_key",
    # Verification
    "MAX_TIMESTAMP_SKEW_MS",
    "check_timestamp_skew",
    "verify_signed_request",
    # Nonce Cache
    "NonceCache",
]
