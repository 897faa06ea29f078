"""
Signing Models
==============
Data models and enums for webhook request signing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class VerifyDecision(str, Enum):
    """Receiver-side decision types."""
    ALLOW = "ALLOW"
    REJECT = "REJECT"


class RejectReason(str, Enum):
    """Reasons for rejecting a signed request."""
    MISSING_SIGNATURE_HEADERS = "MISSING_SIGNATURE_HEADERS"
    UNSUPPORTED_VERSION = "UNSUPPORTED_VERSION"
    STALE_SIGNATURE = "STALE_SIGNATURE"
    BODY_MISMATCH = "BODY_MISMATCH"
    METADATA_MISMATCH = "METADATA_MISMATCH"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    REPLAY_DETECTED = "REPLAY_DETECTED"


@dataclass
class SignedRequest:
    """An outbound call to be signed."""
    method: str
    url: str
    body: bytes
    secret: str = field(repr=False)
    trace_id: str
    metadata: Dict[str, str] = field(default_factory=dict)
    timestamp: Optional[str] = None
    nonce: Optional[str] = None


@dataclass(frozen=True)
class SignatureEnvelope:
    """Transport headers for one signed call, plus the canonical string they cover."""
    headers: Dict[str, str]
    canonical: str

    @property
    def signature(self) -> str:
        return self.headers["X-RAG-Signature"]


@dataclass
class VerificationResult:
    """Result of verifying a signed request."""
    decision: VerifyDecision
    reason: Optional[str] = None
    reason_code: Optional[RejectReason] = None
    trace_id: Optional[str] = None
    nonce: Optional[str] = None
    method: Optional[str] = None
    path: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.decision == VerifyDecision.ALLOW
