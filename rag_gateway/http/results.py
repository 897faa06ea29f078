"""
Upstream Call Outcomes
======================
Explicit variants for how a single upstream HTTP call ended. The
forwarder maps each variant onto the client-facing error taxonomy in one
place.
"""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class UpstreamReply:
    """The upstream answered (any HTTP status)."""
    status_code: int
    payload: Any
    elapsed_ms: int

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class UpstreamTimedOut:
    """The deadline passed before the upstream answered."""
    timeout_ms: int


@dataclass(frozen=True)
class UpstreamUnreachable:
    """DNS, connection, TLS or other transport failure."""
    error_type: str
    error_message: str


UpstreamOutcome = Union[UpstreamReply, UpstreamTimedOut, UpstreamUnreachable]
