"""
Envelope Headers
================
Names of the X-RAG-* transport headers and helpers for reading and
writing them.
"""

import re
from typing import Dict, Mapping, Optional

HEADER_VERSION = "X-RAG-Signature-Version"
HEADER_TIMESTAMP = "X-RAG-Timestamp"
HEADER_NONCE = "X-RAG-Nonce"
HEADER_TRACE_ID = "X-RAG-Trace-Id"
HEADER_METHOD = "X-RAG-Method"
HEADER_PATH = "X-RAG-Path"
HEADER_BODY_SHA256 = "X-RAG-Body-Sha256"
HEADER_META_SHA256 = "X-RAG-Meta-Sha256"
HEADER_SIGNATURE = "X-RAG-Signature"
META_HEADER_PREFIX = "X-RAG-Meta-"

# All required together
ENVELOPE_HEADERS = (
    HEADER_VERSION,
    HEADER_TIMESTAMP,
    HEADER_NONCE,
    HEADER_TRACE_ID,
    HEADER_METHOD,
    HEADER_PATH,
    HEADER_BODY_SHA256,
    HEADER_META_SHA256,
    HEADER_SIGNATURE,
)

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9-]")


def sanitize_metadata_key(key: str) -> str:
    """Replace every character outside [A-Za-z0-9-] with '-'."""
    return _UNSAFE_KEY_CHARS.sub("-", key)


def metadata_headers(metadata: Mapping[str, str]) -> Dict[str, bytes]:
    """
    One X-RAG-Meta-<Key> header per metadata entry.

    Values go out as UTF-8 bytes so non-ASCII file names survive transport.
    The metadata hash still covers the logical string values.
    """
    return {
        f"{META_HEADER_PREFIX}{sanitize_metadata_key(key)}": value.encode("utf-8")
        for key, value in metadata.items()
    }


def get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup over a plain mapping."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None
