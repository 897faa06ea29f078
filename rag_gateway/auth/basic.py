"""
Admin Basic Authentication
==========================
Checks an `Authorization: Basic ...` header against the configured admin
credentials without leaking which part mismatched.
"""

import base64
import binascii
import hmac
from dataclasses import dataclass
from typing import Optional

BASIC_PREFIX = "Basic "


@dataclass(frozen=True)
class AdminAuthResult:
    """Per-request outcome of the admin credential check."""
    ok: bool
    username: Optional[str] = None


def safe_equal(left: str, right: str) -> bool:
    """
    Constant-time string comparison.

    Differing lengths return early; that leaks only the length.
    """
    left_bytes = left.encode("utf-8")
    right_bytes = right.encode("utf-8")
    if len(left_bytes) != len(right_bytes):
        return False
    return hmac.compare_digest(left_bytes, right_bytes)


def verify_admin_basic_auth(
    auth_header: Optional[str],
    expected_user: str,
    expected_pass: str,
) -> AdminAuthResult:
    """
    Verify a Basic credential header.

    Rejects a missing header, a non-Basic scheme, undecodable base64 and a
    decoded value without ':'. Username and password are both compared on
    every call.
    """
    if not auth_header or not auth_header.startswith(BASIC_PREFIX):
        return AdminAuthResult(ok=False)

    encoded = auth_header[len(BASIC_PREFIX):].strip()
    if not encoded:
        return AdminAuthResult(ok=False)

    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return AdminAuthResult(ok=False)

    username, separator, password = decoded.partition(":")
    if not separator:
        return AdminAuthResult(ok=False)

    valid_user = safe_equal(username, expected_user)
    valid_pass = safe_equal(password, expected_pass)

    if not valid_user or not valid_pass:
        return AdminAuthResult(ok=False)

    return AdminAuthResult(ok=True, username=username)
