"""
Upstream Error Messages
=======================
Best-effort extraction of a human-readable message from an arbitrary
upstream error payload. Rules are tried in order; the first one that
yields a string wins.
"""

from typing import Any, Callable, List, Optional

MAX_MESSAGE_LENGTH = 280

MessageRule = Callable[[Any], Optional[str]]


def _string_payload(payload: Any) -> Optional[str]:
    # An empty string body falls through to the default
    if isinstance(payload, str):
        return payload[:MAX_MESSAGE_LENGTH] or None
    return None


def _error_string(payload: Any) -> Optional[str]:
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"][:MAX_MESSAGE_LENGTH]
    return None


def _error_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"][:MAX_MESSAGE_LENGTH]
    return None


def _message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"][:MAX_MESSAGE_LENGTH]
    return None


MESSAGE_RULES: List[MessageRule] = [
    _string_payload,
    _error_string,
    _error_message,
    _message,
]


def extract_error_message(payload: Any, fallback: str) -> str:
    """Return the first message a rule extracts from `payload`, else `fallback`."""
    for rule in MESSAGE_RULES:
        message = rule(payload)
        if message is not None:
            return message
    return fallback
