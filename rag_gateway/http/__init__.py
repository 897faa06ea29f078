from .client import UpstreamForwarder, encode_json_body, parse_response_payload
from .messages import MAX_MESSAGE_LENGTH, extract_error_message
from .results import UpstreamOutcome, UpstreamReply, UpstreamTimedOut, UpstreamUnreachable

__all__ = [
    "UpstreamForwarder",
    "encode_json_body",
    "parse_response_payload",
    "MAX_MESSAGE_LENGTH",
    "extract_error_message",
    "UpstreamOutcome",
    "UpstreamReply",
    "UpstreamTimedOut",
    "UpstreamUnreachable",
]
