"""
Canonical String
================
The exact text an outbound webhook signature covers. Any deviation on
either side invalidates the signature, so everything here is a pure
function of its inputs.
"""

import hashlib
import json
from typing import Mapping, Union

import httpx

SIGNATURE_VERSION = "v1"


def sha256_hex(data: Union[bytes, str]) -> str:
    """Hex-encoded SHA-256 of bytes, or of a string encoded as UTF-8."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def canonical_metadata(metadata: Mapping[str, str]) -> str:
    """
    Serialize metadata as a compact JSON array of `[key, value]` pairs
    sorted by key.

    Metadata is assembled at several call sites, so insertion order must
    not change the hash.
    """
    pairs = [[key, metadata[key]] for key in sorted(metadata)]
    return json.dumps(pairs, separators=(",", ":"), ensure_ascii=False)


def metadata_hash(metadata: Mapping[str, str]) -> str:
    return sha256_hex(canonical_metadata(metadata))


def url_path_with_search(url: str) -> str:
    """
    Path plus query string of the target URL, fragment excluded.

    This is exactly what the receiving endpoint sees as its request target.
    """
    parsed = httpx.URL(url)
    path = parsed.raw_path.decode("ascii")
    # An empty query marker is not part of the target
    if not parsed.query and path.endswith("?"):
        path = path[:-1]
    return path if path else "/"


def build_canonical_string(
    timestamp: str,
    nonce: str,
    method: str,
    path: str,
    body_hash: str,
    metadata_hash: str,
) -> str:
    """
    Build the newline-joined canonical string:

        v1
        <timestamp>
        <nonce>
        <METHOD>
        <path+query>
        <sha256(body)>
        <sha256(canonical metadata)>
    """
    return "\n".join([
        SIGNATURE_VERSION,
        timestamp,
        nonce,
        method.upper(),
        path,
        body_hash,
        metadata_hash,
    ])
