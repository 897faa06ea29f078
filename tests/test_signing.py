"""
Unit Tests for Request Signing
==============================
Canonical string, metadata hashing and the signature envelope.
"""

import re

import pytest

from rag_gateway.signing import (
    build_canonical_string,
    canonical_metadata,
    compute_signature,
    create_signed_headers,
    metadata_hash,
    metadata_headers,
    sha256_hex,
    url_path_with_search,
)

SECRET = "0123456789abcdef0123456789abcdef"

CANONICAL_FIELDS = {
    "timestamp": "1700000000000",
    "nonce": "nonce-1",
    "method": "POST",
    "path": "/webhook/rag-query",
    "body_hash": "abc123",
    "metadata_hash": "def456",
}


class TestCanonicalString:
    """Tests for the canonical string builder."""

    def test_builds_seven_line_string(self):
        """Should join version and fields with newlines."""
        canonical = build_canonical_string(**CANONICAL_FIELDS)

        assert canonical == "v1\n1700000000000\nnonce-1\nPOST\n/webhook/rag-query\nabc123\ndef456"

    def test_uppercases_method(self):
        fields = dict(CANONICAL_FIELDS, method="post")

        assert build_canonical_string(**fields).split("\n")[3] == "POST"

    @pytest.mark.parametrize("field", sorted(CANONICAL_FIELDS))
    def test_any_field_change_changes_output(self, field):
        """Changing a single field must change the canonical string."""
        original = build_canonical_string(**CANONICAL_FIELDS)
        changed = build_canonical_string(**dict(CANONICAL_FIELDS, **{field: "other"}))

        assert changed != original

    def test_deterministic(self):
        assert build_canonical_string(**CANONICAL_FIELDS) == build_canonical_string(**CANONICAL_FIELDS)


class TestMetadataHash:
    """Tests for order-independent metadata hashing."""

    def test_canonical_metadata_is_sorted_compact_pairs(self):
        assert canonical_metadata({"endpoint": "chat", "action": "x"}) == '[["action","x"],["endpoint","chat"]]'

    def test_empty_metadata(self):
        assert canonical_metadata({}) == "[]"
        assert metadata_hash({}) == sha256_hex("[]")

    def test_insertion_order_does_not_matter(self):
        """Set-equal metadata must hash identically."""
        first = {"endpoint": "ingest", "source_type": "company", "file_name": "a.pdf"}
        second = {"file_name": "a.pdf", "source_type": "company", "endpoint": "ingest"}

        assert metadata_hash(first) == metadata_hash(second)

    def test_different_values_differ(self):
        assert metadata_hash({"endpoint": "chat"}) != metadata_hash({"endpoint": "admin"})

    def test_non_ascii_kept_verbatim(self):
        assert canonical_metadata({"file_name": "résumé.pdf"}) == '[["file_name","résumé.pdf"]]'


class TestUrlPath:
    """Path coverage must match what the receiver sees."""

    def test_path_only(self):
        assert url_path_with_search("https://engine.example.com/webhook/rag-query") == "/webhook/rag-query"

    def test_keeps_query_drops_fragment(self):
        url = "https://engine.example.com/webhook/rag-query?tenant=a&x=1#section"

        assert url_path_with_search(url) == "/webhook/rag-query?tenant=a&x=1"

    def test_bare_host(self):
        assert url_path_with_search("https://engine.example.com") == "/"

    def test_empty_query_marker_dropped(self):
        assert url_path_with_search("https://engine.example.com/webhook/rag-query?") == "/webhook/rag-query"
        assert url_path_with_search("https://engine.example.com/webhook/rag-query?#top") == "/webhook/rag-query"


class TestSignedHeaders:
    """Tests for the signature envelope."""

    def _envelope(self, **overrides):
        params = dict(
            secret=SECRET,
            method="POST",
            url="https://engine.example.com/webhook/rag-query",
            body=b'{"hello":"world"}',
            trace_id="trace-123",
            metadata={"endpoint": "chat"},
            timestamp="1700000000000",
            nonce="nonce-1",
        )
        params.update(overrides)
        return create_signed_headers(**params)

    def test_envelope_headers(self):
        """Should produce every X-RAG header."""
        envelope = self._envelope()
        headers = envelope.headers

        assert headers["X-RAG-Signature-Version"] == "v1"
        assert headers["X-RAG-Timestamp"] == "1700000000000"
        assert headers["X-RAG-Nonce"] == "nonce-1"
        assert headers["X-RAG-Trace-Id"] == "trace-123"
        assert headers["X-RAG-Method"] == "POST"
        assert headers["X-RAG-Path"] == "/webhook/rag-query"
        assert headers["X-RAG-Body-Sha256"] == sha256_hex(b'{"hello":"world"}')
        assert headers["X-RAG-Meta-Sha256"] == metadata_hash({"endpoint": "chat"})
        assert re.fullmatch(r"v1=[a-f0-9]{64}", headers["X-RAG-Signature"])
        assert "/webhook/rag-query" in envelope.canonical

    def test_signature_stable_for_identical_inputs(self):
        assert self._envelope().signature == self._envelope().signature

    def test_signature_matches_canonical(self):
        envelope = self._envelope()

        assert envelope.signature == compute_signature(SECRET, envelope.canonical)

    def test_body_change_changes_signature(self):
        assert self._envelope().signature != self._envelope(body=b'{"hello":"there"}').signature

    def test_metadata_change_changes_signature(self):
        assert self._envelope().signature != self._envelope(metadata={"endpoint": "admin"}).signature

    def test_defaults_timestamp_and_nonce(self):
        """Timestamp defaults to epoch ms and nonce to a fresh UUID."""
        first = self._envelope(timestamp=None, nonce=None)
        second = self._envelope(timestamp=None, nonce=None)

        assert first.headers["X-RAG-Timestamp"].isdigit()
        assert len(first.headers["X-RAG-Timestamp"]) >= 13
        assert first.headers["X-RAG-Nonce"] != second.headers["X-RAG-Nonce"]


class TestMetadataHeaders:
    def test_keys_sanitized(self):
        headers = metadata_headers({"source_type": "company", "file name!": "a.pdf", "endpoint": "ingest"})

        assert headers == {
            "X-RAG-Meta-source-type": b"company",
            "X-RAG-Meta-file-name-": b"a.pdf",
            "X-RAG-Meta-endpoint": b"ingest",
        }

    def test_non_ascii_values_sent_as_utf8(self):
        headers = metadata_headers({"file_name": "résumé.pdf"})

        assert headers == {"X-RAG-Meta-file-name": "résumé.pdf".encode("utf-8")}
