"""
Shared fixtures: a valid settings object and a recording upstream stub
that stands in for the workflow engine.
"""

import base64
from typing import Callable, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from rag_gateway.app import create_app
from rag_gateway.config import GatewaySettings

SECRET = "0123456789abcdef0123456789abcdef"
QUERY_URL = "https://engine.example.com/webhook/rag-query"
INGEST_URL = "https://engine.example.com/webhook/rag-ingest"
ADMIN_URL = "https://engine.example.com/webhook/rag-admin"
ADMIN_USER = "admin"
ADMIN_PASS = "strong-password"


def basic_auth(username: str = ADMIN_USER, password: str = ADMIN_PASS) -> dict:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


class UpstreamStub:
    """httpx MockTransport handler that records every request it receives."""

    def __init__(self, responder: Optional[Callable[[httpx.Request], httpx.Response]] = None):
        self.requests: List[httpx.Request] = []
        self.responder = responder or (lambda request: httpx.Response(200, json={"status": "ok"}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def settings() -> GatewaySettings:
    return GatewaySettings(
        query_webhook_url=QUERY_URL,
        ingest_webhook_url=INGEST_URL,
        admin_webhook_url=ADMIN_URL,
        webhook_shared_secret=SECRET,
        admin_user=ADMIN_USER,
        admin_password=ADMIN_PASS,
        session_secret="session-secret-0123456789",
        log_json=False,
    )


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def client(settings, upstream) -> TestClient:
    app = create_app(settings, transport=httpx.MockTransport(upstream))
    return TestClient(app)
