import asyncio

import pytest

from rag_gateway.errors import ErrorCode, GatewayError
from rag_gateway.routes.deps import call_unless_disconnected


class FakeRequest:
    """Just enough of starlette's Request for the disconnect watcher."""

    class url:
        path = "/chat"

    def __init__(self, disconnected: bool):
        self.disconnected = disconnected

    async def is_disconnected(self) -> bool:
        return self.disconnected


class TestCallUnlessDisconnected:
    @pytest.mark.asyncio
    async def test_returns_upstream_result(self):
        async def call():
            return {"answer": "hi"}

        assert await call_unless_disconnected(FakeRequest(False), call) == {"answer": "hi"}

    @pytest.mark.asyncio
    async def test_disconnect_abandons_upstream_call(self):
        cancelled = asyncio.Event()

        async def call():
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(GatewayError) as exc_info:
            await call_unless_disconnected(FakeRequest(True), call)

        assert exc_info.value.code == ErrorCode.CLIENT_DISCONNECTED
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_upstream_errors_propagate(self):
        async def call():
            raise GatewayError(ErrorCode.UPSTREAM_TIMEOUT, 504, "Upstream webhook request timed out")

        with pytest.raises(GatewayError) as exc_info:
            await call_unless_disconnected(FakeRequest(False), call)

        assert exc_info.value.code == ErrorCode.UPSTREAM_TIMEOUT
