"""
Route Dependencies
==================
Shared FastAPI dependencies: injected settings and forwarder, the request
trace id, admin authentication, and disconnect-aware upstream calls.
"""

import asyncio
from typing import Any, Awaitable, Callable

from fastapi import Request

from ..auth import AdminAuthResult, verify_admin_basic_auth
from ..config import GatewaySettings
from ..errors import AdminAuthError, ErrorCode, GatewayError
from ..http import UpstreamForwarder
from ..log import log_event
from ..middleware import create_trace_id

DISCONNECT_POLL_SECONDS = 0.25


def get_settings(request: Request) -> GatewaySettings:
    return request.app.state.settings


def get_forwarder(request: Request) -> UpstreamForwarder:
    return request.app.state.forwarder


def get_trace_id(request: Request) -> str:
    """Trace id assigned by TraceMiddleware at request entry."""
    trace_id = getattr(request.state, "trace_id", None)
    if not trace_id:
        trace_id = create_trace_id()
        request.state.trace_id = trace_id
    return trace_id


def require_admin(realm: str) -> Callable[[Request], AdminAuthResult]:
    """
    Dependency factory requiring valid admin Basic credentials.

    Runs before the handler reads the request body.

    Usage:
        @router.post("/admin/reindex")
        async def reindex(admin: AdminAuthResult = Depends(require_admin("Admin Reindex"))):
            ...
    """

    def dependency(request: Request) -> AdminAuthResult:
        settings = get_settings(request)
        result = verify_admin_basic_auth(
            request.headers.get("authorization"),
            settings.admin_user,
            settings.admin_password,
        )
        if not result.ok:
            log_event("admin_auth_rejected", level="warning", realm=realm, path=request.url.path)
            raise AdminAuthError(realm)
        return result

    return dependency


async def _wait_for_disconnect(request: Request) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


async def call_unless_disconnected(
    request: Request,
    call: Callable[[], Awaitable[Any]],
) -> Any:
    """
    Await an upstream call, abandoning it if the client goes away first.

    Raises:
        GatewayError: CLIENT_DISCONNECTED when the client disconnected
    """
    upstream = asyncio.ensure_future(call())
    watcher = asyncio.ensure_future(_wait_for_disconnect(request))
    try:
        done, _ = await asyncio.wait({upstream, watcher}, return_when=asyncio.FIRST_COMPLETED)
        if upstream not in done:
            if watcher.exception() is None:
                upstream.cancel()
                await asyncio.wait({upstream})
                log_event("client_disconnected", level="warning", path=request.url.path)
                raise GatewayError(ErrorCode.CLIENT_DISCONNECTED, 499, "Client closed request")
            # Disconnect detection failed; the upstream deadline still applies
            await asyncio.wait({upstream})
    finally:
        watcher.cancel()
        if not upstream.done():
            upstream.cancel()

    return upstream.result()
