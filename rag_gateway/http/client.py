import asyncio
import json
import time
import httpx
import structlog
from typing import Any, Dict, Mapping, Optional

from ..errors import ErrorCode, ProxyError
from ..metrics import UPSTREAM_REQUESTS_INFLIGHT, outcome_label, record_upstream_call
from ..signing import SignedRequest, metadata_headers, sign_request
from .messages import extract_error_message
from .results import UpstreamOutcome, UpstreamReply, UpstreamTimedOut, UpstreamUnreachable

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_MS = 30_000


def encode_json_body(payload: Any) -> bytes:
    """Compact UTF-8 JSON, the exact bytes that get hashed and sent."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def parse_response_payload(response: httpx.Response) -> Any:
    """JSON when the upstream declares it, raw text otherwise."""
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return response.json()
        except ValueError:
            logger.warning("Upstream declared JSON but sent an undecodable body")
    return response.text


class UpstreamForwarder:
    """
    Signs and sends requests to the external workflow engine's webhooks.

    Features:
    - X-RAG-* signature envelope plus one X-RAG-Meta-* header per metadata entry.
    - Cooperative per-call deadline; the in-flight call is abandoned on expiry.
    - Standardized mapping of every outcome onto ProxyError.

    No retries are performed here: ingest and admin actions are not
    guaranteed idempotent upstream, so retry policy belongs to the caller.
    """

    def __init__(
        self,
        secret: str,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ):
        self.secret = secret
        self.default_timeout_ms = default_timeout_ms
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            transport=transport,
            follow_redirects=False,
            headers={"User-Agent": "rag-gateway"},
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    async def aclose(self):
        """Close the underlying HTTP client if this forwarder created it."""
        if self._owns_client:
            await self.client.aclose()

    def _build_headers(self, signed: SignedRequest, content_type: str) -> Dict[str, Any]:
        envelope = sign_request(signed)
        headers: Dict[str, Any] = {"Content-Type": content_type}
        headers.update(envelope.headers)
        headers.update(metadata_headers(signed.metadata))
        return headers

    async def _send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, Any],
        body: bytes,
        timeout_ms: int,
    ) -> UpstreamOutcome:
        """Issue one HTTP call and describe how it ended. Never raises for transport failures."""
        started = time.monotonic()
        try:
            response = await self.client.request(
                method,
                url,
                headers=headers,
                content=body,
                timeout=timeout_ms / 1000,
            )
        except httpx.TimeoutException:
            return UpstreamTimedOut(timeout_ms=timeout_ms)
        except httpx.HTTPError as e:
            return UpstreamUnreachable(error_type=type(e).__name__, error_message=str(e))
        except UnicodeError as e:
            # A header value the transport could not encode
            return UpstreamUnreachable(error_type=type(e).__name__, error_message=str(e))

        return UpstreamReply(
            status_code=response.status_code,
            payload=parse_response_payload(response),
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )

    async def _send_with_deadline(
        self,
        method: str,
        url: str,
        headers: Mapping[str, Any],
        body: bytes,
        timeout_ms: int,
    ) -> UpstreamOutcome:
        task = asyncio.create_task(self._send(method, url, headers, body, timeout_ms))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
            if task in done:
                return task.result()
            task.cancel()
            await asyncio.wait({task})
            return UpstreamTimedOut(timeout_ms=timeout_ms)
        finally:
            # Caller cancelled (e.g. client disconnect): abandon the upstream call too
            if not task.done():
                task.cancel()

    def _to_payload(self, outcome: UpstreamOutcome) -> Any:
        """Return the payload of a successful reply or raise the matching ProxyError."""
        if isinstance(outcome, UpstreamTimedOut):
            raise ProxyError(
                ErrorCode.UPSTREAM_TIMEOUT,
                504,
                "Upstream webhook request timed out",
            )
        if isinstance(outcome, UpstreamUnreachable):
            raise ProxyError(
                ErrorCode.UPSTREAM_UNAVAILABLE,
                503,
                "Upstream webhook is unavailable",
            )
        if not outcome.is_success:
            status = outcome.status_code
            raise ProxyError(
                ErrorCode.UPSTREAM_ERROR if status >= 500 else ErrorCode.UPSTREAM_REJECTED,
                status,
                extract_error_message(
                    outcome.payload, f"Upstream webhook returned HTTP {status}"
                ),
                details=outcome.payload,
            )
        return outcome.payload

    async def forward(
        self,
        url: str,
        *,
        trace_id: str,
        body: bytes,
        content_type: str,
        metadata: Optional[Mapping[str, str]] = None,
        timeout_ms: Optional[int] = None,
        method: str = "POST",
    ) -> Any:
        """
        Sign and send one request, returning the parsed upstream payload.

        Raises:
            ProxyError: UPSTREAM_TIMEOUT, UPSTREAM_UNAVAILABLE, UPSTREAM_ERROR
                or UPSTREAM_REJECTED
        """
        timeout_ms = timeout_ms or self.default_timeout_ms
        signed = SignedRequest(
            method=method,
            url=url,
            body=body,
            secret=self.secret,
            trace_id=trace_id,
            metadata=dict(metadata or {}),
        )
        headers = self._build_headers(signed, content_type)
        path = headers["X-RAG-Path"]

        started = time.monotonic()
        inflight = UPSTREAM_REQUESTS_INFLIGHT.labels(path=path)
        inflight.inc()
        try:
            outcome = await self._send_with_deadline(method, url, headers, body, timeout_ms)
        finally:
            inflight.dec()

        if isinstance(outcome, UpstreamReply):
            label = outcome_label(outcome.status_code)
        elif isinstance(outcome, UpstreamTimedOut):
            label = "timeout"
        else:
            label = "unreachable"
        record_upstream_call(path, label, time.monotonic() - started)

        if isinstance(outcome, UpstreamReply):
            logger.info(
                "upstream_call_completed",
                status_code=outcome.status_code,
                elapsed_ms=outcome.elapsed_ms,
                path=path,
            )
        else:
            logger.warning(
                "upstream_call_failed",
                outcome=type(outcome).__name__,
                path=path,
                error=getattr(outcome, "error_message", None),
            )

        return self._to_payload(outcome)

    async def forward_json(
        self,
        url: str,
        payload: Any,
        *,
        trace_id: str,
        metadata: Optional[Mapping[str, str]] = None,
        timeout_ms: Optional[int] = None,
    ) -> Any:
        return await self.forward(
            url,
            trace_id=trace_id,
            body=encode_json_body(payload),
            content_type="application/json",
            metadata=metadata,
            timeout_ms=timeout_ms,
        )

    async def forward_binary(
        self,
        url: str,
        body: bytes,
        content_type: str,
        *,
        trace_id: str,
        metadata: Optional[Mapping[str, str]] = None,
        timeout_ms: Optional[int] = None,
    ) -> Any:
        return await self.forward(
            url,
            trace_id=trace_id,
            body=body,
            content_type=content_type,
            metadata=metadata,
            timeout_ms=timeout_ms,
        )
