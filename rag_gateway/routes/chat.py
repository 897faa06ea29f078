from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from ..config import GatewaySettings
from ..errors import ErrorCode, GatewayError, ProxyError
from ..http import UpstreamForwarder
from ..log import log_event
from ..schemas import ChatRequest, ChatResponse, ChatUpstreamResponse, QueryWebhookRequest, validation_details
from .deps import call_unless_disconnected, get_forwarder, get_settings, get_trace_id

router = APIRouter(tags=["Chat"])


async def read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise GatewayError(ErrorCode.INVALID_REQUEST, 400, "Request body must be valid JSON") from None


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: Request,
    trace_id: str = Depends(get_trace_id),
    settings: GatewaySettings = Depends(get_settings),
    forwarder: UpstreamForwarder = Depends(get_forwarder),
) -> ChatResponse:
    """Forward a chat query to the query webhook and return the grounded answer."""
    payload = await read_json_body(request)
    try:
        parsed = ChatRequest.model_validate(payload)
    except ValidationError as e:
        raise GatewayError(
            ErrorCode.INVALID_REQUEST,
            400,
            "Invalid chat payload",
            details=validation_details(e),
        ) from None

    outbound = QueryWebhookRequest(
        trace_id=trace_id,
        session_id=parsed.session_id,
        query=parsed.query,
        history=parsed.history,
        language_hint=parsed.language_hint,
    )

    try:
        upstream = await call_unless_disconnected(
            request,
            lambda: forwarder.forward_json(
                settings.query_webhook_url,
                outbound.model_dump(exclude_none=True),
                trace_id=trace_id,
                metadata={"endpoint": "chat"},
                timeout_ms=settings.query_timeout_ms,
            ),
        )
    except ProxyError as e:
        log_event("chat_request_failed", level="warning", status=e.status_code, code=e.code.value)
        raise

    try:
        validated = ChatUpstreamResponse.model_validate(upstream)
    except ValidationError:
        log_event("chat_request_failed", level="warning", status=502, code=ErrorCode.UPSTREAM_BAD_RESPONSE.value)
        raise GatewayError(
            ErrorCode.UPSTREAM_BAD_RESPONSE,
            502,
            "Upstream returned an invalid response payload",
        ) from None

    log_event("chat_request_succeeded", mode=validated.mode)

    return ChatResponse(
        answer=validated.answer,
        mode=validated.mode,
        confidence=validated.confidence,
        session_id=parsed.session_id,
        trace_id=validated.trace_id if validated.trace_id is not None else trace_id,
    )
