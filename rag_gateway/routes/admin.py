"""
Admin Routes
============
PDF ingestion, reindex and delete. Every route requires admin Basic
credentials before the request body is read.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from starlette.datastructures import UploadFile
from starlette.responses import JSONResponse

from ..auth import AdminAuthResult
from ..config import GatewaySettings
from ..errors import ErrorCode, GatewayError, ProxyError
from ..http import UpstreamForwarder
from ..log import log_event
from ..schemas import (
    AdminActionRequest,
    IngestUpstreamResponse,
    ReindexRequest,
    UploadResponse,
    validation_details,
)
from .chat import read_json_body
from .deps import call_unless_disconnected, get_forwarder, get_settings, get_trace_id, require_admin
from .uploads import PDF_CONTENT_TYPE, parse_source_type, validate_pdf_upload

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/upload", response_model=UploadResponse, response_model_exclude_none=True)
async def upload_document(
    request: Request,
    admin: AdminAuthResult = Depends(require_admin("Admin Upload")),
    trace_id: str = Depends(get_trace_id),
    settings: GatewaySettings = Depends(get_settings),
    forwarder: UpstreamForwarder = Depends(get_forwarder),
) -> UploadResponse:
    """Forward an uploaded PDF to the ingest webhook."""
    form = await request.form()
    try:
        source_type = parse_source_type(form.get("source_type"))

        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise GatewayError(ErrorCode.INVALID_FILE, 400, "file is required and must be a PDF")

        filename = upload.filename or ""
        if upload.size is not None:
            validate_pdf_upload(filename, upload.content_type, upload.size)
            binary = await upload.read()
        else:
            binary = await upload.read()
            validate_pdf_upload(filename, upload.content_type, len(binary))
    finally:
        await form.close()

    metadata = {
        "endpoint": "ingest",
        "source_type": source_type,
        "uploaded_by": admin.username or "admin",
        "file_name": filename,
        "file_size": str(len(binary)),
    }

    try:
        upstream = await call_unless_disconnected(
            request,
            lambda: forwarder.forward_binary(
                settings.ingest_webhook_url,
                binary,
                PDF_CONTENT_TYPE,
                trace_id=trace_id,
                metadata=metadata,
                timeout_ms=settings.admin_timeout_ms,
            ),
        )
    except ProxyError as e:
        log_event("admin_upload_failed", level="warning", status=e.status_code, code=e.code.value)
        raise

    try:
        validated = IngestUpstreamResponse.model_validate(upstream)
    except ValidationError:
        log_event("admin_upload_failed", level="warning", status=502, code=ErrorCode.UPSTREAM_BAD_RESPONSE.value)
        raise GatewayError(
            ErrorCode.UPSTREAM_BAD_RESPONSE,
            502,
            "Upstream returned an invalid ingest response",
        ) from None

    log_event("admin_upload_succeeded", doc_id=validated.doc_id, source_type=source_type)

    return UploadResponse(
        doc_id=validated.doc_id,
        status=validated.status,
        index_latency_ms=validated.index_latency_ms,
        trace_id=validated.trace_id if validated.trace_id is not None else trace_id,
    )


async def _forward_admin_action(
    request: Request,
    action: str,
    doc_id: str,
    trace_id: str,
    settings: GatewaySettings,
    forwarder: UpstreamForwarder,
) -> Dict[str, Any]:
    outbound = AdminActionRequest(action=action, doc_id=doc_id, trace_id=trace_id)
    try:
        upstream = await call_unless_disconnected(
            request,
            lambda: forwarder.forward_json(
                settings.admin_webhook_url,
                outbound.model_dump(),
                trace_id=trace_id,
                metadata={"endpoint": "admin", "action": action},
                timeout_ms=settings.admin_timeout_ms,
            ),
        )
    except ProxyError as e:
        log_event("admin_action_failed", level="warning", action=action, status=e.status_code, code=e.code.value)
        raise

    # Opaque passthrough, but it has to be a JSON object
    if not isinstance(upstream, dict):
        log_event("admin_action_failed", level="warning", action=action, status=502, code=ErrorCode.UPSTREAM_BAD_RESPONSE.value)
        raise GatewayError(
            ErrorCode.UPSTREAM_BAD_RESPONSE,
            502,
            "Upstream returned an invalid admin response",
        )

    log_event("admin_action_succeeded", action=action, doc_id=doc_id)
    return upstream


@router.post("/reindex")
async def reindex_document(
    request: Request,
    admin: AdminAuthResult = Depends(require_admin("Admin Reindex")),
    trace_id: str = Depends(get_trace_id),
    settings: GatewaySettings = Depends(get_settings),
    forwarder: UpstreamForwarder = Depends(get_forwarder),
) -> JSONResponse:
    payload = await read_json_body(request)
    try:
        parsed = ReindexRequest.model_validate(payload)
    except ValidationError as e:
        raise GatewayError(
            ErrorCode.INVALID_REQUEST,
            400,
            "doc_id is required",
            details=validation_details(e),
        ) from None

    upstream = await _forward_admin_action(request, "reindex", parsed.doc_id, trace_id, settings, forwarder)
    return JSONResponse(upstream)


@router.delete("/document/{doc_id}")
async def delete_document(
    doc_id: str,
    request: Request,
    admin: AdminAuthResult = Depends(require_admin("Admin Delete")),
    trace_id: str = Depends(get_trace_id),
    settings: GatewaySettings = Depends(get_settings),
    forwarder: UpstreamForwarder = Depends(get_forwarder),
) -> JSONResponse:
    if not doc_id.strip():
        raise GatewayError(ErrorCode.INVALID_DOC_ID, 400, "docId is required")

    upstream = await _forward_admin_action(request, "delete", doc_id, trace_id, settings, forwarder)
    return JSONResponse(upstream)
