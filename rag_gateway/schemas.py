"""
Request and Response Schemas
============================
Pydantic models for inbound client payloads and for the replies the
workflow engine is expected to send back. Strings are stripped before
their length limits are checked.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, ValidationError

SourceType = Literal["personal", "company", "mixed"]
SOURCE_TYPES = ("personal", "company", "mixed")

MAX_UPLOAD_BYTES = 20 * 1024 * 1024


class _Schema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class ChatHistoryEntry(_Schema):
    role: Literal["user", "assistant"]
    content: StrictStr = Field(min_length=1, max_length=4000)


class ChatRequest(_Schema):
    session_id: StrictStr = Field(min_length=8, max_length=128)
    query: StrictStr = Field(min_length=1, max_length=2000)
    history: List[ChatHistoryEntry] = Field(default_factory=list, max_length=20)
    language_hint: Optional[StrictStr] = Field(default=None, min_length=2, max_length=32)


class QueryWebhookRequest(_Schema):
    """Body sent to the query webhook."""
    trace_id: str
    session_id: str
    query: str
    history: List[ChatHistoryEntry]
    language_hint: Optional[str] = None


class ChatUpstreamResponse(_Schema):
    answer: StrictStr = Field(min_length=1)
    mode: Literal["grounded", "grounded_plus_general"]
    confidence: StrictFloat = Field(ge=0, le=1)
    trace_id: Optional[StrictStr] = None


class ChatResponse(BaseModel):
    answer: str
    mode: Literal["grounded", "grounded_plus_general"]
    confidence: float
    session_id: str
    trace_id: str


class IngestUpstreamResponse(_Schema):
    doc_id: StrictStr = Field(min_length=1)
    status: StrictStr = Field(min_length=1)
    index_latency_ms: Optional[StrictInt] = Field(default=None, ge=0)
    trace_id: Optional[StrictStr] = None


class UploadResponse(BaseModel):
    doc_id: str
    status: str
    index_latency_ms: Optional[int] = None
    trace_id: str


class ReindexRequest(_Schema):
    doc_id: StrictStr = Field(min_length=1, max_length=256)


class AdminActionRequest(_Schema):
    """Body sent to the admin webhook for reindex and delete."""
    action: Literal["reindex", "delete"]
    doc_id: str
    trace_id: str


def validation_details(exc: ValidationError) -> List[Dict[str, Any]]:
    """JSON-safe field errors, without echoing the submitted input."""
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors(include_url=False, include_input=False, include_context=False)
    ]
