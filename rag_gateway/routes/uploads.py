"""
Upload Validation
=================
Local checks on an admin PDF upload. All of them run before anything is
sent upstream.
"""

from typing import Any, Optional

from ..errors import ErrorCode, GatewayError
from ..schemas import MAX_UPLOAD_BYTES, SOURCE_TYPES

PDF_CONTENT_TYPE = "application/pdf"


def parse_source_type(raw: Any) -> str:
    """Non-string or absent values default to "mixed"; unknown strings are rejected."""
    value = raw if isinstance(raw, str) else "mixed"
    if value not in SOURCE_TYPES:
        raise GatewayError(
            ErrorCode.INVALID_SOURCE_TYPE,
            400,
            "source_type must be one of: personal, company, mixed",
        )
    return value


def validate_pdf_upload(filename: str, content_type: Optional[str], size: int) -> None:
    """
    Raises:
        GatewayError: EMPTY_FILE, FILE_TOO_LARGE or INVALID_FILE_TYPE
    """
    if size == 0:
        raise GatewayError(ErrorCode.EMPTY_FILE, 400, "Uploaded file is empty")

    if size > MAX_UPLOAD_BYTES:
        raise GatewayError(
            ErrorCode.FILE_TOO_LARGE,
            413,
            f"PDF size exceeds {MAX_UPLOAD_BYTES // (1024 * 1024)}MB limit",
        )

    is_pdf_by_type = content_type == PDF_CONTENT_TYPE
    is_pdf_by_name = filename.lower().endswith(".pdf")
    if not is_pdf_by_type and not is_pdf_by_name:
        raise GatewayError(ErrorCode.INVALID_FILE_TYPE, 400, "Only PDF files are supported")
