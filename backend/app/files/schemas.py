"""Pydantic schemas and constants for prospectus file handling.

- ProspectusInfo: file information returned after a successful upload
- ProspectusUploadResponse: API response wrapper for uploads
- CleanupResponse / DeleteResponse: results of the cleanup routes
"""
import re
from typing import Optional

from pydantic import BaseModel, Field

PDF_MIME_TYPE = "application/pdf"

# Every valid PDF starts with this signature
PDF_SIGNATURE = b"%PDF"

FILE_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# Name shown to the browser; never derived from user input
INLINE_FILENAME = "prospectus.pdf"

# Headers attached to every served PDF, besides Content-Type/Content-Length
PDF_RESPONSE_HEADERS = {
    "Content-Disposition": f'inline; filename="{INLINE_FILENAME}"',
    "Cache-Control": "private, no-cache, no-store, must-revalidate",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def stored_filename(file_id: str) -> str:
    """Name of the file on disk for a given prospectus ID."""
    return f"prospectus-{file_id}.pdf"


def is_valid_file_id(file_id: object) -> bool:
    """Check a client-supplied ID against the UUID textual pattern.

    Examples:
        >>> is_valid_file_id("3f2b8c1e-9a4d-4e6f-8b7a-1c2d3e4f5a6b")
        True
        >>> is_valid_file_id("../../etc/passwd")
        False
    """
    return isinstance(file_id, str) and bool(FILE_ID_PATTERN.match(file_id))


class ProspectusInfo(BaseModel):
    """Information about an uploaded prospectus.

    The on-disk path is deliberately absent; clients fetch the file
    through ``internal_url``.
    """
    id: str = Field(..., description="Prospectus file ID (UUID4)")
    original_name: str = Field(..., description="Filename as uploaded")
    sanitized_name: str = Field(..., description="Filename with unsafe characters replaced")
    internal_url: str = Field(..., description="API URL serving the file")
    size: int = Field(..., description="File size in bytes")
    type: str = Field(..., description="MIME type reported by the client")
    uploaded_at: str = Field(..., description="Upload time (ISO 8601, UTC)")


class ProspectusUploadResponse(BaseModel):
    success: bool = True
    message: str
    data: ProspectusInfo


class CleanupResponse(BaseModel):
    success: bool = True
    message: str
    cleaned: int = 0


class DeleteResponse(BaseModel):
    success: bool = True
    message: str
    file_id: Optional[str] = None
