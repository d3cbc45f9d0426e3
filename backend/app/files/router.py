"""FastAPI routers for prospectus upload, download and cleanup."""
import logging
from typing import Optional

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse, Response

from .schemas import (
    PDF_MIME_TYPE,
    PDF_RESPONSE_HEADERS,
    CleanupResponse,
    DeleteResponse,
    ProspectusUploadResponse,
)
from .service import ProspectusFileError, ProspectusStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files/prospectus", tags=["files"])
upload_router = APIRouter(prefix="/api/upload", tags=["files"])


def _service() -> ProspectusStorage:
    return ProspectusStorage.get_instance()


def _error(exc: ProspectusFileError) -> JSONResponse:
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_expired_files():
    """Delete every stored prospectus older than the retention window.

    Returns:
        CleanupResponse with the number of files removed.
    """
    try:
        cleaned = _service().cleanup_expired()
    except Exception:
        logger.exception("File cleanup error")
        return JSONResponse({"error": "File cleanup failed"}, status_code=500)

    return CleanupResponse(
        message=f"Cleanup complete, deleted {cleaned} expired files",
        cleaned=cleaned,
    )


@router.get("/{file_id:path}")
async def get_prospectus(file_id: str):
    """Serve an uploaded prospectus PDF inline.

    Args:
        file_id: UUID of the uploaded prospectus

    Returns:
        The raw PDF with no-cache and anti-sniffing/anti-framing headers.

    Raises:
        400 for malformed IDs or non-PDF content, 403 for paths outside the
        storage root, 404 if missing, 410 if past the retention window,
        500 on I/O errors. All errors are JSON ``{"error": ...}``.
    """
    try:
        content = _service().read(file_id)
    except ProspectusFileError as e:
        return _error(e)
    except Exception:
        logger.exception("File access error")
        return JSONResponse({"error": "File access failed"}, status_code=500)

    headers = {"Content-Length": str(len(content)), **PDF_RESPONSE_HEADERS}
    return Response(content=content, media_type=PDF_MIME_TYPE, headers=headers)


@router.delete("/{file_id:path}", response_model=DeleteResponse)
async def delete_prospectus(file_id: str):
    """Delete a single uploaded prospectus."""
    try:
        _service().delete(file_id)
    except ProspectusFileError as e:
        return _error(e)
    except Exception:
        logger.exception("File deletion error")
        return JSONResponse({"error": "File deletion failed"}, status_code=500)

    return DeleteResponse(message="File deleted", file_id=file_id)


@upload_router.post("/prospectus", response_model=ProspectusUploadResponse)
async def upload_prospectus(file: Optional[UploadFile] = File(None)):
    """Upload a prospectus PDF.

    The file is stored under a fresh UUID and can then be fetched from
    ``/api/files/prospectus/{id}`` until the retention window passes.

    Args:
        file: The PDF to upload (multipart field ``file``)

    Returns:
        ProspectusUploadResponse with the file ID and internal URL.
    """
    if file is None:
        return JSONResponse({"error": "Please select a PDF file to upload"}, status_code=400)

    service = _service()
    # Reject oversized uploads from the spooled size before reading them into memory
    if file.size is not None and file.size > service.max_upload_bytes:
        limit_mb = service.max_upload_bytes // (1024 * 1024)
        return JSONResponse({"error": f"File too large, maximum is {limit_mb}MB"}, status_code=413)

    try:
        content = await file.read()
        info = service.save(
            filename=file.filename or "prospectus.pdf",
            content=content,
            content_type=file.content_type,
        )
    except ProspectusFileError as e:
        return _error(e)
    except Exception:
        logger.exception("Prospectus upload error")
        return JSONResponse({"error": "File upload failed"}, status_code=500)

    return ProspectusUploadResponse(message="Prospectus uploaded", data=info)
