"""Prospectus storage service.

Handles prospectus files on disk. Files are stored flat in the storage
root as ``prospectus-{uuid}.pdf``; the modification time doubles as the
upload time.
"""
import logging
import os
import re
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from app.config import get_config

from .schemas import (
    PDF_MIME_TYPE,
    PDF_SIGNATURE,
    ProspectusInfo,
    is_valid_file_id,
    stored_filename,
)

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.\-_\u4e00-\u9fff]")


class ProspectusFileError(Exception):
    """A request for a prospectus file that cannot be fulfilled.

    Attributes:
        status_code: HTTP status to answer with.
        message: User-facing message. Never contains paths or internals.
    """

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def sanitize_filename(filename: str) -> str:
    """Replace characters outside ``[A-Za-z0-9._-]`` and CJK ideographs with ``_``."""
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)


class ProspectusStorage:
    """Singleton service for storing and serving uploaded prospectuses."""

    _instance: Optional["ProspectusStorage"] = None

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        retention_hours: Optional[int] = None,
        max_upload_bytes: Optional[int] = None,
    ):
        """Initialize the storage service.

        Unset arguments fall back to the ``files`` section of the config.
        The storage root itself is only created on the first upload.
        """
        settings = get_config().files
        self._upload_dir = Path(upload_dir or settings.upload_dir)
        self._retention_seconds = (
            retention_hours if retention_hours is not None else settings.retention_hours
        ) * 3600
        self._max_upload_bytes = (
            max_upload_bytes if max_upload_bytes is not None else settings.max_upload_bytes
        )

    @classmethod
    def get_instance(cls, upload_dir: Optional[str] = None) -> "ProspectusStorage":
        """Get or create the singleton instance."""
        if cls._instance is None:
            cls._instance = cls(upload_dir)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (for testing)."""
        cls._instance = None

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def _is_expired(self, mtime: float, now: Optional[float] = None) -> bool:
        age = (now if now is not None else time.time()) - mtime
        return age > self._retention_seconds

    def resolve_path(self, file_id: str) -> Path:
        """Map a client-supplied ID to a canonical path inside the storage root.

        Raises:
            ProspectusFileError 400: ID missing or not a UUID.
            ProspectusFileError 403: Canonical path escapes the storage root.
        """
        if not file_id or not isinstance(file_id, str):
            raise ProspectusFileError(400, "Invalid file ID")
        if not is_valid_file_id(file_id):
            raise ProspectusFileError(400, "Invalid file ID format")

        root = self._upload_dir.resolve()
        # resolve() follows symlinks, so a link pointing outside is caught too
        resolved = (self._upload_dir / stored_filename(file_id)).resolve()
        if not resolved.is_relative_to(root):
            logger.warning("Rejected prospectus path outside storage root for id %s", file_id)
            raise ProspectusFileError(403, "Illegal file path")
        return resolved

    def read(self, file_id: str) -> bytes:
        """Return the PDF bytes for a prospectus ID.

        Checks run in order: ID format, path containment, existence,
        retention window, PDF signature.

        Raises:
            ProspectusFileError: 400/403/404/410 on validation failures,
                500 when the file cannot be stat'ed or read.
        """
        path = self.resolve_path(file_id)

        if not path.exists():
            raise ProspectusFileError(404, "File not found or expired")

        try:
            mtime = path.stat().st_mtime
        except OSError:
            logger.exception("File stat error for prospectus %s", file_id)
            raise ProspectusFileError(500, "Unable to access file")

        if self._is_expired(mtime):
            raise ProspectusFileError(410, "File expired, please upload again")

        try:
            content = path.read_bytes()
        except OSError:
            logger.exception("File read error for prospectus %s", file_id)
            raise ProspectusFileError(500, "File read failed")

        if content[:4] != PDF_SIGNATURE:
            raise ProspectusFileError(400, "Invalid PDF file")

        return content

    def save(self, filename: str, content: bytes, content_type: Optional[str]) -> ProspectusInfo:
        """Validate and store an uploaded prospectus under a fresh ID.

        Args:
            filename: Original filename from the client.
            content: File content as bytes.
            content_type: MIME type reported by the client.

        Returns:
            ProspectusInfo describing the stored file.

        Raises:
            ProspectusFileError 400: Not a PDF, or empty.
            ProspectusFileError 413: Larger than the upload limit.
            ProspectusFileError 500: Could not write to disk.
        """
        content_type = content_type or ""
        if content_type != PDF_MIME_TYPE and not filename.lower().endswith(".pdf"):
            raise ProspectusFileError(400, "Only PDF prospectus files are supported")

        size_bytes = len(content)
        if size_bytes == 0:
            raise ProspectusFileError(400, "File is empty")
        if size_bytes > self._max_upload_bytes:
            limit_mb = self._max_upload_bytes // (1024 * 1024)
            raise ProspectusFileError(413, f"File too large, maximum is {limit_mb}MB")

        if content[:4] != PDF_SIGNATURE:
            raise ProspectusFileError(400, "Invalid PDF file format")

        sanitized = sanitize_filename(filename)
        if sanitized != filename:
            logger.warning("Filename sanitized: %r -> %r", filename, sanitized)

        file_id = str(uuid.uuid4())
        path = self._upload_dir / stored_filename(file_id)

        try:
            self._upload_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
        except OSError:
            logger.exception("File write error for prospectus %s", file_id)
            raise ProspectusFileError(500, "Failed to save file")

        logger.info(f"Prospectus uploaded: {filename} ({size_bytes} bytes) as {file_id}")

        return ProspectusInfo(
            id=file_id,
            original_name=filename,
            sanitized_name=sanitized,
            internal_url=f"/api/files/prospectus/{file_id}",
            size=size_bytes,
            type=content_type,
            uploaded_at=datetime.now(timezone.utc).isoformat(),
        )

    def delete(self, file_id: str) -> None:
        """Delete a single prospectus.

        Raises:
            ProspectusFileError: 400/403 for bad IDs, 404 if absent,
                500 if the file cannot be removed.
        """
        resolved = self.resolve_path(file_id)
        if not resolved.exists():
            raise ProspectusFileError(404, "File not found")

        # Remove the entry itself; for a symlink that is the link, not its target
        path = self._upload_dir / stored_filename(file_id)
        try:
            path.unlink()
        except OSError:
            logger.exception("File deletion error for prospectus %s", file_id)
            raise ProspectusFileError(500, "File deletion failed")

        logger.info(f"Deleted prospectus file: {path.name}")

    def cleanup_expired(self) -> int:
        """Delete every file in the storage root older than the retention window.

        Files that fail to stat or unlink are logged and skipped.

        Returns:
            Number of files deleted.
        """
        if not self._upload_dir.exists():
            return 0

        now = time.time()
        cleaned = 0
        for entry in self._upload_dir.iterdir():
            try:
                if not entry.is_file():
                    continue
                if self._is_expired(entry.stat().st_mtime, now):
                    entry.unlink()
                    cleaned += 1
                    logger.info(f"Cleaned old prospectus file: {entry.name}")
            except OSError as e:
                logger.error(f"Error processing file {entry.name}: {e}")

        return cleaned
