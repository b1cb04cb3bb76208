"""
Temporary storage for uploaded PDFs.

Each request stores its upload under a unique name in the working
directory and removes it before the response is sent.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path, PurePath
from uuid import uuid4

from fastapi import UploadFile

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
CHUNK_SIZE = 1024 * 1024


class UploadValidationError(Exception):
    """Raised when an upload is missing or unacceptable. Maps to HTTP 400."""

    pass


class CleanupError(Exception):
    """Raised when a stored upload cannot be deleted."""

    pass


@dataclass(frozen=True)
class StoredUpload:
    """An uploaded file written to the working directory."""

    path: Path
    filename: str
    content_type: str
    size: int


class UploadStore:
    """Stores uploads on disk and deletes them after processing."""

    def __init__(self, upload_dir: Path, max_bytes: int = 10 * 1024 * 1024):
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes

    def ensure_directory(self) -> None:
        """Create the working directory if it does not exist."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def _unique_path(self, filename: str) -> Path:
        # Client-supplied names may carry directory components
        basename = PurePath(filename.replace("\\", "/")).name or "upload.pdf"
        millis = int(time.time() * 1000)
        return self.upload_dir / f"{millis}-{uuid4().hex[:8]}-{basename}"

    def _too_large(self) -> UploadValidationError:
        limit_mib = self.max_bytes / (1024 * 1024)
        return UploadValidationError(f"File too large (limit {limit_mib:g} MB)")

    async def save(self, upload: UploadFile | None) -> StoredUpload:
        """
        Validate and store an uploaded PDF.

        Args:
            upload: The multipart file, or None if the field was absent.

        Returns:
            StoredUpload describing the file on disk.

        Raises:
            UploadValidationError: If no file was sent, the media type is not
                PDF, or the file exceeds the size limit.
        """
        if upload is None or not upload.filename:
            raise UploadValidationError("No PDF file uploaded")

        if upload.content_type != PDF_MEDIA_TYPE:
            raise UploadValidationError("Only PDF files are allowed")

        if upload.size is not None and upload.size > self.max_bytes:
            raise self._too_large()

        self.ensure_directory()
        path = self._unique_path(upload.filename)
        written = 0
        # Exclusive create: never overwrite another request's upload
        out = await asyncio.to_thread(path.open, "xb")
        try:
            try:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise self._too_large()
                    await asyncio.to_thread(out.write, chunk)
            finally:
                await asyncio.to_thread(out.close)
        except BaseException:
            path.unlink(missing_ok=True)
            raise

        logger.info("Stored upload %s (%d bytes) at %s", upload.filename, written, path)
        return StoredUpload(
            path=path,
            filename=upload.filename,
            content_type=upload.content_type,
            size=written,
        )

    def remove(self, stored: StoredUpload) -> None:
        """
        Delete a stored upload.

        Raises:
            CleanupError: If the file exists but cannot be deleted.
        """
        try:
            stored.path.unlink(missing_ok=True)
        except OSError as e:
            raise CleanupError(f"Error deleting file {stored.path}: {e}") from e
        logger.debug("Removed upload %s", stored.path)


_upload_store: UploadStore | None = None


def get_upload_store() -> UploadStore:
    """Get or create the upload store singleton."""
    global _upload_store
    if _upload_store is None:
        try:
            from ..config import get_settings
        except ImportError:
            from config import get_settings

        settings = get_settings()
        _upload_store = UploadStore(settings.upload_dir, settings.max_upload_bytes)
    return _upload_store
