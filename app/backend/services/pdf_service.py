"""
PDF processing service using pypdf and pdf2image (poppler).

Handles text extraction, scanned-document detection and rasterization
of PDF pages to Base64 PNG images for vision models.
"""

import base64
import io
import logging
from pathlib import Path

from pdf2image import convert_from_path
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFSyntaxError,
)
from PIL import Image
from pypdf import PdfReader

logger = logging.getLogger(__name__)

# PDF user space is 72 units per inch
PDF_POINTS_PER_INCH = 72


class PDFServiceError(Exception):
    """Raised when a PDF library operation fails."""

    pass


class ExtractionError(PDFServiceError):
    """Raised when text cannot be extracted from a PDF."""

    pass


class RenderError(PDFServiceError):
    """Raised when PDF pages cannot be rendered to images."""

    pass


def is_scanned(text: str | None, threshold: int = 50) -> bool:
    """
    Decide whether a document is image-only from its extracted text.

    Args:
        text: Extracted text, or None when extraction failed.
        threshold: Minimum trimmed text length for the document to
            count as text-bearing.

    Returns:
        True if the document should take the vision path.
    """
    if text is None:
        return True
    return len(text.strip()) < threshold


class PDFService:
    """
    Service for PDF processing operations.

    Uses pypdf for text extraction and pdf2image (backed by poppler)
    to render pages to images.
    """

    def __init__(self, render_scale: float = 3.0, image_format: str = "PNG"):
        """
        Initialize the PDF service.

        Args:
            render_scale: Upscaling factor relative to the page's native
                72 DPI size. Higher = more legible for vision models but larger.
            image_format: Output image format (PNG recommended for quality).
        """
        self.render_scale = render_scale
        self.image_format = image_format

    @property
    def dpi(self) -> int:
        """Rendering resolution derived from the upscale factor."""
        return round(PDF_POINTS_PER_INCH * self.render_scale)

    def extract_text(self, path: str | Path) -> str:
        """
        Extract the concatenated plain text of every page.

        Args:
            path: Path to the stored PDF file.

        Returns:
            Page texts joined with newlines (possibly empty).

        Raises:
            ExtractionError: If the file cannot be parsed.
        """
        try:
            reader = PdfReader(str(path))
            texts = [page.extract_text() or "" for page in reader.pages]
        except Exception as e:
            logger.error("Error extracting text from PDF %s: %s", path, e)
            raise ExtractionError(f"Could not extract text from PDF: {e}") from e

        logger.debug("Extracted text from %d page(s) of %s", len(texts), path)
        return "\n".join(texts)

    def render_pages(self, path: str | Path) -> list[str]:
        """
        Render every page to an image and encode it as Base64.

        Args:
            path: Path to the stored PDF file.

        Returns:
            Base64-encoded images, one per page, in page order.

        Raises:
            RenderError: If any page fails to render. No partial result is returned.
        """
        try:
            logger.info("Rendering PDF pages to images (dpi=%d)", self.dpi)
            images = convert_from_path(
                str(path),
                dpi=self.dpi,
                fmt=self.image_format.lower(),
            )

        except PDFInfoNotInstalledError as e:
            logger.error("Poppler not installed: %s", e)
            raise RenderError(
                "Poppler not installed. Install poppler-utils: "
                "brew install poppler (macOS) or apt-get install poppler-utils (Linux)"
            ) from e

        except PDFPageCountError as e:
            logger.error("Could not get PDF page count: %s", e)
            raise RenderError(f"Could not determine PDF page count: {e}") from e

        except PDFSyntaxError as e:
            logger.error("PDF syntax error: %s", e)
            raise RenderError(f"Invalid or corrupted PDF file: {e}") from e

        except Exception as e:
            logger.exception("Unexpected error during PDF rendering")
            raise RenderError(f"PDF rendering failed: {e}") from e

        if not images:
            raise RenderError("No pages found in PDF")

        encoded: list[str] = []
        for page_number, image in enumerate(images, start=1):
            try:
                encoded.append(self.image_to_base64(image))
            except Exception as e:
                raise RenderError(f"Failed to encode page {page_number}: {e}") from e
            logger.info("Converted page %d/%d", page_number, len(images))

        return encoded

    def image_to_base64(self, image: Image.Image) -> str:
        """Encode a PIL Image in the configured format as a Base64 string."""
        buffer = io.BytesIO()
        image.save(buffer, format=self.image_format)
        return base64.b64encode(buffer.getvalue()).decode("utf-8")


# Singleton instance for convenience
_pdf_service: PDFService | None = None


def get_pdf_service() -> PDFService:
    """Get or create the PDF service singleton."""
    global _pdf_service
    if _pdf_service is None:
        try:
            from ..config import get_settings
        except ImportError:
            from config import get_settings

        _pdf_service = PDFService(render_scale=get_settings().render_scale)
    return _pdf_service
