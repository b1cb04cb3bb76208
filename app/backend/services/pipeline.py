"""
Request orchestration for label extraction.

Drives one stored upload through classification, the text or vision
extraction path, and cleanup:

    RECEIVED -> CLASSIFYING -> TEXT_EXTRACTION | VISION_EXTRACTION -> CLEANUP -> RESPONDED

Blocking PDF work runs in worker threads so concurrent requests keep
interleaving on the event loop.
"""

import asyncio
import logging
from enum import Enum

# Handle both package imports and standalone imports
try:
    from ..models import AllergenNutritionResult
except ImportError:
    from models import AllergenNutritionResult

from .ai import AIService, get_ai_service
from .pdf_service import ExtractionError, PDFService, get_pdf_service, is_scanned
from .storage import CleanupError, StoredUpload, UploadStore, get_upload_store

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """Processing states of a single extraction request."""

    RECEIVED = "received"
    CLASSIFYING = "classifying"
    TEXT_EXTRACTION = "text_extraction"
    VISION_EXTRACTION = "vision_extraction"
    CLEANUP = "cleanup"
    RESPONDED = "responded"
    ERRORED = "errored"


class ExtractionPipeline:
    """Classifies a stored PDF and routes it to text or vision extraction."""

    def __init__(
        self,
        pdf_service: PDFService,
        ai_service: AIService,
        store: UploadStore,
        scanned_threshold: int = 50,
    ):
        self.pdf_service = pdf_service
        self.ai_service = ai_service
        self.store = store
        self.scanned_threshold = scanned_threshold

    def _enter(self, upload: StoredUpload, state: PipelineState) -> None:
        logger.debug("%s: %s", upload.path.name, state.value)

    async def classify(self, upload: StoredUpload) -> tuple[bool, str | None]:
        """
        Extract text and decide whether the document is scanned.

        Extraction failures classify the document as scanned rather than
        failing the request.

        Returns:
            Tuple of (is_scanned, extracted text or None if extraction failed).
        """
        try:
            text = await asyncio.to_thread(self.pdf_service.extract_text, upload.path)
        except ExtractionError as e:
            logger.warning("Text extraction failed, treating as scanned: %s", e)
            text = None

        scanned = is_scanned(text, self.scanned_threshold)
        logger.info("Is scanned PDF: %s (%s)", scanned, upload.filename)
        return scanned, text

    async def run(self, upload: StoredUpload) -> AllergenNutritionResult:
        """Classify the upload and run the matching extraction path."""
        self._enter(upload, PipelineState.CLASSIFYING)
        scanned, text = await self.classify(upload)

        if scanned:
            self._enter(upload, PipelineState.VISION_EXTRACTION)
            images = await asyncio.to_thread(self.pdf_service.render_pages, upload.path)
            return await self.ai_service.extract_from_images(images)

        self._enter(upload, PipelineState.TEXT_EXTRACTION)
        return await self.ai_service.extract_from_text(text)

    async def process(self, upload: StoredUpload) -> AllergenNutritionResult:
        """
        Run the pipeline and delete the stored upload on every exit path.

        Cleanup failures are logged and never replace the pipeline outcome.

        Raises:
            PDFServiceError: If rendering fails on the vision path.
            AIServiceError: On non-quota provider failures.
        """
        self._enter(upload, PipelineState.RECEIVED)
        try:
            result = await self.run(upload)
        except Exception:
            self._enter(upload, PipelineState.ERRORED)
            raise
        finally:
            self._enter(upload, PipelineState.CLEANUP)
            try:
                self.store.remove(upload)
            except CleanupError as e:
                logger.error("Error deleting file: %s", e)

        self._enter(upload, PipelineState.RESPONDED)
        return result


_pipeline: ExtractionPipeline | None = None


def get_pipeline() -> ExtractionPipeline:
    """Get or create the extraction pipeline singleton."""
    global _pipeline
    if _pipeline is None:
        try:
            from ..config import get_settings
        except ImportError:
            from config import get_settings

        _pipeline = ExtractionPipeline(
            pdf_service=get_pdf_service(),
            ai_service=get_ai_service(),
            store=get_upload_store(),
            scanned_threshold=get_settings().scanned_text_threshold,
        )
    return _pipeline
