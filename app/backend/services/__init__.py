"""
Services package for label extraction.

Contains:
- pdf_service: Text extraction, scanned detection and page rasterization
- ai: OpenAI integration for allergen and nutrition extraction
- storage: Temporary storage of uploaded PDFs
- pipeline: Per-request orchestration of the above
"""

from .ai import AIService
from .pdf_service import PDFService
from .pipeline import ExtractionPipeline
from .storage import UploadStore

__all__ = ["PDFService", "AIService", "ExtractionPipeline", "UploadStore"]
