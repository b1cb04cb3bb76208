"""Pytest configuration and fixtures."""

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Generator

import pytest
from fastapi.testclient import TestClient

from app.backend.main import app
from app.backend.services.ai import AIService
from app.backend.services.pdf_service import PDFService
from app.backend.services.pipeline import ExtractionPipeline, get_pipeline
from app.backend.services.storage import UploadStore, get_upload_store

LABEL_TEXT = (
    "Csokis keksz 200 g. Összetevők: búzaliszt, cukor, tejpor. "
    "Allergének: Glutén, Tej. Energia: 250 kcal"
)

LABEL_RESPONSE = {
    "allergens": {
        "gluten": True,
        "egg": None,
        "crustaceans": None,
        "fish": None,
        "peanut": None,
        "soy": None,
        "milk": True,
        "tree_nuts": None,
        "celery": None,
        "mustard": None,
    },
    "nutritional_values": {
        "energy": "250 kcal",
        "fat": None,
        "carbohydrate": None,
        "sugar": None,
        "protein": None,
        "sodium": None,
    },
}


# =============================================================================
# PDF builders
# =============================================================================


def _escape_pdf_string(text: str) -> bytes:
    raw = text.encode("cp1252")
    return raw.replace(b"\\", b"\\\\").replace(b"(", b"\\(").replace(b")", b"\\)")


def build_pdf(page_texts: list[str]) -> bytes:
    """
    Build a PDF with one page per entry, each showing its text in Helvetica.

    An empty string produces a page without any text content.
    """
    page_count = len(page_texts)
    page_ids = [4 + 2 * i for i in range(page_count)]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)

    objects: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {page_count} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>",
    ]
    for pid, text in zip(page_ids, page_texts):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {pid + 1} 0 R >>"
            ).encode()
        )
        stream = b""
        if text:
            stream = b"BT /F1 12 Tf 72 720 Td (" + _escape_pdf_string(text) + b") Tj ET"
        objects.append(
            b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream"
        )

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_offset}\n%%EOF\n"
    ).encode()
    return bytes(out)


@pytest.fixture
def text_pdf_bytes() -> bytes:
    """A one-page digital PDF with a label text well above the scanned threshold."""
    return build_pdf(
        ["Ingredients: wheat flour, sugar, milk powder. Allergens: Gluten, Milk. Energy: 250 kcal"]
    )


@pytest.fixture
def scanned_pdf_bytes() -> bytes:
    """A three-page PDF without any embedded text."""
    return build_pdf(["", "", ""])


@pytest.fixture
def invalid_file_bytes() -> bytes:
    """Create invalid (non-PDF) file bytes for testing."""
    return b"This is not a PDF file"


# =============================================================================
# Fakes
# =============================================================================


class FakeCompletions:
    """Stands in for client.chat.completions, recording every request."""

    def __init__(self, content: str | None = None, error: Exception | None = None):
        self.content = content
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAIClient:
    """Minimal async OpenAI client double."""

    def __init__(self, content: str | None = None, error: Exception | None = None):
        self.completions = FakeCompletions(content, error)
        self.chat = SimpleNamespace(completions=self.completions)


class FakePDFService(PDFService):
    """PDFService double that never touches pypdf or poppler."""

    def __init__(
        self,
        text: str = LABEL_TEXT,
        pages: int = 1,
        text_error: Exception | None = None,
        render_error: Exception | None = None,
    ):
        super().__init__()
        self.text = text
        self.pages = pages
        self.text_error = text_error
        self.render_error = render_error
        self.extract_calls: list[Path] = []
        self.render_calls: list[Path] = []

    def extract_text(self, path):
        self.extract_calls.append(Path(path))
        if self.text_error is not None:
            raise self.text_error
        return self.text

    def render_pages(self, path):
        self.render_calls.append(Path(path))
        if self.render_error is not None:
            raise self.render_error
        return [f"page-{n}" for n in range(1, self.pages + 1)]


@pytest.fixture
def label_response_json() -> str:
    """Model output for a label containing gluten and milk."""
    return json.dumps(LABEL_RESPONSE)


@pytest.fixture
def upload_store(tmp_path: Path) -> UploadStore:
    """Upload store writing into a temporary directory with a 1 MiB cap."""
    return UploadStore(tmp_path / "uploads", max_bytes=1024 * 1024)


@pytest.fixture
def make_pipeline(
    upload_store: UploadStore, label_response_json: str
) -> Callable[..., ExtractionPipeline]:
    """Factory for pipelines wired to fake PDF and OpenAI collaborators."""

    def _make(
        pdf_service: PDFService | None = None,
        ai_client: FakeOpenAIClient | None = None,
    ) -> ExtractionPipeline:
        ai_service = AIService(
            api_key="test-key",
            client=ai_client or FakeOpenAIClient(content=label_response_json),
        )
        return ExtractionPipeline(
            pdf_service=pdf_service or FakePDFService(),
            ai_service=ai_service,
            store=upload_store,
        )

    return _make


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def api_client(
    upload_store: UploadStore, make_pipeline: Callable[..., ExtractionPipeline]
) -> Generator[Callable[..., TestClient], None, None]:
    """Factory for test clients whose extraction pipeline uses fakes."""

    def _make(
        pdf_service: PDFService | None = None,
        ai_client: FakeOpenAIClient | None = None,
    ) -> TestClient:
        pipeline = make_pipeline(pdf_service, ai_client)
        app.dependency_overrides[get_upload_store] = lambda: upload_store
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
