"""
FastAPI application for food label extraction.

Provides endpoints for:
- Extracting allergen and nutrition data from uploaded PDF labels
- Health checks
"""

import logging

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Handle both package imports (when running as module) and standalone imports (uvicorn main:app)
try:
    from .config import get_settings
    from .models import HealthResponse
    from .routers import extract
    from .services.ai import get_ai_service
    from .services.pdf_service import get_pdf_service
    from .services.storage import get_upload_store
except ImportError:
    import sys
    from pathlib import Path
    # Add parent directory to path for standalone imports
    backend_dir = Path(__file__).parent
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))
    from config import get_settings
    from models import HealthResponse
    from routers import extract
    from services.ai import get_ai_service
    from services.pdf_service import get_pdf_service
    from services.storage import get_upload_store

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting label extraction service...")
    # Initialize services on startup
    get_upload_store().ensure_directory()
    get_pdf_service()
    get_ai_service()
    logger.info("OpenAI API key configured: %s", bool(settings.openai_api_key))
    logger.info("Services initialized successfully")
    yield
    logger.info("Shutting down label extraction service...")


# Create FastAPI application
app = FastAPI(
    title="Label Extraction API",
    description="Allergen and nutrition extraction from food label PDFs",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/api/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", message="Server is running")


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(extract.router)
