"""
Router for label extraction.

Handles:
- PDF upload, classification and allergen/nutrition extraction
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse

# Handle both package imports and standalone imports
try:
    from ..models import ExtractErrorResponse, ExtractResponse, UploadErrorResponse
    from ..services.pipeline import ExtractionPipeline, get_pipeline
    from ..services.storage import UploadStore, UploadValidationError, get_upload_store
except ImportError:
    from models import ExtractErrorResponse, ExtractResponse, UploadErrorResponse
    from services.pipeline import ExtractionPipeline, get_pipeline
    from services.storage import UploadStore, UploadValidationError, get_upload_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["extract"])


@router.post(
    "/extract",
    response_model=ExtractResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": UploadErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ExtractErrorResponse},
    },
)
async def extract(
    store: Annotated[UploadStore, Depends(get_upload_store)],
    pipeline: Annotated[ExtractionPipeline, Depends(get_pipeline)],
    pdf: Annotated[
        UploadFile | str | None, File(description="PDF label to analyze")
    ] = None,
):
    """
    Extract allergen and nutrition data from an uploaded PDF label.

    Digital PDFs are read as text; scanned PDFs are rendered page by page
    and analyzed by a vision model. The upload is deleted before responding.
    """
    # A plain form value under the pdf field is not a file upload
    if isinstance(pdf, str):
        pdf = None

    try:
        stored = await store.save(pdf)
    except UploadValidationError as e:
        logger.info("Rejected upload: %s", e)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=UploadErrorResponse(error=str(e)).model_dump(),
        )
    except Exception as e:
        logger.exception("Failed to store upload")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ExtractErrorResponse(details=str(e)).model_dump(),
        )
    finally:
        if pdf is not None:
            await pdf.close()

    logger.info("Processing file: %s", stored.path)

    try:
        result = await pipeline.process(stored)
    except Exception as e:
        logger.exception("Error processing PDF %s", stored.filename)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ExtractErrorResponse(details=str(e)).model_dump(),
        )

    return ExtractResponse(data=result, filename=stored.filename)
