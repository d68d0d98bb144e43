"""FastAPI application for the vehicle registration OCR service.

The registration form uploads a certificate photo and pre-fills its
inputs from the returned fields; every field stays user-editable.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from vehicle_ocr import __version__
from vehicle_ocr.exceptions import (
    EngineUnavailableError,
    ImageDecodeError,
    VehicleOCRError,
)
from vehicle_ocr.ocr.registration_processor import RegistrationProcessor
from vehicle_ocr.ocr.tesseract_engine import TesseractEngine
from vehicle_ocr.utils.config import load_config
from vehicle_ocr.utils.logger import get_logger

from .schemas import (
    BatchExtractionResponse,
    BatchItemResponse,
    FieldInfo,
    FieldRuleInfo,
    FieldsResponse,
    HealthResponse,
    OCRResultResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="Vehicle Registration OCR API",
    description="Extract vehicle and owner fields from registration certificate photos",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "application/octet-stream",
}


@lru_cache(maxsize=1)
def _get_processor() -> RegistrationProcessor:
    """Build the shared processor once, so requests share one worker pool."""
    return RegistrationProcessor(load_config())


def _error_status(exc: VehicleOCRError) -> int:
    if isinstance(exc, ImageDecodeError):
        return 422
    if isinstance(exc, EngineUnavailableError):
        return 503
    return 500


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return service health and Tesseract availability.

    Plain ``def`` so the Tesseract subprocess calls run in the threadpool.
    """
    engine = _get_processor().engine
    if isinstance(engine, TesseractEngine):
        available = engine.is_available()
        languages = engine.available_languages() if available else []
    else:
        available, languages = True, []
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=available,
        languages_available=languages,
    )


@app.post(
    "/extract",
    response_model=OCRResultResponse,
    response_model_exclude_none=True,
)
async def extract_registration(
    file: Annotated[UploadFile, File(...)],
) -> OCRResultResponse:
    """Extract registration fields from an uploaded certificate photo.

    Args:
        file: Uploaded JPEG or PNG image.

    Returns:
        Extracted fields with raw text and confidence.
    """
    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )

    content = await file.read()
    try:
        result = await _get_processor().process_async(content)
    except VehicleOCRError as exc:
        logger.error("Extraction failed for %s: %s", file.filename, exc)
        raise HTTPException(
            status_code=_error_status(exc), detail=exc.user_message
        ) from exc

    return OCRResultResponse(**result.to_dict())


@app.post(
    "/extract/batch",
    response_model=BatchExtractionResponse,
    response_model_exclude_none=True,
)
async def extract_batch(
    files: Annotated[list[UploadFile], File(...)],
) -> BatchExtractionResponse:
    """Extract registration fields from several photos, one result per file."""
    results: list[BatchItemResponse] = []
    successful = 0

    for file in files:
        try:
            result = await extract_registration(file)
            results.append(
                BatchItemResponse(filename=file.filename or "unknown", result=result)
            )
            successful += 1
        except HTTPException as exc:
            results.append(
                BatchItemResponse(filename=file.filename or "unknown", error=exc.detail)
            )

    return BatchExtractionResponse(
        success=successful > 0,
        total_documents=len(files),
        successful=successful,
        failed=len(files) - successful,
        results=results,
    )


@app.get("/fields", response_model=FieldsResponse)
async def list_fields() -> FieldsResponse:
    """List the extractable fields and each one's rule cascade."""
    description = _get_processor().extractor.describe()
    return FieldsResponse(
        fields=[
            FieldInfo(
                name=name,
                rules=[FieldRuleInfo(**rule) for rule in rules],
            )
            for name, rules in description.items()
        ]
    )
