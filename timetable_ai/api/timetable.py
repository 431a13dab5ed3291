"""
timetable.py (API Route)

Timetable upload and retrieval endpoints.

Endpoints:
- POST /api/v1/timetable/upload - Upload an image or PDF, extract and store events
- GET /api/v1/timetable/{timetable_id} - Fetch a stored extraction result

What this file does NOT do:
- Extract anything itself (delegates to TimetableService)
- Save files to disk (uploads stay in memory)

Flow:
User uploads file → This API → TimetableService → Orchestrator → Store → Return JSON
"""

from functools import lru_cache

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from timetable_ai.exceptions import ConfigurationError, PersistenceError, TimetableNotFoundError
from timetable_ai.schemas.timetable import TimetableRecord
from timetable_ai.schemas.upload import UploadedFile
from timetable_ai.services.orchestrator import ExtractionOrchestrator
from timetable_ai.services.providers import build_provider
from timetable_ai.services.store import build_store
from timetable_ai.services.timetable_service import TimetableService

# Create a router for timetable endpoints
# This router will be registered in main.py
router = APIRouter()


@lru_cache(maxsize=1)
def build_timetable_service() -> TimetableService:
    """Build the TimetableService once per process."""
    return TimetableService(
        orchestrator=ExtractionOrchestrator(provider=build_provider()),
        store=build_store(),
    )


def get_timetable_service() -> TimetableService:
    """
    FastAPI dependency.

    Tests replace it through app.dependency_overrides.
    """
    try:
        return build_timetable_service()
    except ConfigurationError as error:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"AI service not configured: {error}"
        )


@router.post(
    "/upload",
    response_model=TimetableRecord,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Upload a timetable image or PDF",
    description=(
        "Upload a timetable as an image (PNG, JPG, ...) or a PDF. "
        "Events are extracted by the inference provider, validated and stored. "
        "An extraction failure still returns 200 with no events; "
        "the warnings explain what went wrong."
    )
)
async def upload_timetable(
    file: UploadFile = File(..., description="Timetable image or PDF"),
    service: TimetableService = Depends(get_timetable_service),
):
    """
    Upload endpoint.

    Errors:
    - 400 Bad Request: File is missing or empty
    - 500 Internal Server Error: Result could not be stored
    """

    # Step 1: Validate that a filename exists
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded"
        )

    # Step 2: Read the file content into memory
    file_bytes = await file.read()

    # Step 3: Ensure the uploaded file is not empty
    if not file_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty"
        )

    uploaded = UploadedFile(
        original_name=file.filename,
        mime_type=file.content_type or "application/octet-stream",
        size_bytes=len(file_bytes),
        content=file_bytes,
    )

    # Step 4: Run the blocking pipeline outside the event loop
    try:
        return await run_in_threadpool(service.process_upload, uploaded)
    except PersistenceError as error:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to store timetable: {error}"
        )


@router.get(
    "/{timetable_id}",
    response_model=TimetableRecord,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    summary="Get a stored timetable",
)
async def get_timetable(
    timetable_id: str,
    service: TimetableService = Depends(get_timetable_service),
):
    try:
        return await run_in_threadpool(service.get_by_id, timetable_id)
    except TimetableNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Timetable not found"
        )
    except PersistenceError as error:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch timetable: {error}"
        )
