"""
Document generation endpoints.

POST /generateBookSmall          — 5-chapter beginner book
POST /generateBookMed            — 10-chapter book
POST /generateBookLong           — 10-chapter in-depth book
POST /generateResearchPaper      — 5-section research paper
POST /generateResearchPaperLong  — 10-section research paper

Each request is queued behind any running job, answered with the rendered
file, and the local copy is removed once the response has been sent.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from app.dependencies.generation import get_generation_queue, get_object_storage
from app.models.database_models import DocumentFormat
from app.models.schemas import ErrorResponse, GenerateRequest
from app.services import document_records
from app.services.errors import GenerationCancelledError
from app.services.job_queue import GenerationJob, GenerationQueue
from app.services.profiles import GenerationProfile, get_profile
from app.services.storage import CONTENT_TYPES, ObjectStorage, StorageError, object_key
from app.utils.helpers import extract_topic

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or invalid request fields"},
    409: {"model": ErrorResponse, "description": "Generation cancelled by the user"},
    500: {"model": ErrorResponse, "description": "Generation, rendering or upload failed"},
}


def _remove_file(path: Path) -> None:
    if path.exists():
        os.remove(path)
        logger.debug("Removed served file %s", path)


async def _generate(
    body: GenerateRequest,
    profile: GenerationProfile,
    queue: GenerationQueue,
    storage: ObjectStorage,
) -> FileResponse:
    prompt = body.prompt.strip()
    if not prompt:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Prompt must not be empty.",
        )

    topic = extract_topic(prompt)
    fmt = DocumentFormat(body.format.value)

    try:
        document_id = await document_records.create_record(
            body.user_id, prompt, profile.document_type, fmt
        )
    except Exception as exc:
        logger.error("Could not create document record: %s", exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create document record",
        )

    async def _on_start(_job: GenerationJob) -> None:
        await document_records.mark_processing(document_id)

    async def _on_abandoned(_job: GenerationJob) -> None:
        await document_records.mark_failed(document_id)

    job = GenerationJob(
        topic=topic,
        user_id=body.user_id,
        profile=profile,
        output_format=fmt,
        on_start=_on_start,
        on_abandoned=_on_abandoned,
    )

    try:
        output_path = await queue.enqueue(job)
    except GenerationCancelledError:
        await document_records.mark_failed(document_id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Generation cancelled",
        )
    except Exception as exc:
        logger.error(
            "Generation failed for user %s (%s): %s", body.user_id, profile.key, exc
        )
        await document_records.mark_failed(document_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate document",
        )

    file_size = output_path.stat().st_size
    file_url = None
    if document_id is not None and storage.configured:
        try:
            file_url = await storage.upload(
                output_path, object_key(body.user_id, document_id, fmt.value), fmt.value
            )
        except StorageError:
            await document_records.mark_failed(document_id)
            _remove_file(output_path)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to upload document",
            )
    await document_records.mark_completed(document_id, file_url, file_size)

    logger.info(
        "Serving %s (%d bytes) to user %s", output_path.name, file_size, body.user_id
    )
    return FileResponse(
        output_path,
        media_type=CONTENT_TYPES[fmt.value],
        filename=f"document.{fmt.value}",
        background=BackgroundTask(_remove_file, output_path),
    )


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------

@router.post("/generateBookSmall", response_class=FileResponse, responses=_ERROR_RESPONSES)
async def generate_book_small(
    body: GenerateRequest,
    queue: GenerationQueue = Depends(get_generation_queue),
    storage: ObjectStorage = Depends(get_object_storage),
) -> FileResponse:
    """Short beginner book: table of contents, 5 chapters, conclusion."""
    return await _generate(body, get_profile("book_small"), queue, storage)


@router.post("/generateBookMed", response_class=FileResponse, responses=_ERROR_RESPONSES)
async def generate_book_medium(
    body: GenerateRequest,
    queue: GenerationQueue = Depends(get_generation_queue),
    storage: ObjectStorage = Depends(get_object_storage),
) -> FileResponse:
    return await _generate(body, get_profile("book_medium"), queue, storage)


@router.post("/generateBookLong", response_class=FileResponse, responses=_ERROR_RESPONSES)
async def generate_book_long(
    body: GenerateRequest,
    queue: GenerationQueue = Depends(get_generation_queue),
    storage: ObjectStorage = Depends(get_object_storage),
) -> FileResponse:
    return await _generate(body, get_profile("book_long"), queue, storage)


# ---------------------------------------------------------------------------
# Research papers
# ---------------------------------------------------------------------------

@router.post("/generateResearchPaper", response_class=FileResponse, responses=_ERROR_RESPONSES)
async def generate_research_paper(
    body: GenerateRequest,
    queue: GenerationQueue = Depends(get_generation_queue),
    storage: ObjectStorage = Depends(get_object_storage),
) -> FileResponse:
    return await _generate(body, get_profile("research_paper"), queue, storage)


@router.post("/generateResearchPaperLong", response_class=FileResponse, responses=_ERROR_RESPONSES)
async def generate_research_paper_long(
    body: GenerateRequest,
    queue: GenerationQueue = Depends(get_generation_queue),
    storage: ObjectStorage = Depends(get_object_storage),
) -> FileResponse:
    return await _generate(body, get_profile("research_long"), queue, storage)
