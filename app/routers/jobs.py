"""
Generation job endpoints.

GET  /jobs/{user_id}         — status of the user's queued, running and recent jobs.
POST /jobs/{user_id}/cancel  — cancel the user's unfinished jobs.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.dependencies.generation import get_generation_queue
from app.models.schemas import CancelJobsResponse, JobListResponse, JobStatusResponse
from app.services.job_queue import GenerationQueue, JobStatus

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(status: JobStatus, queue: GenerationQueue) -> JobStatusResponse:
    return JobStatusResponse(
        job_id=status.job_id,
        user_id=status.user_id,
        topic=status.topic,
        profile=status.profile,
        format=status.output_format,
        phase=status.phase.value,
        queue_position=queue.queue_position(status.job_id),
        sections_total=status.sections_total,
        sections_completed=status.sections_completed,
        current_section=status.current_section,
        error=status.error,
        elapsed_seconds=status.elapsed_seconds,
    )


@router.get("/jobs/{user_id}", response_model=JobListResponse)
async def list_jobs(
    user_id: str,
    queue: GenerationQueue = Depends(get_generation_queue),
) -> JobListResponse:
    return JobListResponse(
        jobs=[_to_response(s, queue) for s in queue.statuses_for(user_id)]
    )


@router.post("/jobs/{user_id}/cancel", response_model=CancelJobsResponse)
async def cancel_jobs(
    user_id: str,
    queue: GenerationQueue = Depends(get_generation_queue),
) -> CancelJobsResponse:
    """
    Request cancellation of every unfinished job of *user_id*.

    Cancellation is cooperative: a running job stops before its next section.
    """
    cancelled = queue.cancel_user(user_id)
    message = (
        f"Cancellation requested for {cancelled} job(s)."
        if cancelled
        else "No unfinished jobs to cancel."
    )
    return CancelJobsResponse(user_id=user_id, cancelled=cancelled, message=message)
