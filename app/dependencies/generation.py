"""
Dependencies that hand the shared generation services to route handlers.
"""
from __future__ import annotations

from fastapi import HTTPException, Request, status

from app.services.job_queue import GenerationQueue
from app.services.storage import ObjectStorage


def get_generation_queue(request: Request) -> GenerationQueue:
    queue = getattr(request.app.state, "generation_queue", None)
    if queue is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Generation queue not running",
        )
    return queue


def get_object_storage() -> ObjectStorage:
    return ObjectStorage()
