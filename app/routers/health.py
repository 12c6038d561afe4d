"""
Health check endpoint.
"""
from fastapi import APIRouter, Request
from sqlalchemy import text
from datetime import datetime, timezone
import logging

from app import database
from app.config import settings
from app.models.schemas import HealthCheckResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(request: Request):
    """
    Health check endpoint to verify system status.

    Returns:
        HealthCheckResponse with status of the metadata store, the completion
        credential, object storage and the generation queue
    """
    # Check database connection
    db_status = "not_configured"
    if database.is_database_configured():
        db_status = "ok"
        try:
            async with database.AsyncSessionLocal() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Database health check failed: %s", e)
            db_status = "error"

    completion_status = "ok" if settings.COMPLETION_API_KEY else "missing_api_key"
    storage_status = "ok" if settings.storage_configured else "not_configured"

    queue = getattr(request.app.state, "generation_queue", None)
    queued = queue.queued_count if queue is not None else 0

    # Overall status
    healthy = db_status != "error" and completion_status == "ok" and queue is not None
    overall_status = "healthy" if healthy else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        database=db_status,
        completion_api=completion_status,
        storage=storage_status,
        queued_jobs=queued,
        timestamp=datetime.now(timezone.utc),
    )
