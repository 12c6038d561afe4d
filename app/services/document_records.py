"""
Lifecycle of persisted document records during generation.

Each helper opens its own short-lived session so it can be called from the
queue worker as well as from a request handler.  When no metadata store is
configured every helper is a no-op.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import select

from app import database
from app.models.database_models import (
    DocumentFormat,
    DocumentRecord,
    DocumentType,
    GenerationStatus,
)

logger = logging.getLogger(__name__)


async def create_record(
    user_id: str,
    title: str,
    document_type: DocumentType,
    fmt: DocumentFormat,
) -> Optional[str]:
    """Insert a ``pending`` record and return its id (None without a metadata store)."""
    if database.AsyncSessionLocal is None:
        return None

    async with database.AsyncSessionLocal() as session:
        record = DocumentRecord(
            user_id=user_id,
            title=title,
            type=document_type,
            format=fmt,
            status=GenerationStatus.PENDING,
        )
        session.add(record)
        await session.commit()
        logger.info("Created document record %s for user %s", record.id, user_id)
        return record.id


async def update_record(document_id: Optional[str], **fields: Any) -> None:
    if database.AsyncSessionLocal is None or document_id is None:
        return

    async with database.AsyncSessionLocal() as session:
        result = await session.execute(
            select(DocumentRecord).where(DocumentRecord.id == document_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            logger.warning("Document record %s vanished before update", document_id)
            return
        for name, value in fields.items():
            setattr(record, name, value)
        await session.commit()


async def _set_status(
    document_id: Optional[str], status: GenerationStatus, **fields: Any
) -> bool:
    """
    Best-effort status change.

    A metadata-store failure is logged and reported as False; it never fails
    the generation or the download it describes.
    """
    try:
        await update_record(document_id, status=status, **fields)
    except Exception as exc:
        logger.error(
            "Could not mark document record %s %s: %s", document_id, status.value, exc
        )
        return False
    return True


async def mark_processing(document_id: Optional[str]) -> None:
    await _set_status(document_id, GenerationStatus.PROCESSING)


async def mark_completed(
    document_id: Optional[str], file_url: Optional[str], file_size: int
) -> None:
    if await _set_status(
        document_id, GenerationStatus.COMPLETED, file_url=file_url, file_size=file_size
    ):
        logger.info("Document record %s completed (%d bytes)", document_id, file_size)


async def mark_failed(document_id: Optional[str]) -> None:
    await _set_status(document_id, GenerationStatus.FAILED)
