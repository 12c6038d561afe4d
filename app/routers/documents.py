"""
Document record endpoints.

GET    /documents/{user_id}              — list a user's documents, newest first.
DELETE /documents/{document_id}          — delete an owned document and its stored file.
POST   /documents/{document_id}/share    — mint a public share link.
GET    /share/{token}                    — fetch a shared document.

All routes answer 503 when no metadata store is configured.
"""
from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies.auth import get_current_user_id
from app.dependencies.generation import get_object_storage
from app.models.database_models import DocumentRecord
from app.models.schemas import (
    DeleteDocumentResponse,
    DocumentListResponse,
    DocumentResponse,
    ShareLinkResponse,
    SharedDocumentResponse,
)
from app.services.storage import ObjectStorage, StorageError, object_key

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_owned_document(
    document_id: str, user_id: str, db: AsyncSession
) -> DocumentRecord:
    result = await db.execute(
        select(DocumentRecord).where(
            DocumentRecord.id == document_id,
            DocumentRecord.user_id == user_id,
        )
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found",
        )
    return record


def _share_url(token: str) -> str:
    base = settings.SHARE_BASE_URL or settings.get_allowed_origins()[0]
    return f"{base.rstrip('/')}/share/{token}"


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

@router.get("/documents/{user_id}", response_model=DocumentListResponse)
async def list_documents(
    user_id: str,
    db: AsyncSession = Depends(get_db),
) -> DocumentListResponse:
    result = await db.execute(
        select(DocumentRecord)
        .where(DocumentRecord.user_id == user_id)
        .order_by(DocumentRecord.created_at.desc())
    )
    records = result.scalars().all()
    return DocumentListResponse(
        documents=[DocumentResponse.model_validate(r) for r in records]
    )


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@router.delete("/documents/{document_id}", response_model=DeleteDocumentResponse)
async def delete_document(
    document_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
) -> DeleteDocumentResponse:
    """
    Delete a document owned by the caller.

    The stored file is removed as well when object storage is configured;
    a storage failure is logged and does not keep the record alive.
    """
    record = await _get_owned_document(document_id, user_id, db)

    if record.file_url and storage.configured:
        try:
            await storage.remove(object_key(user_id, record.id, record.format.value))
        except StorageError as exc:
            logger.warning("Stored file for document %s not removed: %s", record.id, exc)

    await db.delete(record)
    await db.flush()
    logger.info("Deleted document %s for user %s", document_id, user_id)
    return DeleteDocumentResponse(success=True)


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------

@router.post("/documents/{document_id}/share", response_model=ShareLinkResponse)
async def share_document(
    document_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> ShareLinkResponse:
    """Make a document public; an existing token is reused."""
    record = await _get_owned_document(document_id, user_id, db)

    if not record.share_token:
        record.share_token = secrets.token_urlsafe(24)
    record.is_public = True
    await db.flush()

    logger.info("Shared document %s", document_id)
    return ShareLinkResponse(
        share_token=record.share_token,
        share_url=_share_url(record.share_token),
    )


@router.get("/share/{token}", response_model=SharedDocumentResponse)
async def get_shared_document(
    token: str,
    db: AsyncSession = Depends(get_db),
) -> SharedDocumentResponse:
    result = await db.execute(
        select(DocumentRecord).where(
            DocumentRecord.share_token == token,
            DocumentRecord.is_public.is_(True),
        )
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found or not shared",
        )
    return SharedDocumentResponse(document=DocumentResponse.model_validate(record))
