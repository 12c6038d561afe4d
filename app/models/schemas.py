"""
Pydantic schemas for request/response validation.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Literal
from datetime import datetime
from enum import Enum

from app.models.database_models import DocumentFormat, DocumentType, GenerationStatus


# Enums (matching database enums)
class DocumentFormatSchema(str, Enum):
    """Output formats accepted by the generation endpoints."""

    PDF = "pdf"
    DOCX = "docx"


# Generation Schemas
class GenerateRequest(BaseModel):
    """Body of every POST /api/generate* endpoint."""

    prompt: str = Field(..., min_length=1, max_length=2000)
    user_id: str = Field(..., alias="userId", min_length=1, max_length=255)
    format: DocumentFormatSchema = DocumentFormatSchema.PDF

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Shape of every error body returned by the API."""

    error: str
    detail: Optional[str] = None


# Document Schemas
class DocumentResponse(BaseModel):
    """Schema for a persisted document record."""

    id: str
    user_id: str
    title: str
    type: DocumentType
    format: DocumentFormat
    file_url: Optional[str] = None
    file_size: int = 0
    share_token: Optional[str] = None
    is_public: bool = False
    status: GenerationStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentListResponse(BaseModel):
    """Response for GET /api/documents/{user_id}."""

    documents: List[DocumentResponse] = []


class DeleteDocumentResponse(BaseModel):
    success: bool = True


class ShareLinkResponse(BaseModel):
    """Response for POST /api/documents/{document_id}/share."""

    share_token: str = Field(..., serialization_alias="shareToken")
    share_url: str = Field(..., serialization_alias="shareUrl")


class SharedDocumentResponse(BaseModel):
    """Response for GET /api/share/{token}."""

    document: DocumentResponse


# Job Schemas
class JobStatusResponse(BaseModel):
    """Snapshot of one queued or running generation job."""

    job_id: str
    user_id: str
    topic: str
    profile: str
    format: str
    phase: Literal[
        "queued", "generating", "assembling", "rendering",
        "completed", "failed", "cancelled",
    ]
    queue_position: Optional[int] = None
    sections_total: int = 0
    sections_completed: int = 0
    current_section: Optional[str] = None
    error: Optional[str] = None
    elapsed_seconds: float = 0.0


class JobListResponse(BaseModel):
    jobs: List[JobStatusResponse] = []


class CancelJobsResponse(BaseModel):
    """Response for POST /api/jobs/{user_id}/cancel."""

    user_id: str
    cancelled: int
    message: str


# Health Check Schemas
class HealthCheckResponse(BaseModel):
    """Schema for health check endpoint."""

    status: str
    database: str
    completion_api: str
    storage: str
    queued_jobs: int = 0
    timestamp: datetime
    version: str = "0.1.0"
