"""Database and schema models for Bookgen."""
from app.models.database_models import (
    DocumentRecord,
    DocumentType,
    DocumentFormat,
    GenerationStatus,
)
from app.models.schemas import (
    GenerateRequest,
    ErrorResponse,
    DocumentResponse,
    DocumentListResponse,
    ShareLinkResponse,
    SharedDocumentResponse,
    JobStatusResponse,
    HealthCheckResponse,
)

__all__ = [
    # Database models
    "DocumentRecord",
    "DocumentType",
    "DocumentFormat",
    "GenerationStatus",
    # Pydantic schemas
    "GenerateRequest",
    "ErrorResponse",
    "DocumentResponse",
    "DocumentListResponse",
    "ShareLinkResponse",
    "SharedDocumentResponse",
    "JobStatusResponse",
    "HealthCheckResponse",
]
