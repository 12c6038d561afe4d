"""
SQLAlchemy ORM models for the Bookgen metadata store.
One table: generated document metadata. File bytes live in object storage.
"""
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    String,
    Text,
    Enum as SQLEnum,
)
from sqlalchemy.sql import func
import enum
import uuid

from app.database import Base


# Enums
class DocumentType(str, enum.Enum):
    """Generation profile a document was produced with."""

    BOOK_SMALL = "book_small"
    BOOK_MEDIUM = "book_medium"
    BOOK_LONG = "book_long"
    RESEARCH_PAPER = "research_paper"
    RESEARCH_LONG = "research_long"


class DocumentFormat(str, enum.Enum):
    """Rendered file format."""

    PDF = "pdf"
    DOCX = "docx"


class GenerationStatus(str, enum.Enum):
    """Lifecycle of a document record: pending -> processing -> completed | failed."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def _new_id() -> str:
    return str(uuid.uuid4())


# Models
class DocumentRecord(Base):
    """Metadata row for one generated document."""

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(255), nullable=False, index=True)
    title = Column(Text, nullable=False)
    type = Column(SQLEnum(DocumentType, values_callable=lambda e: [m.value for m in e]), nullable=False)
    format = Column(
        SQLEnum(DocumentFormat, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=DocumentFormat.PDF,
    )
    file_url = Column(Text, nullable=True)
    file_size = Column(BigInteger, nullable=False, default=0)
    share_token = Column(String(64), nullable=True, unique=True, index=True)
    is_public = Column(Boolean, nullable=False, default=False)
    status = Column(
        "generation_status",
        SQLEnum(GenerationStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=GenerationStatus.PENDING,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
