"""documents table

Revision ID: 001
Revises:
Create Date: 2026-10-19

Metadata for generated documents, as defined in app/models/database_models.py.
File bytes live in object storage; only the public URL is stored here.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── Enum types ────────────────────────────────────────────────────────
    document_type = sa.Enum(
        "book_small", "book_medium", "book_long", "research_paper", "research_long",
        name="documenttype",
    )
    document_format = sa.Enum("pdf", "docx", name="documentformat")
    generation_status = sa.Enum(
        "pending", "processing", "completed", "failed", name="generationstatus"
    )

    # ── documents ─────────────────────────────────────────────────────────
    op.create_table(
        "documents",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False, index=True),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("type", document_type, nullable=False),
        sa.Column("format", document_format, nullable=False, server_default="pdf"),
        sa.Column("file_url", sa.Text, nullable=True),
        sa.Column("file_size", sa.BigInteger, nullable=False, server_default="0"),
        sa.Column("share_token", sa.String(64), nullable=True, unique=True, index=True),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("generation_status", generation_status, nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("documents")

    op.execute("DROP TYPE IF EXISTS generationstatus")
    op.execute("DROP TYPE IF EXISTS documentformat")
    op.execute("DROP TYPE IF EXISTS documenttype")
