"""Content documents and orphaned media ledger."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "content_document",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="draft"),
        sa.Column("category", sa.String(length=64)),
        sa.Column("title", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("search_text", sa.Text(), nullable=False, server_default=""),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("document", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(length=255)),
        sa.Column("updated_by", sa.String(length=255)),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_index("ix_content_document_kind", "content_document", ["kind"])
    op.create_index(
        "ix_content_document_kind_category_status",
        "content_document",
        ["kind", "category", "status"],
    )
    op.create_index(
        "ix_content_document_kind_created_at", "content_document", ["kind", "created_at"]
    )

    op.create_table(
        "orphaned_media",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("reference_id", sa.String(length=128), nullable=False),
        sa.Column("stored_path", sa.String(length=512), nullable=False, server_default=""),
        sa.Column("entity_kind", sa.String(length=32)),
        sa.Column("entity_id", sa.String(length=32)),
        sa.Column("slot", sa.String(length=64)),
        sa.Column("reason", sa.String(length=32), nullable=False),
        sa.Column("last_error", sa.Text()),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "recorded_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("resolved_at", sa.DateTime()),
    )
    op.create_index("ix_orphaned_media_reference_id", "orphaned_media", ["reference_id"])


def downgrade() -> None:
    op.drop_index("ix_orphaned_media_reference_id", table_name="orphaned_media")
    op.drop_table("orphaned_media")
    op.drop_index("ix_content_document_kind_created_at", table_name="content_document")
    op.drop_index("ix_content_document_kind_category_status", table_name="content_document")
    op.drop_index("ix_content_document_kind", table_name="content_document")
    op.drop_table("content_document")
