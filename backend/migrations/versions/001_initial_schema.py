"""Initial schema: projects, rows, glossary terms and prompt templates.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-18

Rows carry a ``version`` counter used for conditional writes from the
translation queue.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "projects",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("glossary_version", sa.String(50), server_default="v1.0"),
        sa.Column("source_language", sa.String(10), server_default="en"),
        sa.Column("target_languages", sa.JSON()),
        sa.Column("status", sa.String(50), server_default="draft"),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )

    op.create_table(
        "project_rows",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "project_id",
            sa.String(36),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("source_text", sa.Text(), nullable=False),
        sa.Column("context", sa.Text()),
        sa.Column("source_type", sa.String(20), server_default="text"),
        sa.Column("target_text", sa.JSON()),
        sa.Column("status", sa.String(20), server_default="pending"),
        sa.Column("template_used", sa.String(100)),
        sa.Column("glossary_matches", sa.JSON()),
        sa.Column("warnings", sa.JSON()),
        sa.Column("error_message", sa.Text()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("reviewer", sa.String(100)),
        sa.Column("reviewed_at", sa.DateTime()),
        sa.Column("notes", sa.Text()),
        sa.Column("translated_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )
    op.create_index(
        "ix_project_rows_project_status", "project_rows", ["project_id", "status"]
    )
    op.create_index(
        "ix_project_rows_project_position", "project_rows", ["project_id", "position"]
    )

    op.create_table(
        "glossary_terms",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("source_term", sa.String(255), nullable=False),
        sa.Column("translations", sa.JSON()),
        sa.Column("category", sa.String(20), server_default="general"),
        sa.Column("do_not_translate", sa.Boolean(), server_default="0"),
        sa.Column("notes", sa.Text()),
        sa.Column("version", sa.String(50), server_default="v1.0"),
        sa.Column("is_active", sa.Boolean(), server_default="1"),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
        sa.UniqueConstraint("source_term", "version", name="uix_glossary_term_version"),
    )
    op.create_index(
        "ix_glossary_terms_version_active", "glossary_terms", ["version", "is_active"]
    )

    op.create_table(
        "prompt_templates",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("prompt_text", sa.Text(), nullable=False),
        sa.Column("is_default", sa.Boolean(), server_default="0"),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("prompt_templates")
    op.drop_index("ix_glossary_terms_version_active", table_name="glossary_terms")
    op.drop_table("glossary_terms")
    op.drop_index("ix_project_rows_project_position", table_name="project_rows")
    op.drop_index("ix_project_rows_project_status", table_name="project_rows")
    op.drop_table("project_rows")
    op.drop_table("projects")
