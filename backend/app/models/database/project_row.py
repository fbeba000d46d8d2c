"""Project row database model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.database.base import Base
from app.models.database.enums import RowStatus, SourceType

if TYPE_CHECKING:
    from app.models.database.project import Project


class ProjectRow(Base):
    """A single translatable unit of content - the atomic unit for translation."""

    __tablename__ = "project_rows"
    __table_args__ = (
        Index("ix_project_rows_project_status", "project_id", "status"),
        Index("ix_project_rows_project_position", "project_id", "position"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )

    # Source content
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    source_text: Mapped[str] = mapped_column(Text, nullable=False)
    context: Mapped[Optional[str]] = mapped_column(Text)  # Where the text is used (page, banner...)
    source_type: Mapped[str] = mapped_column(String(20), default=SourceType.TEXT.value)

    # Translations keyed by language code, e.g. {"my": "...", "zh": "..."}
    target_text: Mapped[dict] = mapped_column(JSON, default=dict)

    # Translation state
    status: Mapped[str] = mapped_column(String(20), default=RowStatus.PENDING.value)
    template_used: Mapped[Optional[str]] = mapped_column(String(100))
    glossary_matches: Mapped[list] = mapped_column(JSON, default=list)
    warnings: Mapped[list] = mapped_column(JSON, default=list)
    error_message: Mapped[Optional[str]] = mapped_column(Text)

    # Bumped on every write; automated writes are conditional on it
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Review
    reviewer: Mapped[Optional[str]] = mapped_column(String(100))
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamps
    translated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    project: Mapped["Project"] = relationship("Project", back_populates="rows")
