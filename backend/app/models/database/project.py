"""Project database model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.config import settings
from app.models.database.base import Base
from app.models.database.enums import ProjectStatus

if TYPE_CHECKING:
    from app.models.database.project_row import ProjectRow


class Project(Base):
    """Translation project grouping rows of marketing content."""

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Translation settings
    glossary_version: Mapped[str] = mapped_column(
        String(50), default=lambda: settings.default_glossary_version
    )
    source_language: Mapped[str] = mapped_column(
        String(10), default=lambda: settings.source_language
    )
    target_languages: Mapped[list] = mapped_column(
        JSON, default=lambda: list(settings.default_target_languages)
    )

    # Status
    status: Mapped[str] = mapped_column(String(50), default=ProjectStatus.DRAFT.value)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    rows: Mapped[list["ProjectRow"]] = relationship(
        "ProjectRow", back_populates="project", cascade="all, delete-orphan",
        order_by="ProjectRow.position",
    )
