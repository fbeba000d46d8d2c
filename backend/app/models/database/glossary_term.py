"""Glossary term database model."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, Boolean, DateTime, JSON, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.config import settings
from app.models.database.base import Base
from app.models.database.enums import GlossaryCategory


class GlossaryTerm(Base):
    """Source term with mandated renderings per target language."""

    __tablename__ = "glossary_terms"
    __table_args__ = (
        UniqueConstraint("source_term", "version", name="uix_glossary_term_version"),
        Index("ix_glossary_terms_version_active", "version", "is_active"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    source_term: Mapped[str] = mapped_column(String(255), nullable=False)

    # Renderings keyed by language code, e.g. {"my": "Pelan Premium", "zh": "高级套餐"}
    translations: Mapped[dict] = mapped_column(JSON, default=dict)

    category: Mapped[str] = mapped_column(
        String(20), default=GlossaryCategory.GENERAL.value
    )
    do_not_translate: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    version: Mapped[str] = mapped_column(
        String(50), default=lambda: settings.default_glossary_version
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
