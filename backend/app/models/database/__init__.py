"""Database models package."""

from app.models.database.base import Base, get_db, async_session_maker, init_db
from app.models.database.project import Project
from app.models.database.project_row import ProjectRow
from app.models.database.glossary_term import GlossaryTerm
from app.models.database.prompt_template import PromptTemplate
# Centralized enums
from app.models.database.enums import (
    RowStatus,
    SourceType,
    ProjectStatus,
    GlossaryCategory,
    IN_FLIGHT_STATUSES,
    REVIEWABLE_STATUSES,
)

__all__ = [
    # Base
    "Base",
    "get_db",
    "async_session_maker",
    "init_db",
    # Models
    "Project",
    "ProjectRow",
    "GlossaryTerm",
    "PromptTemplate",
    # Enums
    "RowStatus",
    "SourceType",
    "ProjectStatus",
    "GlossaryCategory",
    "IN_FLIGHT_STATUSES",
    "REVIEWABLE_STATUSES",
]
