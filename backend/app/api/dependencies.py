"""API dependencies for project validation, stores and the translation queue.

Stores are built per request from a session factory so tests can point the
whole API at a temporary database by overriding ``get_session_maker``.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Path, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.storage import GlossarySource, RowStore, TemplateSource
from app.core.translation.queue import QueueRegistry
from app.models.database.base import get_db, async_session_maker
from app.models.database.project import Project

logger = logging.getLogger(__name__)


def get_session_maker() -> async_sessionmaker:
    """Session factory used by the stores."""
    return async_session_maker


def get_row_store(
    session_maker: async_sessionmaker = Depends(get_session_maker),
) -> RowStore:
    return RowStore(session_maker)


def get_glossary_source(
    session_maker: async_sessionmaker = Depends(get_session_maker),
) -> GlossarySource:
    return GlossarySource(session_maker)


def get_template_source(
    session_maker: async_sessionmaker = Depends(get_session_maker),
) -> TemplateSource:
    return TemplateSource(session_maker)


def get_queue_registry(request: Request) -> QueueRegistry:
    """Process-wide queue registry, kept on ``app.state``.

    Created in the application lifespan; created lazily here when the app
    runs without one (e.g. under a test client that skips lifespan).
    """
    registry = getattr(request.app.state, "queue_registry", None)
    if registry is None:
        registry = QueueRegistry()
        request.app.state.queue_registry = registry
    return registry


async def get_validated_project(
    project_id: Annotated[str, Path(description="Project ID")],
    db: AsyncSession = Depends(get_db),
) -> Project:
    """Get a project or fail with 404.

    Args:
        project_id: The project UUID from the URL path
        db: Database session

    Returns:
        Project: The validated project

    Raises:
        HTTPException: 404 if project not found
    """
    result = await db.execute(select(Project).where(Project.id == project_id))
    project = result.scalar_one_or_none()

    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    return project


# Type aliases for cleaner dependency injection
ValidatedProject = Annotated[Project, Depends(get_validated_project)]
RowStoreDep = Annotated[RowStore, Depends(get_row_store)]
GlossarySourceDep = Annotated[GlossarySource, Depends(get_glossary_source)]
TemplateSourceDep = Annotated[TemplateSource, Depends(get_template_source)]
QueueRegistryDep = Annotated[QueueRegistry, Depends(get_queue_registry)]
