"""Project API routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import QueueRegistryDep, RowStoreDep, ValidatedProject
from app.config import settings
from app.models.database import Project, ProjectRow, ProjectStatus, get_db

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateProjectRequest(BaseModel):
    """Request to create a translation project."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    glossary_version: Optional[str] = None  # Defaults to settings.default_glossary_version
    source_language: Optional[str] = None
    target_languages: Optional[List[str]] = None


class UpdateProjectRequest(BaseModel):
    """Partial project update."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    glossary_version: Optional[str] = None
    status: Optional[str] = None


def project_to_dict(project: Project) -> dict:
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "glossary_version": project.glossary_version,
        "source_language": project.source_language,
        "target_languages": project.target_languages,
        "status": project.status,
        "created_at": project.created_at.isoformat() if project.created_at else None,
        "updated_at": project.updated_at.isoformat() if project.updated_at else None,
    }


@router.post("/projects")
async def create_project(
    request: CreateProjectRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create a new project."""
    project = Project(
        name=request.name,
        description=request.description,
        glossary_version=request.glossary_version or settings.default_glossary_version,
        source_language=request.source_language or settings.source_language,
        target_languages=request.target_languages or list(settings.default_target_languages),
        status=ProjectStatus.DRAFT.value,
    )
    db.add(project)
    await db.commit()
    await db.refresh(project)
    logger.info(f"Created project {project.id} ({project.name})")
    return project_to_dict(project)


@router.get("/projects")
async def list_projects(db: AsyncSession = Depends(get_db)):
    """List all projects, newest first."""
    result = await db.execute(select(Project).order_by(Project.created_at.desc()))
    return [project_to_dict(p) for p in result.scalars().all()]


@router.get("/projects/{project_id}")
async def get_project(
    project: ValidatedProject,
    row_store: RowStoreDep,
    registry: QueueRegistryDep,
):
    """Get project details with per-status row counts and queue state."""
    return {
        **project_to_dict(project),
        "row_counts": await row_store.status_counts(project.id),
        "queue": registry.snapshot(project.id),
    }


@router.patch("/projects/{project_id}")
async def update_project(
    request: UpdateProjectRequest,
    project: ValidatedProject,
    db: AsyncSession = Depends(get_db),
):
    """Update project metadata."""
    if request.status is not None and request.status not in {s.value for s in ProjectStatus}:
        raise HTTPException(status_code=400, detail=f"Invalid status: {request.status}")

    for field in ("name", "description", "glossary_version", "status"):
        value = getattr(request, field)
        if value is not None:
            setattr(project, field, value)
    await db.commit()
    await db.refresh(project)
    return project_to_dict(project)


@router.delete("/projects/{project_id}")
async def delete_project(
    project: ValidatedProject,
    registry: QueueRegistryDep,
    db: AsyncSession = Depends(get_db),
):
    """Delete a project and its rows, stopping any running translation."""
    queue = registry.peek(project.id)
    if queue:
        await queue.cancel()
        registry.discard(project.id)
    await db.execute(delete(ProjectRow).where(ProjectRow.project_id == project.id))
    await db.execute(delete(Project).where(Project.id == project.id))
    await db.commit()
    logger.info(f"Deleted project {project.id}")
    return {"deleted": project.id}
