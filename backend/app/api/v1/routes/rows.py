"""Row API routes: manual entry and the review workflow."""

from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from app.api.dependencies import RowStoreDep, ValidatedProject
from app.core.storage import InvalidTransitionError, RowNotFoundError, VersionConflictError
from app.models.database import ProjectRow, RowStatus, SourceType

router = APIRouter()


class NewRow(BaseModel):
    """One row of source content."""
    source_text: str = Field(..., min_length=1)
    context: Optional[str] = None  # Where the text is used (banner, button...)
    source_type: SourceType = SourceType.TEXT


class AddRowsRequest(BaseModel):
    rows: List[NewRow] = Field(..., min_length=1)


class EditRowRequest(BaseModel):
    """Reviewer edit. ``target_text`` is merged per language."""
    target_text: Optional[Dict[str, str]] = None
    context: Optional[str] = None
    notes: Optional[str] = None
    reviewer: Optional[str] = None
    expected_version: Optional[int] = None  # Reject the edit if the row changed since


class ReviewRequest(BaseModel):
    reviewer: Optional[str] = None
    notes: Optional[str] = None


class BulkReviewRequest(BaseModel):
    row_ids: List[str] = Field(..., min_length=1)
    reviewer: Optional[str] = None
    notes: Optional[str] = None  # Only used when rejecting


def row_to_dict(row: ProjectRow) -> dict:
    return {
        "id": row.id,
        "project_id": row.project_id,
        "position": row.position,
        "source_text": row.source_text,
        "context": row.context,
        "source_type": row.source_type,
        "target_text": row.target_text or {},
        "status": row.status,
        "template_used": row.template_used,
        "glossary_matches": row.glossary_matches or [],
        "warnings": row.warnings or [],
        "error_message": row.error_message,
        "version": row.version,
        "reviewer": row.reviewer,
        "reviewed_at": row.reviewed_at.isoformat() if row.reviewed_at else None,
        "notes": row.notes,
        "translated_at": row.translated_at.isoformat() if row.translated_at else None,
    }


@router.get("/projects/{project_id}/rows")
async def list_rows(
    project: ValidatedProject,
    row_store: RowStoreDep,
    status: Optional[RowStatus] = Query(default=None),
):
    """List rows in position order, optionally filtered by status."""
    rows = await row_store.list_rows(project.id, status.value if status else None)
    return [row_to_dict(r) for r in rows]


@router.post("/projects/{project_id}/rows")
async def add_rows(
    request: AddRowsRequest,
    project: ValidatedProject,
    row_store: RowStoreDep,
):
    """Append rows entered manually."""
    rows = await row_store.add_rows(
        project.id,
        [
            {
                "source_text": r.source_text,
                "context": r.context,
                "source_type": r.source_type.value,
            }
            for r in request.rows
        ],
    )
    return [row_to_dict(r) for r in rows]


def _bulk_result(result: dict) -> dict:
    return {
        "updated": [row_to_dict(r) for r in result["updated"]],
        "errors": result["errors"],
    }


@router.post("/projects/{project_id}/rows/approve")
async def approve_rows(
    request: BulkReviewRequest,
    project: ValidatedProject,
    row_store: RowStoreDep,
):
    """Approve several rows; rows that cannot be approved are listed in ``errors``."""
    result = await row_store.approve_rows(
        project.id, request.row_ids, reviewer=request.reviewer
    )
    return _bulk_result(result)


@router.post("/projects/{project_id}/rows/reject")
async def reject_rows(
    request: BulkReviewRequest,
    project: ValidatedProject,
    row_store: RowStoreDep,
):
    result = await row_store.reject_rows(
        project.id, request.row_ids, reviewer=request.reviewer, notes=request.notes
    )
    return _bulk_result(result)


@router.patch("/projects/{project_id}/rows/{row_id}")
async def edit_row(
    row_id: str,
    request: EditRowRequest,
    project: ValidatedProject,
    row_store: RowStoreDep,
):
    """Edit a row's translation or notes."""
    changes = request.model_dump(exclude_unset=True, exclude={"expected_version"})
    try:
        row = await row_store.edit_row(
            project.id, row_id, changes, expected_version=request.expected_version
        )
    except RowNotFoundError:
        raise HTTPException(status_code=404, detail="Row not found")
    except VersionConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return row_to_dict(row)


@router.post("/projects/{project_id}/rows/{row_id}/approve")
async def approve_row(
    row_id: str,
    project: ValidatedProject,
    row_store: RowStoreDep,
    request: Optional[ReviewRequest] = None,
):
    """Approve a translated row."""
    try:
        row = await row_store.approve_row(
            project.id, row_id, reviewer=request.reviewer if request else None
        )
    except RowNotFoundError:
        raise HTTPException(status_code=404, detail="Row not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return row_to_dict(row)


@router.post("/projects/{project_id}/rows/{row_id}/reject")
async def reject_row(
    row_id: str,
    project: ValidatedProject,
    row_store: RowStoreDep,
    request: Optional[ReviewRequest] = None,
):
    """Send a row back to pending for retranslation."""
    try:
        row = await row_store.reject_row(
            project.id,
            row_id,
            reviewer=request.reviewer if request else None,
            notes=request.notes if request else None,
        )
    except RowNotFoundError:
        raise HTTPException(status_code=404, detail="Row not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return row_to_dict(row)


@router.delete("/projects/{project_id}/rows/{row_id}")
async def delete_row(
    row_id: str,
    project: ValidatedProject,
    row_store: RowStoreDep,
):
    try:
        await row_store.delete_row(project.id, row_id)
    except RowNotFoundError:
        raise HTTPException(status_code=404, detail="Row not found")
    return {"deleted": row_id}
