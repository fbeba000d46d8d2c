"""Glossary API routes."""

from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from app.api.dependencies import GlossarySourceDep
from app.config import settings
from app.core.storage import DuplicateTermError, GlossaryTermNotFoundError
from app.models.database import GlossaryCategory, GlossaryTerm

router = APIRouter()


class GlossaryTermRequest(BaseModel):
    """Glossary term as entered in the glossary manager."""
    source_term: str = Field(..., min_length=1, max_length=255)
    translations: Dict[str, str] = Field(default_factory=dict)  # {"my": "...", "zh": "..."}
    category: GlossaryCategory = GlossaryCategory.GENERAL
    do_not_translate: bool = False
    notes: Optional[str] = None
    version: Optional[str] = None
    is_active: bool = True


class GlossaryTermUpdateRequest(BaseModel):
    """Partial term update; omitted fields keep their value."""
    source_term: Optional[str] = Field(default=None, min_length=1, max_length=255)
    translations: Optional[Dict[str, str]] = None
    category: Optional[GlossaryCategory] = None
    do_not_translate: Optional[bool] = None
    notes: Optional[str] = None
    version: Optional[str] = None
    is_active: Optional[bool] = None


class GlossaryImportRequest(BaseModel):
    terms: List[GlossaryTermRequest]


def term_to_dict(term: GlossaryTerm) -> dict:
    return {
        "id": term.id,
        "source_term": term.source_term,
        "translations": term.translations or {},
        "category": term.category,
        "do_not_translate": term.do_not_translate,
        "notes": term.notes,
        "version": term.version,
        "is_active": term.is_active,
    }


def _term_data(request: GlossaryTermRequest) -> dict:
    data = request.model_dump()
    data["category"] = request.category.value
    data["version"] = request.version or settings.default_glossary_version
    return data


@router.get("/glossary")
async def list_terms(
    glossary: GlossarySourceDep,
    version: Optional[str] = None,
    category: Optional[GlossaryCategory] = None,
    active_only: bool = False,
    search: Optional[str] = Query(default=None, max_length=255),
):
    """List glossary terms with optional filters."""
    terms = await glossary.list_terms(
        version=version,
        category=category.value if category else None,
        active_only=active_only,
        search=search,
    )
    return [term_to_dict(t) for t in terms]


@router.post("/glossary")
async def create_term(request: GlossaryTermRequest, glossary: GlossarySourceDep):
    """Create a glossary term."""
    try:
        term = await glossary.create_term(_term_data(request))
    except DuplicateTermError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return term_to_dict(term)


@router.put("/glossary/{term_id}")
async def update_term(
    term_id: str, request: GlossaryTermUpdateRequest, glossary: GlossarySourceDep
):
    """Update a term, e.g. deactivate it so it drops out of the active glossary."""
    changes = request.model_dump(exclude_unset=True)
    if changes.get("category") is not None:
        changes["category"] = request.category.value
    try:
        term = await glossary.update_term(term_id, changes)
    except GlossaryTermNotFoundError:
        raise HTTPException(status_code=404, detail="Glossary term not found")
    except DuplicateTermError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return term_to_dict(term)


@router.delete("/glossary/{term_id}")
async def delete_term(term_id: str, glossary: GlossarySourceDep):
    try:
        await glossary.delete_term(term_id)
    except GlossaryTermNotFoundError:
        raise HTTPException(status_code=404, detail="Glossary term not found")
    return {"deleted": term_id}


@router.post("/glossary/import")
async def import_terms(request: GlossaryImportRequest, glossary: GlossarySourceDep):
    """Bulk import terms. Failures are reported per term."""
    return await glossary.bulk_import([_term_data(t) for t in request.terms])


@router.get("/glossary/versions")
async def list_versions(glossary: GlossarySourceDep):
    return await glossary.list_versions()
