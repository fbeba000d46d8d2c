"""Prompt template API routes."""

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from app.api.dependencies import TemplateSourceDep
from app.models.database import PromptTemplate

router = APIRouter()


class TemplateCreateRequest(BaseModel):
    """Create a new prompt template."""
    name: str = Field(..., min_length=1, max_length=100)
    prompt_text: str = Field(..., min_length=1)  # Style guidelines, e.g. "Banner: short, impactful"
    description: Optional[str] = None
    is_default: bool = False


def template_to_dict(template: PromptTemplate) -> dict:
    return {
        "id": template.id,
        "name": template.name,
        "description": template.description,
        "prompt_text": template.prompt_text,
        "is_default": template.is_default,
    }


@router.get("/templates")
async def list_templates(templates: TemplateSourceDep):
    return [template_to_dict(t) for t in await templates.list()]


@router.post("/templates")
async def create_template(request: TemplateCreateRequest, templates: TemplateSourceDep):
    """Create a template. ``is_default`` replaces the current default."""
    try:
        template = await templates.create(
            name=request.name,
            prompt_text=request.prompt_text,
            description=request.description,
            is_default=request.is_default,
        )
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return template_to_dict(template)
