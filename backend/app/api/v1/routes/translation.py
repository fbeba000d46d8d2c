"""Translation API routes: queue control, progress and prompt preview."""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from app.api.dependencies import (
    GlossarySourceDep,
    QueueRegistryDep,
    RowStoreDep,
    TemplateSourceDep,
    ValidatedProject,
)
from app.config import settings
from app.core.llm import UnifiedLLMGateway, resolve_runtime_config
from app.core.storage import TemplateNotFoundError, TemplateSource
from app.core.translation import ApiNotConfiguredError, PromptBuilder, PromptTemplateData

logger = logging.getLogger(__name__)

router = APIRouter()


class QueueTranslationRequest(BaseModel):
    """Rows to translate and the template to apply."""
    row_ids: List[str] = Field(default_factory=list)
    template_id: Optional[str] = None  # None = default template


class PreviewRequest(BaseModel):
    row_ids: List[str] = Field(..., min_length=1)
    template_id: Optional[str] = None


def _not_configured(error: ApiNotConfiguredError) -> HTTPException:
    return HTTPException(
        status_code=503,
        detail={"code": error.code, "message": error.message},
    )


async def _resolve_template(
    templates: TemplateSource, template_id: Optional[str]
) -> Optional[PromptTemplateData]:
    if not template_id:
        return await templates.get_default()
    try:
        return await templates.get(template_id)
    except TemplateNotFoundError:
        raise HTTPException(status_code=404, detail="Template not found")


@router.post("/projects/{project_id}/translation/queue")
async def queue_translation(
    request: QueueTranslationRequest,
    project: ValidatedProject,
    registry: QueueRegistryDep,
    templates: TemplateSourceDep,
):
    """Queue rows for translation.

    Rows are marked ``queued`` before the response is sent; translation runs
    in the background. Poll ``/translation/progress`` for status.
    """
    template = await _resolve_template(templates, request.template_id)
    queue = registry.get(project)
    try:
        return await queue.enqueue(request.row_ids, template)
    except ApiNotConfiguredError as e:
        logger.warning(f"Translation requested for {project.id} without a provider: {e.message}")
        raise _not_configured(e)


@router.post("/projects/{project_id}/translation/cancel")
async def cancel_translation(project: ValidatedProject, registry: QueueRegistryDep):
    """Cancel queued and in-flight batches; their rows return to pending."""
    queue = registry.peek(project.id)
    if queue is None:
        return registry.snapshot(project.id)
    return await queue.cancel()


@router.get("/projects/{project_id}/translation/progress")
async def get_progress(
    project: ValidatedProject,
    registry: QueueRegistryDep,
    row_store: RowStoreDep,
):
    """Queue state plus per-status row counts."""
    snapshot = registry.snapshot(project.id)
    snapshot["row_counts"] = await row_store.status_counts(project.id)
    return snapshot


@router.post("/projects/{project_id}/translation/preview")
async def preview_prompt(
    request: PreviewRequest,
    project: ValidatedProject,
    row_store: RowStoreDep,
    templates: TemplateSourceDep,
    glossary: GlossarySourceDep,
):
    """Render the prompt the selected rows would be sent with, without calling the model."""
    rows = await row_store.get_rows(project.id, request.row_ids)
    if not rows:
        raise HTTPException(status_code=404, detail="No matching rows")
    template = await _resolve_template(templates, request.template_id)
    terms = await glossary.get_active_glossary(project.glossary_version)

    batch = rows[: settings.translation_batch_size]
    return PromptBuilder.preview(
        batch,
        template,
        terms,
        project.target_languages or settings.default_target_languages,
        project.source_language or settings.source_language,
    )


@router.post("/translation/test-connection")
async def test_connection():
    """Check that the configured LLM provider answers."""
    try:
        config = resolve_runtime_config(settings)
    except ApiNotConfiguredError as e:
        raise _not_configured(e)

    ok = await UnifiedLLMGateway.health_check(config)
    return {"success": ok, **config.describe()}
