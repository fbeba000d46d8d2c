"""Prompt template storage."""

from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.translation.models import PromptTemplateData
from app.models.database import PromptTemplate, async_session_maker


class TemplateNotFoundError(Exception):
    """No template with that id or name."""


class TemplateSource:
    """Reads and writes prompt templates."""

    def __init__(self, session_maker: async_sessionmaker = async_session_maker):
        self._session_maker = session_maker

    async def get(self, template_id: str) -> PromptTemplateData:
        async with self._session_maker() as db:
            template = await db.get(PromptTemplate, template_id)
            if not template:
                raise TemplateNotFoundError(template_id)
            return PromptTemplateData.model_validate(template)

    async def get_by_name(self, name: str) -> Optional[PromptTemplateData]:
        async with self._session_maker() as db:
            template = await db.scalar(
                select(PromptTemplate).where(PromptTemplate.name == name)
            )
            return PromptTemplateData.model_validate(template) if template else None

    async def get_default(self) -> Optional[PromptTemplateData]:
        """The template marked default, or None (the builder then uses its own)."""
        async with self._session_maker() as db:
            template = await db.scalar(
                select(PromptTemplate)
                .where(PromptTemplate.is_default.is_(True))
                .order_by(PromptTemplate.created_at)
                .limit(1)
            )
            return PromptTemplateData.model_validate(template) if template else None

    async def list(self) -> List[PromptTemplate]:
        async with self._session_maker() as db:
            result = await db.execute(
                select(PromptTemplate).order_by(PromptTemplate.name)
            )
            return list(result.scalars().all())

    async def create(
        self,
        name: str,
        prompt_text: str,
        description: Optional[str] = None,
        is_default: bool = False,
    ) -> PromptTemplate:
        """Create a template. A new default replaces the previous one."""
        async with self._session_maker() as db:
            existing = await db.scalar(
                select(PromptTemplate.id).where(PromptTemplate.name == name)
            )
            if existing:
                raise ValueError(f"Template '{name}' already exists")

            if is_default:
                await db.execute(
                    update(PromptTemplate)
                    .where(PromptTemplate.is_default.is_(True))
                    .values(is_default=False)
                    .execution_options(synchronize_session=False)
                )
            template = PromptTemplate(
                name=name,
                prompt_text=prompt_text,
                description=description,
                is_default=is_default,
            )
            db.add(template)
            await db.commit()
            return template
