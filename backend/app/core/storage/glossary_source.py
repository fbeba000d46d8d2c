"""Glossary term storage."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config import settings
from app.core.translation.models import GlossaryEntry
from app.models.database import GlossaryCategory, GlossaryTerm, async_session_maker

logger = logging.getLogger(__name__)

# Fields a glossary manager may change on an existing term
UPDATABLE_FIELDS = frozenset({
    "source_term", "translations", "category", "do_not_translate",
    "notes", "version", "is_active",
})


class DuplicateTermError(Exception):
    """A term with this source text already exists in the version."""


class GlossaryTermNotFoundError(Exception):
    """No glossary term with that id."""


class GlossarySource:
    """Reads and writes glossary terms."""

    def __init__(self, session_maker: async_sessionmaker = async_session_maker):
        self._session_maker = session_maker

    async def get_active_glossary(self, version: str) -> List[GlossaryEntry]:
        """Snapshot of the active terms of a glossary version, ordered by term."""
        async with self._session_maker() as db:
            result = await db.execute(
                select(GlossaryTerm)
                .where(GlossaryTerm.version == version, GlossaryTerm.is_active.is_(True))
                .order_by(GlossaryTerm.source_term)
            )
            return [GlossaryEntry.model_validate(t) for t in result.scalars().all()]

    async def list_terms(
        self,
        version: Optional[str] = None,
        category: Optional[str] = None,
        active_only: bool = False,
        search: Optional[str] = None,
    ) -> List[GlossaryTerm]:
        async with self._session_maker() as db:
            query = select(GlossaryTerm)
            if version:
                query = query.where(GlossaryTerm.version == version)
            if category:
                query = query.where(GlossaryTerm.category == category)
            if active_only:
                query = query.where(GlossaryTerm.is_active.is_(True))
            if search:
                query = query.where(GlossaryTerm.source_term.ilike(f"%{search}%"))
            result = await db.execute(query.order_by(GlossaryTerm.source_term))
            return list(result.scalars().all())

    async def create_term(self, data: Mapping[str, Any]) -> GlossaryTerm:
        """Create one term.

        Raises:
            DuplicateTermError: Term already exists in that version
            ValueError: Empty term or unknown category
        """
        async with self._session_maker() as db:
            term = await self._add(db, data)
            await db.commit()
            return term

    async def bulk_import(
        self, items: Sequence[Mapping[str, Any]]
    ) -> Dict[str, Any]:
        """Import many terms, reporting per-term failures instead of aborting.

        Returns:
            ``{"imported": n, "errors": [{"term": ..., "error": ...}]}``
        """
        imported = 0
        errors: List[Dict[str, str]] = []
        async with self._session_maker() as db:
            for item in items:
                try:
                    await self._add(db, item)
                    imported += 1
                except (DuplicateTermError, ValueError) as e:
                    errors.append({"term": str(item.get("source_term", "")), "error": str(e)})
            await db.commit()
        logger.info(f"Glossary import: {imported} imported, {len(errors)} failed")
        return {"imported": imported, "errors": errors}

    async def list_versions(self) -> List[Dict[str, Any]]:
        """Glossary versions with their term counts."""
        async with self._session_maker() as db:
            result = await db.execute(
                select(GlossaryTerm.version, func.count())
                .group_by(GlossaryTerm.version)
                .order_by(GlossaryTerm.version)
            )
            return [{"version": v, "term_count": n} for v, n in result.all()]

    async def update_term(self, term_id: str, changes: Mapping[str, Any]) -> GlossaryTerm:
        """Update fields of a term. Only keys present in ``changes`` are touched.

        Raises:
            GlossaryTermNotFoundError: Unknown term
            DuplicateTermError: New term/version collides with another term
            ValueError: Empty term, unknown category or unknown field
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")

        async with self._session_maker() as db:
            term = await db.get(GlossaryTerm, term_id)
            if not term:
                raise GlossaryTermNotFoundError(term_id)

            source_term = term.source_term
            if "source_term" in changes:
                source_term = _clean_term(changes["source_term"])
            version = changes.get("version") or term.version
            if (source_term, version) != (term.source_term, term.version):
                await self._ensure_unique(db, source_term, version, exclude_id=term.id)
            term.source_term = source_term
            term.version = version

            if "category" in changes:
                term.category = _clean_category(changes["category"])
            if "translations" in changes:
                term.translations = _clean_translations(changes["translations"])
            for field in ("do_not_translate", "is_active"):
                if field in changes and changes[field] is not None:
                    setattr(term, field, bool(changes[field]))
            if "notes" in changes:
                term.notes = changes["notes"]

            await db.commit()
            logger.info(f"Updated glossary term {term.id} ({term.source_term}, {term.version})")
            return term

    async def delete_term(self, term_id: str) -> None:
        async with self._session_maker() as db:
            result = await db.execute(delete(GlossaryTerm).where(GlossaryTerm.id == term_id))
            if result.rowcount == 0:
                raise GlossaryTermNotFoundError(term_id)
            await db.commit()
        logger.info(f"Deleted glossary term {term_id}")

    async def _add(self, db, data: Mapping[str, Any]) -> GlossaryTerm:
        source_term = _clean_term(data.get("source_term"))
        category = _clean_category(data.get("category"))
        version = data.get("version") or settings.default_glossary_version
        await self._ensure_unique(db, source_term, version)

        term = GlossaryTerm(
            source_term=source_term,
            translations=_clean_translations(data.get("translations")),
            category=category,
            do_not_translate=bool(data.get("do_not_translate", False)),
            notes=data.get("notes"),
            version=version,
            is_active=bool(data.get("is_active", True)),
        )
        db.add(term)
        await db.flush()
        return term

    @staticmethod
    async def _ensure_unique(
        db, source_term: str, version: str, exclude_id: Optional[str] = None
    ) -> None:
        query = select(GlossaryTerm.id).where(
            GlossaryTerm.source_term == source_term, GlossaryTerm.version == version
        )
        if exclude_id:
            query = query.where(GlossaryTerm.id != exclude_id)
        if await db.scalar(query):
            raise DuplicateTermError(f"'{source_term}' already exists in {version}")


def _clean_term(value: Optional[str]) -> str:
    source_term = (value or "").strip()
    if not source_term:
        raise ValueError("source_term is required")
    return source_term


def _clean_category(value: Optional[str]) -> str:
    category = value or GlossaryCategory.GENERAL.value
    if category not in {c.value for c in GlossaryCategory}:
        raise ValueError(f"Unknown category: {category}")
    return category


def _clean_translations(value: Optional[Mapping[str, str]]) -> Dict[str, str]:
    return {
        lang: text.strip()
        for lang, text in (value or {}).items()
        if text and text.strip()
    }
