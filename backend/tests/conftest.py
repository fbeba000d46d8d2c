import asyncio
import os
import pathlib
import sys
from typing import List, Optional, Sequence

# Ensure backend/ is on sys.path for test imports
BACKEND_PATH = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_PATH) not in sys.path:
    sys.path.insert(0, str(BACKEND_PATH))

# Keep the module-level engine away from the working directory
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from app.core.storage import GlossarySource, RowStore, TemplateSource  # noqa: E402
from app.core.translation.errors import ApiNotConfiguredError  # noqa: E402
from app.core.translation.invoker import BaseTranslationInvoker  # noqa: E402
from app.core.translation.models import (  # noqa: E402
    GlossaryEntry,
    PromptTemplateData,
    RowTranslationResult,
    TranslationRow,
)
from app.core.translation.queue import TranslationQueue  # noqa: E402
from app.models.database import Base, Project  # noqa: E402


class FakeInvoker(BaseTranslationInvoker):
    """Deterministic invoker for queue tests.

    ``block_on_call`` (1-based) makes that call wait for ``release`` and sets
    ``blocked`` when it gets there. ``errors`` maps call numbers to the
    exception that call raises.
    """

    def __init__(
        self,
        target_languages: Sequence[str] = ("my", "zh"),
        *,
        configured: bool = True,
        block_on_call: Optional[int] = None,
        errors: Optional[dict] = None,
        on_call=None,
    ):
        self.target_languages = list(target_languages)
        self.configured = configured
        self.block_on_call = block_on_call
        self.errors = errors or {}
        self.on_call = on_call
        self.calls: List[List[str]] = []
        self.glossaries: List[List[GlossaryEntry]] = []
        self.blocked = asyncio.Event()
        self.release = asyncio.Event()
        self.aborted = False

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ApiNotConfiguredError("No LLM provider configured")

    async def translate(
        self,
        rows: Sequence[TranslationRow],
        template: Optional[PromptTemplateData],
        glossary: Sequence[GlossaryEntry],
    ) -> List[RowTranslationResult]:
        self.calls.append([r.id for r in rows])
        self.glossaries.append(list(glossary))
        call_number = len(self.calls)
        if self.on_call:
            self.on_call(call_number)

        if call_number == self.block_on_call:
            self.blocked.set()
            try:
                await self.release.wait()
            except asyncio.CancelledError:
                self.aborted = True
                raise

        if call_number in self.errors:
            raise self.errors[call_number]

        return [
            RowTranslationResult(
                id=r.id,
                target_text={lang: f"{lang}:{r.source_text}" for lang in self.target_languages},
                template_used=template.name if template else None,
            )
            for r in rows
        ]


@pytest.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def row_store(session_maker):
    return RowStore(session_maker)


@pytest.fixture
def glossary_source(session_maker):
    return GlossarySource(session_maker)


@pytest.fixture
def template_source(session_maker):
    return TemplateSource(session_maker)


@pytest.fixture
async def project(session_maker):
    async with session_maker() as db:
        project = Project(
            name="Spring Campaign",
            glossary_version="v1.0",
            source_language="en",
            target_languages=["my", "zh"],
        )
        db.add(project)
        await db.commit()
        return project


@pytest.fixture
def add_rows(row_store, project):
    async def _add(count: int, prefix: str = "Text") -> List[str]:
        rows = await row_store.add_rows(
            project.id, [{"source_text": f"{prefix} {i}"} for i in range(count)]
        )
        return [r.id for r in rows]

    return _add


@pytest.fixture
def make_queue(row_store, glossary_source, project):
    def _make(invoker, batch_size: int = 10, throttle_delay: float = 0) -> TranslationQueue:
        return TranslationQueue(
            project.id,
            invoker=invoker,
            row_store=row_store,
            glossary_source=glossary_source,
            glossary_version=project.glossary_version,
            batch_size=batch_size,
            throttle_delay=throttle_delay,
        )

    return _make


@pytest.fixture
def statuses(row_store, project):
    async def _statuses(row_ids: Sequence[str]) -> List[str]:
        by_id = {r.id: r.status for r in await row_store.list_rows(project.id)}
        return [by_id[i] for i in row_ids]

    return _statuses
