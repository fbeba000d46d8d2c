"""Translation batch queue.

One ``TranslationQueue`` per project. Selected rows are split into batches of
``batch_size`` and translated one batch at a time, in order, by a single
worker task. Batches are spaced by ``throttle_delay`` seconds.

Lifecycle of a row owned by the queue::

    pending -> queued -> translating -> review | error
    queued | translating -> pending          (cancel)

The queue is held in memory only. ``QueueRegistry`` owns the queues of a
process; the FastAPI app keeps one registry on ``app.state``.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Set

from app.config import Settings, settings as app_settings
from app.core.storage.glossary_source import GlossarySource
from app.core.storage.row_store import RowStore

from .errors import TranslationError
from .invoker import BaseTranslationInvoker, build_invoker
from .models import PromptTemplateData, TranslationRow
from .projector import RowStateProjector

logger = logging.getLogger(__name__)


@dataclass
class Batch:
    """Rows translated together in one provider request."""

    rows: List[TranslationRow]
    template: Optional[PromptTemplateData] = None
    # Row id -> version last written by the queue; rows taken over by a
    # reviewer are removed
    versions: Dict[str, int] = field(default_factory=dict)

    @property
    def row_ids(self) -> List[str]:
        return [r.id for r in self.rows]


@dataclass
class QueueProgress:
    """Batches finished out of the batches of the latest enqueue."""

    current: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"current": self.current, "total": self.total}


class TranslationQueue:
    """FIFO batch queue with a single worker, throttling and cancellation."""

    def __init__(
        self,
        project_id: str,
        *,
        invoker: BaseTranslationInvoker,
        row_store: RowStore,
        glossary_source: GlossarySource,
        glossary_version: str = app_settings.default_glossary_version,
        batch_size: int = 10,
        throttle_delay: float = 1.0,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.project_id = project_id
        self.invoker = invoker
        self.row_store = row_store
        self.glossary_source = glossary_source
        self.glossary_version = glossary_version
        self.batch_size = batch_size
        self.throttle_delay = throttle_delay
        self.projector = RowStateProjector(row_store)

        self.progress = QueueProgress()
        self._queue: Deque[Batch] = deque()
        self._active_ids: Set[str] = set()
        self._is_processing = False
        self._cancelled = False
        self._cancel_event = asyncio.Event()
        self._lock = asyncio.Lock()
        self._worker: Optional[asyncio.Task] = None
        self._call_task: Optional[asyncio.Future] = None

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    @property
    def pending_batches(self) -> int:
        return len(self._queue)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "is_processing": self._is_processing,
            "pending_batches": len(self._queue),
            "queued_rows": len(self._active_ids),
            "progress": self.progress.to_dict(),
        }

    async def enqueue(
        self, row_ids: Iterable[str], template: Optional[PromptTemplateData] = None
    ) -> Dict[str, Any]:
        """Queue rows for translation and start the worker if idle.

        Rows already held by the queue are ignored. All accepted rows are
        ``queued`` when this returns.

        Raises:
            ApiNotConfiguredError: No provider configured; no row is touched
        """
        ids = [str(i) for i in dict.fromkeys(row_ids)]
        if not ids:
            return self.snapshot()

        self.invoker.ensure_configured()

        async with self._lock:
            fresh = [i for i in ids if i not in self._active_ids]
            rows = await self.row_store.get_rows(self.project_id, fresh)
            if not rows:
                logger.info(
                    f"[{self.project_id}] Nothing to enqueue "
                    f"({len(ids)} requested, all queued or unknown)"
                )
                return self.snapshot()

            versions = await self.projector.mark_queued(rows)
            rows = [r for r in rows if r.id in versions]

            batches = [
                Batch(
                    rows=chunk,
                    template=template,
                    versions={r.id: versions[r.id] for r in chunk},
                )
                for chunk in (
                    rows[i:i + self.batch_size]
                    for i in range(0, len(rows), self.batch_size)
                )
            ]
            self._queue.extend(batches)
            self._active_ids.update(r.id for r in rows)
            self.progress = QueueProgress(current=0, total=len(batches))

            logger.info(
                f"[{self.project_id}] Enqueued {len(rows)} rows in {len(batches)} batches "
                f"(template={template.name if template else None}, "
                f"queue depth={len(self._queue)})"
            )

            if not self._is_processing:
                self._is_processing = True
                self._worker = asyncio.create_task(self._run())

        return self.snapshot()

    async def cancel(self) -> Dict[str, Any]:
        """Stop processing and return every unfinished row to ``pending``.

        The in-flight provider call is aborted and its result discarded.
        """
        async with self._lock:
            if not self._queue and not self._is_processing:
                return self.snapshot()

            logger.info(
                f"[{self.project_id}] Cancelling: {len(self._queue)} batches unfinished"
            )
            self._cancelled = True
            self._cancel_event.set()
            if self._call_task is not None and not self._call_task.done():
                self._call_task.cancel()

            if self._worker is not None:
                await asyncio.gather(self._worker, return_exceptions=True)
                self._worker = None

            remaining = list(self._queue)
            self._queue.clear()
            for batch in remaining:
                try:
                    await self.projector.revert_to_pending(batch)
                except Exception:
                    logger.exception(
                        f"[{self.project_id}] Failed to revert batch {batch.row_ids}"
                    )

            self._active_ids.clear()
            self.progress = QueueProgress()
            self._is_processing = False
            self._cancelled = False
            self._cancel_event.clear()

        logger.info(f"[{self.project_id}] Cancelled, {len(remaining)} batches reverted")
        return self.snapshot()

    async def join(self) -> None:
        """Wait until the worker has drained the queue (or been cancelled)."""
        while self._worker is not None and not self._worker.done():
            await asyncio.shield(self._worker)

    async def _run(self) -> None:
        try:
            while self._queue and not self._cancelled:
                batch = self._queue[0]
                finished = await self._process(batch)
                if not finished:
                    break

                self._queue.popleft()
                self._active_ids.difference_update(batch.row_ids)
                self.progress.current = min(self.progress.current + 1, self.progress.total)

                if self._queue and not self._cancelled:
                    await self._throttle()
        finally:
            if not self._cancelled:
                if not self._queue:
                    self.progress = QueueProgress()
                self._is_processing = False
                logger.info(f"[{self.project_id}] Queue drained")

    async def _process(self, batch: Batch) -> bool:
        """Run one batch. Returns False if cancellation interrupted it."""
        try:
            await self.projector.mark_translating(batch)
            if self._cancelled:
                return False

            rows = [r for r in batch.rows if r.id in batch.versions]
            if not rows:
                logger.info(f"[{self.project_id}] Batch skipped, all rows taken over")
                return True

            glossary = await self.glossary_source.get_active_glossary(self.glossary_version)
            if self._cancelled:
                return False

            logger.info(f"[{self.project_id}] Translating batch of {len(rows)} rows")
            self._call_task = asyncio.ensure_future(
                self.invoker.translate(rows, batch.template, glossary)
            )
            try:
                results = await self._call_task
            finally:
                self._call_task = None
        except asyncio.CancelledError:
            if self._cancelled:
                logger.info(f"[{self.project_id}] In-flight batch aborted")
                return False
            raise
        except Exception as e:
            if self._cancelled:
                return False
            logger.error(f"[{self.project_id}] Batch failed: {e}")
            await self._fail(batch, e)
            return True

        if self._cancelled:
            logger.info(f"[{self.project_id}] Discarding result of cancelled batch")
            return False

        try:
            await self.projector.apply_results(batch, results)
        except Exception as e:
            logger.exception(f"[{self.project_id}] Failed to store batch results")
            await self._fail(batch, e)
        else:
            errors = sum(1 for r in results if r.is_error)
            logger.info(
                f"[{self.project_id}] Batch done: {len(results) - errors} translated, "
                f"{errors} errors"
            )
        return True

    async def _fail(self, batch: Batch, error: Exception) -> None:
        if isinstance(error, TranslationError):
            message = f"{error.code}: {error.message}"
        else:
            message = str(error) or error.__class__.__name__
        try:
            await self.projector.mark_failed(batch, message)
        except Exception:
            logger.exception(f"[{self.project_id}] Failed to mark batch {batch.row_ids} as error")

    async def _throttle(self) -> None:
        """Wait between batches; returns early on cancel."""
        if self.throttle_delay <= 0:
            return
        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=self.throttle_delay)
        except asyncio.TimeoutError:
            pass


InvokerFactory = Callable[[Any], BaseTranslationInvoker]


class QueueRegistry:
    """Owns the translation queue of every project in this process."""

    def __init__(
        self,
        *,
        row_store: Optional[RowStore] = None,
        glossary_source: Optional[GlossarySource] = None,
        invoker_factory: Optional[InvokerFactory] = None,
        settings: Settings = app_settings,
    ):
        self.settings = settings
        self.row_store = row_store or RowStore()
        self.glossary_source = glossary_source or GlossarySource()
        self.invoker_factory = invoker_factory or (
            lambda project: build_invoker(project, settings)
        )
        self._queues: Dict[str, TranslationQueue] = {}

    def get(self, project) -> TranslationQueue:
        """Queue for a project, created on first use."""
        queue = self._queues.get(project.id)
        if queue is None:
            queue = TranslationQueue(
                project.id,
                invoker=self.invoker_factory(project),
                row_store=self.row_store,
                glossary_source=self.glossary_source,
                glossary_version=project.glossary_version,
                batch_size=self.settings.translation_batch_size,
                throttle_delay=self.settings.translation_throttle_delay,
            )
            self._queues[project.id] = queue
        else:
            queue.glossary_version = project.glossary_version
        return queue

    def peek(self, project_id: str) -> Optional[TranslationQueue]:
        return self._queues.get(project_id)

    def discard(self, project_id: str) -> Optional[TranslationQueue]:
        """Forget a project's queue. The caller cancels it first."""
        return self._queues.pop(project_id, None)

    def snapshot(self, project_id: str) -> Dict[str, Any]:
        """Queue state for a project, idle if it never had a queue."""
        queue = self._queues.get(project_id)
        if queue is not None:
            return queue.snapshot()
        return {
            "project_id": project_id,
            "is_processing": False,
            "pending_batches": 0,
            "queued_rows": 0,
            "progress": QueueProgress().to_dict(),
        }

    async def shutdown(self) -> None:
        """Cancel every queue, returning unfinished rows to pending."""
        for queue in list(self._queues.values()):
            await queue.cancel()
        self._queues.clear()
