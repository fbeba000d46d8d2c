"""Row state projector.

Maps queue events onto persisted row state. Each write is conditional on
the row version the queue last observed (held in ``Batch.versions``), so a
reviewer who edits a row's translation mid-flight keeps their edit.

Ownership is decided by status: a row the queue last left in ``queued`` or
``translating`` and that is still in that status has only had metadata
edited (notes, context, reviewer). Such writes are retried once against the
row's current version.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Collection, Dict, Iterable, Mapping, Sequence

from app.models.database.enums import IN_FLIGHT_STATUSES, RowStatus

from .models import RowTranslationResult, TranslationRow

if TYPE_CHECKING:
    from app.core.storage.row_store import RowStore
    from .queue import Batch

logger = logging.getLogger(__name__)

QUEUED = frozenset({RowStatus.QUEUED.value})
TRANSLATING = frozenset({RowStatus.TRANSLATING.value})


class RowStateProjector:
    """The only automated writer of row status."""

    def __init__(self, row_store: "RowStore"):
        self.row_store = row_store

    async def mark_queued(self, rows: Sequence[TranslationRow]) -> Dict[str, int]:
        """Move rows to ``queued``. Returns new versions of rows that were written."""
        changes = {"status": RowStatus.QUEUED.value}
        applied = await self._write(
            {r.id: changes for r in rows},
            {r.id: r.version for r in rows},
            {r.id: {r.status} for r in rows},
        )
        self._log_conflicts("queued", [r.id for r in rows], applied)
        return applied

    async def mark_translating(self, batch: "Batch") -> None:
        await self._write_batch(
            batch, "translating", {"status": RowStatus.TRANSLATING.value}, QUEUED
        )

    async def apply_results(
        self, batch: "Batch", results: Sequence[RowTranslationResult]
    ) -> None:
        """Write one result per row; rows without a result are marked failed."""
        by_id = {str(r.id): r for r in results}
        now = datetime.utcnow()
        template_name = batch.template.name if batch.template else None

        updates = {}
        for row in batch.rows:
            if row.id not in batch.versions:
                continue
            result = by_id.get(row.id) or RowTranslationResult.failed(
                row.id, "No result returned for row"
            )
            if result.is_error:
                updates[row.id] = {
                    "status": RowStatus.ERROR.value,
                    "error_message": result.error_message,
                    "template_used": result.template_used or template_name,
                }
                continue

            merged = dict(row.target_text or {})
            merged.update(result.target_text)
            updates[row.id] = {
                "status": RowStatus.REVIEW.value,
                "target_text": merged,
                "glossary_matches": list(result.glossary_matches),
                "warnings": list(result.warnings),
                "template_used": result.template_used or template_name,
                "translated_at": now,
                "error_message": None,
            }

        applied = await self._write(
            updates, batch.versions, {row_id: TRANSLATING for row_id in updates}
        )
        self._advance(batch, "results", applied, attempted=updates.keys())

    async def mark_failed(self, batch: "Batch", message: str) -> None:
        await self._write_batch(
            batch,
            "error",
            {"status": RowStatus.ERROR.value, "error_message": message},
            TRANSLATING,
        )

    async def revert_to_pending(self, batch: "Batch") -> None:
        """Undo queue ownership of a batch that will not run."""
        await self._write_batch(
            batch, "pending", {"status": RowStatus.PENDING.value}, IN_FLIGHT_STATUSES
        )

    async def _write_batch(
        self,
        batch: "Batch",
        label: str,
        changes: Mapping[str, Any],
        owned: Collection[str],
    ) -> None:
        row_ids = list(batch.versions)
        applied = await self._write(
            {row_id: changes for row_id in row_ids},
            batch.versions,
            {row_id: owned for row_id in row_ids},
        )
        self._advance(batch, label, applied, attempted=row_ids)

    async def _write(
        self,
        updates: Mapping[str, Mapping[str, Any]],
        versions: Mapping[str, int],
        owned: Mapping[str, Collection[str]],
    ) -> Dict[str, int]:
        """Version-checked write, retried for rows the queue still owns.

        ``owned`` maps each row id to the statuses in which the row is still
        the queue's to write.
        """
        applied = await self.row_store.apply_updates(updates, versions)
        skipped = [row_id for row_id in updates if row_id not in applied]
        if not skipped:
            return applied

        states = await self.row_store.get_states(skipped)
        retry = {
            row_id: version
            for row_id, (status, version) in states.items()
            if status in owned.get(row_id, ())
        }
        if retry:
            logger.info(f"Re-applying write for {len(retry)} rows with metadata-only edits")
            applied.update(
                await self.row_store.apply_updates(
                    {row_id: updates[row_id] for row_id in retry}, retry
                )
            )
        return applied

    def _advance(
        self,
        batch: "Batch",
        label: str,
        applied: Dict[str, int],
        attempted: Iterable[str],
    ) -> None:
        """Track written versions; drop rows that someone else now owns."""
        attempted = list(attempted)
        for row_id in attempted:
            if row_id in applied:
                batch.versions[row_id] = applied[row_id]
            else:
                batch.versions.pop(row_id, None)
        self._log_conflicts(label, attempted, applied)

    @staticmethod
    def _log_conflicts(label: str, row_ids: Iterable[str], applied: Dict[str, int]) -> None:
        skipped = [r for r in row_ids if r not in applied]
        if skipped:
            logger.warning(
                f"Skipped '{label}' write for {len(skipped)} rows modified outside the queue: "
                f"{', '.join(skipped[:5])}{'...' if len(skipped) > 5 else ''}"
            )
