"""Persistence for project rows.

Two kinds of writers touch rows: the translation queue (through the
projector) and reviewers (through the API). Every write bumps ``version``.
Queue writes are conditional on the version the queue last saw, so a
reviewer's edit is never overwritten by a batch that finishes later.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.translation.models import TranslationRow
from app.models.database import (
    IN_FLIGHT_STATUSES,
    REVIEWABLE_STATUSES,
    ProjectRow,
    RowStatus,
    SourceType,
    async_session_maker,
)

logger = logging.getLogger(__name__)


class RowNotFoundError(Exception):
    """Row does not exist in the given project."""


class InvalidTransitionError(Exception):
    """Requested manual status change is not allowed from the current status."""


class VersionConflictError(Exception):
    """Row changed since the caller last read it."""

    def __init__(self, row_id: str, expected: int, actual: int):
        super().__init__(
            f"Row {row_id} was modified (expected version {expected}, found {actual})"
        )
        self.row_id = row_id
        self.expected = expected
        self.actual = actual


# Fields a reviewer may set directly
EDITABLE_FIELDS = frozenset({"target_text", "context", "notes", "reviewer"})


class RowStore:
    """Row reads and writes, one session per operation."""

    def __init__(self, session_maker: async_sessionmaker = async_session_maker):
        self._session_maker = session_maker

    # ------------------------------------------------------------------
    # Queue-facing operations
    # ------------------------------------------------------------------

    async def get_rows(
        self, project_id: str, row_ids: Iterable[str]
    ) -> List[TranslationRow]:
        """Snapshot the given rows of a project, in ``position`` order.

        Unknown ids and rows from other projects are ignored.
        """
        ids = list(dict.fromkeys(row_ids))
        if not ids:
            return []
        async with self._session_maker() as db:
            result = await db.execute(
                select(ProjectRow)
                .where(ProjectRow.project_id == project_id, ProjectRow.id.in_(ids))
                .order_by(ProjectRow.position, ProjectRow.created_at)
            )
            return [TranslationRow.model_validate(r) for r in result.scalars().all()]

    async def update_rows(
        self,
        row_ids: Iterable[str],
        changes: Mapping[str, Any],
        expected_versions: Optional[Mapping[str, int]] = None,
    ) -> Dict[str, int]:
        """Apply the same ``changes`` to many rows in one transaction.

        Returns:
            ``{row_id: new_version}`` for every write that was applied
        """
        return await self.apply_updates(
            {row_id: dict(changes) for row_id in row_ids}, expected_versions
        )

    async def apply_updates(
        self,
        updates: Mapping[str, Mapping[str, Any]],
        expected_versions: Optional[Mapping[str, int]] = None,
    ) -> Dict[str, int]:
        """Apply per-row changes in one transaction.

        With ``expected_versions`` each write only lands if the row still has
        that version. Rows that moved on are skipped and logged.

        Returns:
            ``{row_id: new_version}`` for every write that was applied
        """
        if not updates:
            return {}

        applied: Dict[str, int] = {}
        now = datetime.utcnow()
        async with self._session_maker() as db:
            for row_id, changes in updates.items():
                expected = (
                    expected_versions.get(row_id) if expected_versions is not None else None
                )
                if expected is None:
                    expected = await db.scalar(
                        select(ProjectRow.version).where(ProjectRow.id == row_id)
                    )
                    if expected is None:
                        logger.warning(f"Row {row_id} no longer exists, skipping write")
                        continue

                result = await db.execute(
                    update(ProjectRow)
                    .where(ProjectRow.id == row_id, ProjectRow.version == expected)
                    .values(**changes, version=expected + 1, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 1:
                    applied[row_id] = expected + 1
                else:
                    logger.info(
                        f"Version conflict on row {row_id}: expected v{expected}, "
                        f"write skipped ({sorted(changes)})"
                    )
            await db.commit()
        return applied

    async def get_states(self, row_ids: Iterable[str]) -> Dict[str, Tuple[str, int]]:
        """Current ``(status, version)`` of each existing row."""
        ids = list(dict.fromkeys(row_ids))
        if not ids:
            return {}
        async with self._session_maker() as db:
            result = await db.execute(
                select(ProjectRow.id, ProjectRow.status, ProjectRow.version).where(
                    ProjectRow.id.in_(ids)
                )
            )
            return {row_id: (status, version) for row_id, status, version in result.all()}

    async def reset_in_flight(self) -> int:
        """Return rows left ``queued``/``translating`` by a previous process to pending.

        The queue lives in memory, so nothing owns such rows after a restart.
        """
        async with self._session_maker() as db:
            result = await db.execute(
                update(ProjectRow)
                .where(ProjectRow.status.in_(IN_FLIGHT_STATUSES))
                .values(
                    status=RowStatus.PENDING.value,
                    version=ProjectRow.version + 1,
                    updated_at=datetime.utcnow(),
                )
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        if result.rowcount:
            logger.info(f"Reset {result.rowcount} in-flight rows to pending")
        return result.rowcount

    # ------------------------------------------------------------------
    # Manual review path
    # ------------------------------------------------------------------

    async def add_rows(
        self, project_id: str, items: Sequence[Mapping[str, Any]]
    ) -> List[ProjectRow]:
        """Append rows to a project after its current last position."""
        async with self._session_maker() as db:
            last = await db.scalar(
                select(func.max(ProjectRow.position)).where(
                    ProjectRow.project_id == project_id
                )
            )
            start = (last + 1) if last is not None else 0
            rows = [
                ProjectRow(
                    project_id=project_id,
                    position=start + i,
                    source_text=item["source_text"],
                    context=item.get("context"),
                    source_type=item.get("source_type") or SourceType.TEXT.value,
                    target_text=dict(item.get("target_text") or {}),
                    status=RowStatus.PENDING.value,
                    glossary_matches=[],
                    warnings=[],
                    version=1,
                )
                for i, item in enumerate(items)
            ]
            db.add_all(rows)
            await db.commit()
            return rows

    async def list_rows(
        self, project_id: str, status: Optional[str] = None
    ) -> List[ProjectRow]:
        async with self._session_maker() as db:
            query = select(ProjectRow).where(ProjectRow.project_id == project_id)
            if status:
                query = query.where(ProjectRow.status == status)
            result = await db.execute(query.order_by(ProjectRow.position))
            return list(result.scalars().all())

    async def get_row(self, project_id: str, row_id: str) -> ProjectRow:
        async with self._session_maker() as db:
            return await self._load(db, project_id, row_id)

    async def edit_row(
        self,
        project_id: str,
        row_id: str,
        changes: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> ProjectRow:
        """Apply a reviewer's edit.

        ``target_text`` is merged per language. Supplying ``target_text`` for
        a row the queue owns takes it over: the row moves to ``review`` and
        the queue's pending write for it will be skipped. Edits to
        ``context``, ``notes`` or ``reviewer`` alone leave the status as is.

        Raises:
            RowNotFoundError: Unknown row
            VersionConflictError: ``expected_version`` is stale
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")

        async with self._session_maker() as db:
            row = await self._load(db, project_id, row_id)
            if expected_version is not None and row.version != expected_version:
                raise VersionConflictError(row_id, expected_version, row.version)

            # Only new translation text takes a row over from the queue
            if "target_text" in changes and changes["target_text"] is not None:
                merged = dict(row.target_text or {})
                merged.update(changes["target_text"])
                row.target_text = merged
                if row.status in IN_FLIGHT_STATUSES or row.status == RowStatus.PENDING.value:
                    row.status = RowStatus.REVIEW.value
            for field in ("context", "notes", "reviewer"):
                if field in changes:
                    setattr(row, field, changes[field])

            row.version += 1
            row.updated_at = datetime.utcnow()
            await db.commit()
            return row

    async def approve_row(
        self, project_id: str, row_id: str, reviewer: Optional[str] = None
    ) -> ProjectRow:
        """Move a row from ``review``/``error`` to ``completed``."""
        return await self._review_transition(
            project_id, row_id, RowStatus.COMPLETED, reviewer
        )

    async def reject_row(
        self,
        project_id: str,
        row_id: str,
        reviewer: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ProjectRow:
        """Send a row back to ``pending`` for another translation pass."""
        return await self._review_transition(
            project_id, row_id, RowStatus.PENDING, reviewer, notes
        )

    async def approve_rows(
        self, project_id: str, row_ids: Iterable[str], reviewer: Optional[str] = None
    ) -> Dict[str, Any]:
        """Approve many rows. Rows that cannot be approved are reported, not raised."""
        return await self._bulk_review(
            project_id, row_ids, RowStatus.COMPLETED, reviewer
        )

    async def reject_rows(
        self,
        project_id: str,
        row_ids: Iterable[str],
        reviewer: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self._bulk_review(
            project_id, row_ids, RowStatus.PENDING, reviewer, notes
        )

    async def delete_row(self, project_id: str, row_id: str) -> None:
        async with self._session_maker() as db:
            result = await db.execute(
                delete(ProjectRow).where(
                    ProjectRow.project_id == project_id, ProjectRow.id == row_id
                )
            )
            if result.rowcount == 0:
                raise RowNotFoundError(row_id)
            await db.commit()

    async def status_counts(self, project_id: str) -> Dict[str, int]:
        """Row count per status, with every status present."""
        async with self._session_maker() as db:
            result = await db.execute(
                select(ProjectRow.status, func.count())
                .where(ProjectRow.project_id == project_id)
                .group_by(ProjectRow.status)
            )
            counts = {status.value: 0 for status in RowStatus}
            for status, count in result.all():
                counts[status] = count
            return counts

    async def _review_transition(
        self,
        project_id: str,
        row_id: str,
        target: RowStatus,
        reviewer: Optional[str],
        notes: Optional[str] = None,
    ) -> ProjectRow:
        async with self._session_maker() as db:
            row = await self._load(db, project_id, row_id)
            if row.status not in REVIEWABLE_STATUSES:
                raise InvalidTransitionError(
                    f"Cannot move row {row_id} from '{row.status}' to '{target.value}'"
                )
            row.status = target.value
            row.reviewer = reviewer or row.reviewer
            row.reviewed_at = datetime.utcnow()
            if notes is not None:
                row.notes = notes
            if target == RowStatus.COMPLETED:
                row.error_message = None
            row.version += 1
            row.updated_at = datetime.utcnow()
            await db.commit()
            return row

    async def _bulk_review(
        self,
        project_id: str,
        row_ids: Iterable[str],
        target: RowStatus,
        reviewer: Optional[str],
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        updated: List[ProjectRow] = []
        errors: List[Dict[str, str]] = []
        for row_id in dict.fromkeys(row_ids):
            try:
                updated.append(
                    await self._review_transition(
                        project_id, row_id, target, reviewer, notes
                    )
                )
            except RowNotFoundError:
                errors.append({"id": row_id, "error": "Row not found"})
            except InvalidTransitionError as e:
                errors.append({"id": row_id, "error": str(e)})
        logger.info(
            f"Bulk review moved {len(updated)} rows of project {project_id} "
            f"to {target.value}, {len(errors)} skipped"
        )
        return {"updated": updated, "errors": errors}

    @staticmethod
    async def _load(db: AsyncSession, project_id: str, row_id: str) -> ProjectRow:
        result = await db.execute(
            select(ProjectRow).where(
                ProjectRow.project_id == project_id, ProjectRow.id == row_id
            )
        )
        row = result.scalar_one_or_none()
        if not row:
            raise RowNotFoundError(row_id)
        return row
