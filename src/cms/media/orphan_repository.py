"""Persistence for remote objects that could not be deleted."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from ..db.db_models import OrphanedMediaModel
from ..exceptions import NotFoundError
from .media_errors import CascadeDeletionError, RetirementError

DANGLING_REASON = "dangling"


@dataclass(slots=True)
class OrphanRecord:
    id: int
    reference_id: str
    stored_path: str
    entity_kind: str | None
    entity_id: str | None
    slot: str | None
    reason: str
    last_error: str | None
    attempts: int
    recorded_at: datetime
    resolved_at: datetime | None = None


class OrphanRepository:
    """Ledger of failed retirements so operators can reconcile the store."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def record(
        self,
        errors: Iterable[RetirementError | CascadeDeletionError],
        *,
        entity_kind: str | None,
        entity_id: str | None,
    ) -> int:
        count = 0
        with self._session_factory() as session:
            for error in errors:
                reason = error.reason if isinstance(error, RetirementError) else "cascade"
                session.add(
                    OrphanedMediaModel(
                        reference_id=error.reference.reference_id,
                        stored_path=error.reference.stored_path,
                        entity_kind=entity_kind,
                        entity_id=entity_id,
                        slot=error.slot,
                        reason=reason,
                        last_error=error.message,
                    )
                )
                count += 1
            session.commit()
        return count

    def list_pending(
        self, limit: int | None = None, *, retryable_only: bool = False
    ) -> list[OrphanRecord]:
        """Unresolved rows, oldest first.

        ``retryable_only`` leaves out ``dangling`` rows: their objects are already
        gone and they stay pending until the document is repaired.
        """
        with self._session_factory() as session:
            query = (
                session.query(OrphanedMediaModel)
                .filter(OrphanedMediaModel.resolved_at.is_(None))
                .order_by(OrphanedMediaModel.recorded_at.asc(), OrphanedMediaModel.id.asc())
            )
            if retryable_only:
                query = query.filter(OrphanedMediaModel.reason != DANGLING_REASON)
            if limit is not None:
                query = query.limit(limit)
            return [self._to_domain(row) for row in query.all()]

    def mark_resolved(self, orphan_id: int, resolved_at: datetime) -> None:
        with self._session_factory() as session:
            row = session.get(OrphanedMediaModel, orphan_id)
            if row is None:
                raise NotFoundError(f"Orphaned media '{orphan_id}' not found")
            row.resolved_at = resolved_at
            session.commit()

    def mark_failed(self, orphan_id: int, message: str) -> None:
        with self._session_factory() as session:
            row = session.get(OrphanedMediaModel, orphan_id)
            if row is None:
                raise NotFoundError(f"Orphaned media '{orphan_id}' not found")
            row.attempts += 1
            row.last_error = message
            session.commit()

    @staticmethod
    def _to_domain(model: OrphanedMediaModel) -> OrphanRecord:
        return OrphanRecord(
            id=model.id,
            reference_id=model.reference_id,
            stored_path=model.stored_path,
            entity_kind=model.entity_kind,
            entity_id=model.entity_id,
            slot=model.slot,
            reason=model.reason,
            last_error=model.last_error,
            attempts=model.attempts,
            recorded_at=model.recorded_at,
            resolved_at=model.resolved_at,
        )
