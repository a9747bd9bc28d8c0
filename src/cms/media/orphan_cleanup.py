"""Operator-triggered retry of recorded orphan deletions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from .media_errors import StoreError
from .media_store import MediaStore
from .orphan_repository import OrphanRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OrphanSweepSummary:
    pending: int
    removed: int
    failed: int


async def retry_orphan_deletions(
    orphan_repo: OrphanRepository,
    store: MediaStore,
    *,
    limit: int | None = None,
    reference_time: datetime | None = None,
) -> OrphanSweepSummary:
    """Delete recorded orphans one by one and mark each outcome."""
    now = reference_time or datetime.utcnow()
    pending = orphan_repo.list_pending(limit, retryable_only=True)
    removed = failed = 0
    for orphan in pending:
        try:
            await store.delete(orphan.reference_id)
        except StoreError as exc:
            orphan_repo.mark_failed(orphan.id, str(exc))
            failed += 1
            logger.warning(
                "media.orphan.retry_failed",
                extra={"reference_id": orphan.reference_id, "error": str(exc)},
            )
            continue
        orphan_repo.mark_resolved(orphan.id, now)
        removed += 1
        logger.info(
            "media.orphan.removed",
            extra={"reference_id": orphan.reference_id, "entity_id": orphan.entity_id},
        )
    return OrphanSweepSummary(pending=len(pending), removed=removed, failed=failed)
