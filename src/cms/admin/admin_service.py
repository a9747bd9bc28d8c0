"""Admin orchestration of content writes and their media.

Every write follows the same order: validate fields, bind uploads against the
current references, persist the document. Detached media is retired only
after the document no longer points at it. If the document write fails after a
bind, fresh uploads are retired again and references the bind already deleted
are written to the orphan ledger.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from ..content.content_kinds import HISTORY_PAGE, EntityKind, timeline_slot_name
from ..content.content_models import ContentStatus, HistoryPageFields
from ..content.content_repository import ContentEntity, ContentRepository
from ..exceptions import NotFoundError, ValidationError
from ..media.media_binder import BindOutcome, EntityMediaBinder
from ..media.media_errors import CascadeDeletionError, RetirementError
from ..media.media_models import IncomingFile, MediaReference, SlotValue, iter_references
from ..media.orphan_repository import DANGLING_REASON, OrphanRepository

logger = structlog.get_logger(__name__)

TIMELINE_PREFIX = "timeline:"


@dataclass(slots=True)
class ContentWriteResult:
    """Persisted entity plus diagnostics for partial media failures."""

    entity: ContentEntity
    changed_slots: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ContentDeleteResult:
    entity_id: str
    deleted_media: int = 0
    warnings: list[str] = field(default_factory=list)


class AdminContentService:
    """Coordinate the repository and the media binder for admin writes."""

    def __init__(
        self,
        repository: ContentRepository,
        binder: EntityMediaBinder,
        orphans: OrphanRepository | None = None,
    ) -> None:
        self._repository = repository
        self._binder = binder
        self._orphans = orphans

    # -- reads --------------------------------------------------------------

    def list_entities(
        self,
        kind: EntityKind,
        *,
        category: str | None = None,
        status: ContentStatus | str | None = None,
        search: str | None = None,
        featured_only: bool = False,
        limit: int | None = None,
    ) -> list[ContentEntity]:
        return self._repository.list_entities(
            kind,
            category=category,
            status=status,
            search=search,
            featured_only=featured_only,
            limit=limit,
        )

    def get(self, kind: EntityKind, entity_id: str) -> ContentEntity:
        return self._repository.get(kind, entity_id)

    def get_singleton(self, kind: EntityKind, *, actor: str | None = None) -> ContentEntity:
        return self._repository.get_or_create_singleton(kind, actor=actor)

    # -- writes -------------------------------------------------------------

    async def create(
        self,
        kind: EntityKind,
        data: Mapping[str, Any],
        uploads: Mapping[str, Sequence[IncomingFile]],
        *,
        actor: str | None = None,
    ) -> ContentWriteResult:
        fields = self._repository.validate(kind, data)
        outcome = await self._binder.bind(
            kind.slots, {}, uploads, category=kind.category_of(fields)
        )
        try:
            entity = self._repository.create(kind, fields, outcome.slots, actor=actor)
        except Exception:
            await self._roll_back(kind, None, outcome, {})
            raise

        self._record_orphans(kind, entity.id, outcome.retirement_errors)
        logger.info(
            "content.entity.created",
            kind=kind.name,
            entity_id=entity.id,
            actor=actor,
            slots=outcome.changed,
        )
        return ContentWriteResult(entity=entity, changed_slots=outcome.changed, warnings=outcome.warnings)

    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        changes: Mapping[str, Any],
        uploads: Mapping[str, Sequence[IncomingFile]],
        *,
        actor: str | None = None,
    ) -> ContentWriteResult:
        entity = self._repository.get(kind, entity_id)
        return await self._update_entity(entity, changes, uploads, actor=actor)

    async def update_singleton(
        self,
        kind: EntityKind,
        changes: Mapping[str, Any],
        uploads: Mapping[str, Sequence[IncomingFile]],
        *,
        actor: str | None = None,
    ) -> ContentWriteResult:
        entity = self._repository.get_or_create_singleton(kind, actor=actor)
        return await self._update_entity(entity, changes, uploads, actor=actor)

    async def delete(
        self, kind: EntityKind, entity_id: str, *, actor: str | None = None
    ) -> ContentDeleteResult:
        entity = self._repository.get(kind, entity_id)
        report = await self._binder.delete_all(entity.media)
        self._record_orphans(kind, entity.id, report.errors)
        self._repository.delete(kind, entity.id)
        logger.info(
            "content.entity.deleted",
            kind=kind.name,
            entity_id=entity.id,
            actor=actor,
            attempted=report.attempted,
            failed=len(report.errors),
        )
        return ContentDeleteResult(
            entity_id=entity.id,
            deleted_media=len(report.deleted),
            warnings=report.warnings,
        )

    async def detach_media(
        self,
        kind: EntityKind,
        entity_id: str | None,
        slot_name: str,
        reference_ids: Sequence[str] | None = None,
        *,
        actor: str | None = None,
    ) -> ContentWriteResult:
        """Clear a slot (or chosen gallery items), save, then retire the files."""
        if kind.singleton:
            entity = self._repository.get_or_create_singleton(kind, actor=actor)
        else:
            entity = self._repository.get(kind, entity_id or "")
        definitions = kind.slot_definitions([*entity.media, slot_name])
        outcome = self._binder.detach(definitions, entity.media, slot_name, reference_ids)
        if not outcome.detached:
            return ContentWriteResult(entity=entity)

        entity.media = _without_empty_timeline_slots(outcome.slots)
        saved = self._repository.save(entity, actor=actor)
        errors = await self._binder.retire(outcome.detached, reason="detached")
        self._record_orphans(kind, saved.id, errors)
        logger.info(
            "content.media.detached",
            kind=kind.name,
            entity_id=saved.id,
            slot=slot_name,
            count=len(outcome.detached),
            actor=actor,
        )
        return ContentWriteResult(
            entity=saved,
            changed_slots=[slot_name],
            warnings=[error.describe() for error in errors],
        )

    def toggle_featured(
        self, kind: EntityKind, entity_id: str, *, actor: str | None = None
    ) -> ContentEntity:
        if not kind.supports_featured:
            raise ValidationError({"is_featured": "not supported for this kind"}, entity=kind.label)
        entity = self._repository.get(kind, entity_id)
        current = bool(getattr(entity.fields, "is_featured", False))
        entity.fields = self._repository.merge_fields(kind, entity.fields, {"is_featured": not current})
        saved = self._repository.save(entity, actor=actor)
        logger.info(
            "content.entity.featured_toggled",
            kind=kind.name,
            entity_id=saved.id,
            is_featured=not current,
        )
        return saved

    async def bind_timeline_image(
        self, entry_id: str, upload: IncomingFile, *, actor: str | None = None
    ) -> ContentWriteResult:
        """Attach or replace the image of one history timeline entry."""
        entity = self._repository.get_or_create_singleton(HISTORY_PAGE, actor=actor)
        fields = entity.fields
        if not isinstance(fields, HistoryPageFields) or fields.timeline_entry(entry_id) is None:
            raise NotFoundError(f"Timeline entry '{entry_id}' not found")

        slot_name = timeline_slot_name(entry_id)
        previous = dict(entity.media)
        outcome = await self._binder.bind(
            HISTORY_PAGE.slot_definitions([*previous, slot_name]),
            previous,
            {slot_name: [upload]},
        )
        entity.media = _without_empty_timeline_slots(outcome.slots)
        saved = await self._save_bound(entity, outcome, previous, actor=actor)
        self._record_orphans(HISTORY_PAGE, saved.id, outcome.retirement_errors)
        return ContentWriteResult(entity=saved, changed_slots=outcome.changed, warnings=outcome.warnings)

    # -- internals ----------------------------------------------------------

    async def _update_entity(
        self,
        entity: ContentEntity,
        changes: Mapping[str, Any],
        uploads: Mapping[str, Sequence[IncomingFile]],
        *,
        actor: str | None,
    ) -> ContentWriteResult:
        kind = entity.kind
        fields = self._repository.merge_fields(kind, entity.fields, changes)
        previous = dict(entity.media)
        outcome = await self._binder.bind(
            kind.slot_definitions(previous),
            previous,
            uploads,
            category=kind.category_of(fields),
        )
        stale = self._stale_timeline_slots(fields, outcome.slots)
        stale_names = {name for name, _ in stale}
        media = _without_empty_timeline_slots(
            {name: value for name, value in outcome.slots.items() if name not in stale_names}
        )

        entity.fields = fields
        entity.media = media
        saved = await self._save_bound(entity, outcome, previous, actor=actor)

        warnings = outcome.warnings
        self._record_orphans(kind, saved.id, outcome.retirement_errors)
        if stale:
            errors = await self._binder.retire(stale, reason="detached")
            self._record_orphans(kind, saved.id, errors)
            warnings.extend(error.describe() for error in errors)
        logger.info(
            "content.entity.updated",
            kind=kind.name,
            entity_id=saved.id,
            actor=actor,
            slots=outcome.changed,
        )
        return ContentWriteResult(entity=saved, changed_slots=outcome.changed, warnings=warnings)

    async def _save_bound(
        self,
        entity: ContentEntity,
        outcome: BindOutcome,
        previous: Mapping[str, SlotValue],
        *,
        actor: str | None,
    ) -> ContentEntity:
        try:
            return self._repository.save(entity, actor=actor)
        except Exception:
            await self._roll_back(entity.kind, entity.id, outcome, previous)
            raise

    async def _roll_back(
        self,
        kind: EntityKind,
        entity_id: str | None,
        outcome: BindOutcome,
        previous: Mapping[str, SlotValue],
    ) -> None:
        """Undo a bind whose document write failed.

        Fresh uploads are retired. References the bind already deleted are still
        in the stored document; they go to the orphan ledger as ``dangling``.
        """
        kept = {
            reference.reference_id
            for value in previous.values()
            for reference in iter_references(value)
        }
        fresh = [
            (name, reference)
            for name in outcome.changed
            for reference in iter_references(outcome.slots.get(name))
            if reference.reference_id not in kept
        ]
        errors = await self._binder.retire(fresh, reason="rollback")

        retired = {reference.reference_id for reference in outcome.retired}
        dangling = [
            RetirementError(
                slot=name,
                reference=reference,
                message="deleted from storage but the document write failed",
                reason=DANGLING_REASON,
            )
            for name, value in previous.items()
            for reference in iter_references(value)
            if reference.reference_id in retired
        ]
        self._record_orphans(kind, entity_id, [*errors, *dangling])
        logger.warning(
            "content.entity.write_rolled_back",
            kind=kind.name,
            entity_id=entity_id,
            rolled_back=len(fresh),
            dangling=len(dangling),
        )

    @staticmethod
    def _stale_timeline_slots(
        fields: Any, media: Mapping[str, SlotValue]
    ) -> list[tuple[str, MediaReference]]:
        if not isinstance(fields, HistoryPageFields):
            return []
        stale: list[tuple[str, MediaReference]] = []
        for name, value in media.items():
            if not name.startswith(TIMELINE_PREFIX):
                continue
            if fields.timeline_entry(name[len(TIMELINE_PREFIX):]) is None:
                stale.extend((name, reference) for reference in iter_references(value))
        return stale

    def _record_orphans(
        self,
        kind: EntityKind,
        entity_id: str | None,
        errors: Iterable[RetirementError | CascadeDeletionError],
    ) -> None:
        errors = list(errors)
        if not errors or self._orphans is None:
            return
        self._orphans.record(errors, entity_kind=kind.name, entity_id=entity_id)


def _without_empty_timeline_slots(media: Mapping[str, SlotValue]) -> dict[str, SlotValue]:
    return {
        name: value
        for name, value in media.items()
        if not (name.startswith(TIMELINE_PREFIX) and value is None)
    }
