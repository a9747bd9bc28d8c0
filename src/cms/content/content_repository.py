"""Content repository backed by SQLAlchemy."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from ..db.db_models import ContentDocumentModel
from ..exceptions import NotFoundError, ValidationError, handle_sqlalchemy_errors
from ..media.media_models import (
    SlotValue,
    slot_value_from_document,
    slot_value_to_document,
)
from .content_kinds import EntityKind
from .content_models import ContentFields, ContentStatus


@dataclass(slots=True)
class ContentEntity:
    """A stored entity: validated fields plus its media slot map."""

    id: str
    kind: EntityKind
    fields: ContentFields
    media: dict[str, SlotValue] = field(default_factory=dict)
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def status(self) -> ContentStatus:
        return self.fields.status


def _format_location(loc: Sequence[Any]) -> str:
    return ".".join(str(part) for part in loc) or "__root__"


class ContentRepository:
    """Provide typed access to content documents stored in the database."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    # -- validation ---------------------------------------------------------

    def validate(self, kind: EntityKind, data: Mapping[str, Any]) -> ContentFields:
        """Validate raw field data, raising field-scoped :class:`ValidationError`."""
        try:
            return kind.fields_model.model_validate(dict(data))
        except PydanticValidationError as exc:
            errors: dict[str, str] = {}
            for error in exc.errors():
                errors.setdefault(_format_location(error.get("loc", ())), error.get("msg", "invalid"))
            raise ValidationError(errors, entity=kind.label) from exc

    def merge_fields(
        self, kind: EntityKind, existing: ContentFields, changes: Mapping[str, Any]
    ) -> ContentFields:
        """Apply partial changes on top of stored fields and re-validate."""
        merged = existing.model_dump(mode="json")
        merged.update(changes)
        if kind.category_field and kind.category_field in changes:
            for derived in kind.derived_from_category:
                if derived not in changes:
                    merged.pop(derived, None)
        return self.validate(kind, merged)

    # -- reads --------------------------------------------------------------

    def get(self, kind: EntityKind, entity_id: str) -> ContentEntity:
        with self._session_factory() as session:
            row = session.get(ContentDocumentModel, entity_id)
            if row is None or row.kind != kind.name:
                raise NotFoundError(f"{kind.label} '{entity_id}' not found")
            return self._to_domain(kind, row)

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
        with self._session_factory() as session:
            query = session.query(ContentDocumentModel).filter(ContentDocumentModel.kind == kind.name)
            if category:
                query = query.filter(ContentDocumentModel.category == category)
            if status:
                query = query.filter(ContentDocumentModel.status == str(status))
            for token in (search or "").lower().split():
                query = query.filter(ContentDocumentModel.search_text.contains(token, autoescape=True))
            if kind.order_field:
                query = query.order_by(
                    ContentDocumentModel.sort_order.asc(), ContentDocumentModel.created_at.desc()
                )
            else:
                query = query.order_by(ContentDocumentModel.created_at.desc())
            rows = query.all()
            entities = [self._to_domain(kind, row) for row in rows]
        if featured_only:
            entities = [item for item in entities if getattr(item.fields, "is_featured", False)]
        if limit is not None:
            entities = entities[:limit]
        return entities

    def get_singleton(self, kind: EntityKind) -> ContentEntity | None:
        self._require_singleton(kind)
        with self._session_factory() as session:
            row = (
                session.query(ContentDocumentModel)
                .filter(ContentDocumentModel.kind == kind.name)
                .order_by(ContentDocumentModel.created_at.asc())
                .first()
            )
            return self._to_domain(kind, row) if row is not None else None

    def get_or_create_singleton(self, kind: EntityKind, *, actor: str | None = None) -> ContentEntity:
        existing = self.get_singleton(kind)
        if existing is not None:
            return existing
        return self.create(kind, self.validate(kind, {}), {}, actor=actor)

    # -- writes -------------------------------------------------------------

    def create(
        self,
        kind: EntityKind,
        fields: ContentFields | Mapping[str, Any],
        media: Mapping[str, SlotValue],
        *,
        actor: str | None = None,
    ) -> ContentEntity:
        if not isinstance(fields, ContentFields):
            fields = self.validate(kind, fields)
        if kind.singleton and self.get_singleton(kind) is not None:
            raise ValidationError({"__root__": "already exists"}, entity=kind.label)
        slots: dict[str, SlotValue] = {slot.name: slot.empty_value() for slot in kind.slots}
        slots.update(media)
        now = datetime.utcnow()
        entity = ContentEntity(
            id=uuid.uuid4().hex,
            kind=kind,
            fields=fields,
            media=slots,
            created_by=actor,
            updated_by=actor,
            created_at=now,
            updated_at=now,
        )
        with handle_sqlalchemy_errors(entity=kind.label), self._session_factory() as session:
            row = ContentDocumentModel(id=entity.id, kind=kind.name, created_at=now)
            self._apply(row, entity)
            session.add(row)
            session.commit()
        return entity

    def save(self, entity: ContentEntity, *, actor: str | None = None) -> ContentEntity:
        """Persist fields and media of an existing entity (last writer wins)."""
        kind = entity.kind
        entity.updated_by = actor if actor is not None else entity.updated_by
        entity.updated_at = datetime.utcnow()
        with handle_sqlalchemy_errors(entity=kind.label), self._session_factory() as session:
            row = session.get(ContentDocumentModel, entity.id)
            if row is None or row.kind != kind.name:
                raise NotFoundError(f"{kind.label} '{entity.id}' not found")
            self._apply(row, entity)
            session.commit()
            session.refresh(row)
            return self._to_domain(kind, row)

    def delete(self, kind: EntityKind, entity_id: str) -> None:
        with handle_sqlalchemy_errors(entity=kind.label), self._session_factory() as session:
            row = session.get(ContentDocumentModel, entity_id)
            if row is None or row.kind != kind.name:
                raise NotFoundError(f"{kind.label} '{entity_id}' not found")
            session.delete(row)
            session.commit()

    # -- mapping ------------------------------------------------------------

    @staticmethod
    def _require_singleton(kind: EntityKind) -> None:
        if not kind.singleton:
            raise ValueError(f"{kind.label} is not a singleton kind")

    @staticmethod
    def _apply(row: ContentDocumentModel, entity: ContentEntity) -> None:
        kind = entity.kind
        row.status = str(entity.fields.status)
        row.category = kind.category_of(entity.fields)
        row.title = kind.title_of(entity.fields)[:200]
        row.search_text = kind.search_text(entity.fields)
        row.sort_order = kind.order_of(entity.fields)
        row.document = {
            "fields": entity.fields.model_dump(mode="json"),
            "media": {
                name: slot_value_to_document(value) for name, value in entity.media.items()
            },
        }
        row.created_by = entity.created_by
        row.updated_by = entity.updated_by
        row.updated_at = entity.updated_at or datetime.utcnow()

    @staticmethod
    def _to_domain(kind: EntityKind, row: ContentDocumentModel) -> ContentEntity:
        document = row.document or {}
        media = {
            name: slot_value_from_document(value)
            for name, value in (document.get("media") or {}).items()
        }
        for slot in kind.slots:
            media.setdefault(slot.name, slot.empty_value())
        return ContentEntity(
            id=row.id,
            kind=kind,
            fields=kind.fields_model.model_validate(document.get("fields") or {}),
            media=media,
            created_by=row.created_by,
            updated_by=row.updated_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
