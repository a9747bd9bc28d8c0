"""Render published content with delivery URLs for the public site."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, status

from ..content.content_kinds import EntityKind, timeline_slot_name
from ..content.content_models import ContentStatus
from ..content.content_repository import ContentEntity, ContentRepository
from ..exceptions import NotFoundError
from ..media.media_models import MediaKind, MediaReference
from ..media.media_urls import MediaUrlBuilder


@dataclass(slots=True)
class PublicContentService:
    """Expose published entities only; drafts and archived items look missing."""

    repository: ContentRepository
    urls: MediaUrlBuilder

    def list_published(
        self,
        kind: EntityKind,
        *,
        category: str | None = None,
        featured_only: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        entities = self.repository.list_entities(
            kind,
            category=category,
            status=ContentStatus.PUBLISHED,
            featured_only=featured_only,
            limit=None,
        )
        visible = [item for item in entities if getattr(item.fields, "is_active", True)]
        if limit is not None:
            visible = visible[:limit]
        return [self.render(item) for item in visible]

    def get_published(self, kind: EntityKind, entity_id: str) -> dict[str, Any]:
        try:
            entity = self.repository.get(kind, entity_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found") from exc
        if entity.status != ContentStatus.PUBLISHED:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")
        return self.render(entity)

    def get_singleton(self, kind: EntityKind) -> dict[str, Any]:
        entity = self.repository.get_singleton(kind)
        if entity is None or entity.status != ContentStatus.PUBLISHED:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Content not found")
        return self.render(entity)

    def render(self, entity: ContentEntity) -> dict[str, Any]:
        fields = entity.fields.model_dump(mode="json")
        media: dict[str, Any] = {}
        for slot in entity.kind.slots:
            value = entity.media.get(slot.name)
            if slot.is_list:
                media[slot.name] = self.urls.gallery(list(value or []))
            elif slot.media_kind is MediaKind.VIDEO:
                media[slot.name] = self._video(value)
            else:
                media[slot.name] = self._image(value)

        for entry in fields.get("timeline") or []:
            reference = entity.media.get(timeline_slot_name(entry.get("id", "")))
            entry["image"] = self._image(reference)

        return {"id": entity.id, "kind": entity.kind.name, **fields, "media": media}

    def _image(self, reference: Any) -> dict[str, Any] | None:
        if not isinstance(reference, MediaReference):
            return None
        return {
            "url": self.urls.image_url(reference),
            "original": reference.url,
            "responsive": self.urls.responsive(reference),
            "name": reference.display_name,
        }

    def _video(self, reference: Any) -> dict[str, Any] | None:
        if not isinstance(reference, MediaReference):
            return None
        return {"url": self.urls.video_url(reference), "name": reference.display_name}
