"""Media data models."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Mapping, Union


class MediaKind(StrEnum):
    IMAGE = "image"
    VIDEO = "video"


class SlotCardinality(StrEnum):
    """How many references a slot can hold."""

    SINGLE = "single"
    LIST = "list"


@dataclass(frozen=True, slots=True)
class MediaReference:
    """Pointer to an object held by the remote media store.

    ``reference_id`` is the store handle needed for deletion, ``stored_path`` is the
    canonical path used for URL transformation and ``url`` is the direct,
    untransformed URL returned at upload time.
    """

    reference_id: str
    stored_path: str
    url: str
    display_name: str
    thumbnail_url: str | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "reference_id": self.reference_id,
            "stored_path": self.stored_path,
            "url": self.url,
            "thumbnail_url": self.thumbnail_url,
            "display_name": self.display_name,
        }

    @classmethod
    def from_document(cls, data: Mapping[str, Any]) -> "MediaReference":
        return cls(
            reference_id=str(data["reference_id"]),
            stored_path=str(data.get("stored_path") or ""),
            url=str(data.get("url") or ""),
            display_name=str(data.get("display_name") or ""),
            thumbnail_url=data.get("thumbnail_url"),
        )


SlotValue = Union[MediaReference, list[MediaReference], None]


_FOLDER_TOKEN = re.compile(r"[^a-z0-9_-]+")


@dataclass(frozen=True, slots=True)
class SlotDefinition:
    """Named attachment point on an entity.

    ``folder`` is a template; ``{category}`` is substituted with the entity
    category so uploads are organized by taxonomy in the remote store.
    """

    name: str
    cardinality: SlotCardinality
    media_kind: MediaKind
    folder: str

    @property
    def is_list(self) -> bool:
        return self.cardinality is SlotCardinality.LIST

    def resolve_folder(self, category: str | None, *, default_category: str = "general") -> str:
        token = _FOLDER_TOKEN.sub("-", (category or default_category).strip().lower()).strip("-")
        return self.folder.format(category=token or default_category)

    def empty_value(self) -> SlotValue:
        return [] if self.is_list else None


@dataclass(frozen=True, slots=True)
class IncomingFile:
    """Named byte payload delivered by the upload transport."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


def slot_value_to_document(value: SlotValue) -> Any:
    if value is None:
        return None
    if isinstance(value, list):
        return [item.to_document() for item in value]
    return value.to_document()


def slot_value_from_document(data: Any) -> SlotValue:
    if data is None:
        return None
    if isinstance(data, list):
        return [MediaReference.from_document(item) for item in data if item]
    if isinstance(data, Mapping) and data.get("reference_id"):
        return MediaReference.from_document(data)
    return None


def iter_references(value: SlotValue) -> list[MediaReference]:
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]
