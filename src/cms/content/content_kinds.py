"""Registry of content kinds and the media slots each one declares."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..media.media_models import MediaKind, SlotCardinality, SlotDefinition
from .content_models import (
    ContentFields,
    EducationProgramFields,
    EventFields,
    FounderProfileFields,
    HistoryPageFields,
    TeamMemberFields,
)


def _single(name: str, kind: MediaKind, folder: str) -> SlotDefinition:
    return SlotDefinition(name=name, cardinality=SlotCardinality.SINGLE, media_kind=kind, folder=folder)


def _gallery(name: str, folder: str) -> SlotDefinition:
    return SlotDefinition(name=name, cardinality=SlotCardinality.LIST, media_kind=MediaKind.IMAGE, folder=folder)


@dataclass(frozen=True, slots=True)
class EntityKind:
    """Static description of one content kind.

    ``dynamic_slots`` maps a slot-name prefix to a template definition; a name such
    as ``timeline:abc123`` resolves to a single-reference slot bound to one
    timeline entry.
    """

    name: str
    label: str
    route: str
    fields_model: type[ContentFields]
    slots: tuple[SlotDefinition, ...]
    singleton: bool = False
    title_field: str = "title"
    category_field: str | None = "category"
    search_fields: tuple[str, ...] = ("title", "description", "keywords")
    order_field: str | None = None
    derived_from_category: tuple[str, ...] = ()
    dynamic_slots: dict[str, SlotDefinition] = field(default_factory=dict)

    @property
    def supports_featured(self) -> bool:
        return "is_featured" in self.fields_model.model_fields

    def slot_for(self, slot_name: str) -> SlotDefinition | None:
        for slot in self.slots:
            if slot.name == slot_name:
                return slot
        prefix, sep, _ = slot_name.partition(":")
        template = self.dynamic_slots.get(prefix) if sep else None
        if template is None:
            return None
        return SlotDefinition(
            name=slot_name,
            cardinality=template.cardinality,
            media_kind=template.media_kind,
            folder=template.folder,
        )

    def slot_definitions(self, extra_names: Iterable[str] = ()) -> list[SlotDefinition]:
        """Declared slots plus any dynamic slot names that resolve for this kind."""
        definitions = list(self.slots)
        known = {slot.name for slot in definitions}
        for name in extra_names:
            if name in known:
                continue
            resolved = self.slot_for(name)
            if resolved is not None:
                definitions.append(resolved)
                known.add(name)
        return definitions

    def category_of(self, fields: ContentFields) -> str | None:
        if not self.category_field:
            return None
        value = getattr(fields, self.category_field, None)
        return str(value) if value is not None else None

    def title_of(self, fields: ContentFields) -> str:
        return str(getattr(fields, self.title_field, "") or "")

    def order_of(self, fields: ContentFields) -> int:
        if not self.order_field:
            return 0
        return int(getattr(fields, self.order_field, 0) or 0)

    def search_text(self, fields: ContentFields) -> str:
        parts: list[str] = []
        for name in self.search_fields:
            value = getattr(fields, name, None)
            if isinstance(value, (list, tuple)):
                parts.extend(str(item) for item in value)
            elif value:
                parts.append(str(value))
        return " ".join(parts).lower()


EVENT = EntityKind(
    name="event",
    label="Event",
    route="events",
    fields_model=EventFields,
    slots=(
        _single("poster", MediaKind.IMAGE, "programs/{category}"),
        _single("video", MediaKind.VIDEO, "programs/{category}/videos"),
        _gallery("gallery", "programs/{category}/gallery"),
    ),
    derived_from_category=("type",),
)

EDUCATION_PROGRAM = EntityKind(
    name="education",
    label="Education program",
    route="education-programs",
    fields_model=EducationProgramFields,
    slots=(
        _single("poster", MediaKind.IMAGE, "programs/education/{category}"),
        _single("video", MediaKind.VIDEO, "programs/education/{category}/videos"),
        _gallery("gallery", "programs/education/{category}/gallery"),
    ),
    order_field="display_order",
)

FOUNDER_PROFILE = EntityKind(
    name="founder",
    label="Founder profile",
    route="founder",
    fields_model=FounderProfileFields,
    slots=(
        _single("profile_image", MediaKind.IMAGE, "founder"),
        _single("secondary_image", MediaKind.IMAGE, "founder"),
    ),
    singleton=True,
    title_field="name",
    category_field=None,
    search_fields=("name", "title", "short_bio", "keywords"),
)

HISTORY_PAGE = EntityKind(
    name="history",
    label="History page",
    route="history",
    fields_model=HistoryPageFields,
    slots=(
        _single("background_image", MediaKind.IMAGE, "history"),
        _single("hero_image", MediaKind.IMAGE, "history"),
    ),
    singleton=True,
    title_field="introduction",
    category_field=None,
    search_fields=("introduction", "keywords"),
    dynamic_slots={"timeline": _single("timeline", MediaKind.IMAGE, "history/timeline")},
)

TEAM_MEMBER = EntityKind(
    name="team",
    label="Team member",
    route="team-members",
    fields_model=TeamMemberFields,
    slots=(_single("profile_image", MediaKind.IMAGE, "team"),),
    title_field="name",
    search_fields=("name", "role", "bio", "keywords"),
    order_field="order",
)

KINDS: dict[str, EntityKind] = {
    kind.name: kind
    for kind in (EVENT, EDUCATION_PROGRAM, FOUNDER_PROFILE, HISTORY_PAGE, TEAM_MEMBER)
}


def get_kind(name: str) -> EntityKind:
    try:
        return KINDS[name]
    except KeyError:
        raise KeyError(f"Unknown content kind '{name}'") from None


def timeline_slot_name(entry_id: str) -> str:
    return f"timeline:{entry_id}"
