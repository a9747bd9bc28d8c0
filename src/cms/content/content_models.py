"""Pydantic field schemas for each content kind.

Schemas own the entity-level invariants: required fields, length limits, closed
enumerations and defaults derived at write time.
"""

from __future__ import annotations

import uuid
from datetime import date
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator


class ContentStatus(StrEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


def split_list(value: Any, separator: str = ",") -> Any:
    """Accept ``"a, b"`` form input for list fields."""
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(separator) if item.strip()]
    return value


def _lower(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


class ContentFields(BaseModel):
    """Fields shared by every kind."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    status: ContentStatus = ContentStatus.DRAFT
    keywords: list[str] = Field(default_factory=list)

    @field_validator("keywords", mode="before")
    @classmethod
    def _split_keywords(cls, value: Any) -> Any:
        return split_list(value)


# --- Event -----------------------------------------------------------------

EventCategory = Literal[
    "festival",
    "national",
    "wellness",
    "recreation",
    "entertainment",
    "sports",
    "campaign",
    "fundraising",
    "regular",
    "other",
]
EventType = Literal[
    "Festival",
    "National",
    "Wellness",
    "Recreation",
    "Entertainment",
    "Sports",
    "Campaign",
    "Fundraising",
    "Regular",
]

EVENT_TYPE_BY_CATEGORY: dict[str, str] = {
    "festival": "Festival",
    "national": "National",
    "wellness": "Wellness",
    "recreation": "Recreation",
    "entertainment": "Entertainment",
    "sports": "Sports",
    "campaign": "Campaign",
    "fundraising": "Fundraising",
    "regular": "Regular",
}


class EventImpact(BaseModel):
    beneficiaries: int = Field(0, ge=0)
    volunteers: int = Field(0, ge=0)
    funds_raised: float = Field(0, ge=0)


class EventFields(ContentFields):
    title: str = Field(..., min_length=1, max_length=200)
    heading: str | None = None
    description: str = Field(..., min_length=1, max_length=1000)
    category: Annotated[EventCategory, BeforeValidator(_lower)]
    type: EventType | None = None
    event_date: str = Field(..., min_length=1)
    start_time: str | None = None
    end_time: str | None = None
    location: str = "Munirka Centre"
    participants: str = "All Students"
    volunteers: int = Field(0, ge=0)
    members: str | None = None
    features: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    activities: list[str] = Field(default_factory=list)
    is_featured: bool = False
    impact: EventImpact = Field(default_factory=EventImpact)

    @field_validator("features", "highlights", "activities", mode="before")
    @classmethod
    def _split_tags(cls, value: Any) -> Any:
        return split_list(value)

    @model_validator(mode="after")
    def _derive_defaults(self) -> "EventFields":
        if not self.heading:
            self.heading = self.title
        if self.type is None:
            self.type = EVENT_TYPE_BY_CATEGORY.get(self.category, "Regular")  # type: ignore[assignment]
        return self


# --- Education program -----------------------------------------------------

ProgramCategory = Literal["academic", "skill"]
ProgramLevel = Literal["primary", "middle", "high", "tech", "creative", "language", "life", "other"]


class ProgramStats(BaseModel):
    students: str | None = None
    duration: str | None = None
    completion: str | None = None


class EducationProgramFields(ContentFields):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=1000)
    category: Annotated[ProgramCategory, BeforeValidator(_lower)]
    level: Annotated[ProgramLevel, BeforeValidator(_lower)] = "other"
    grade_range: str | None = None
    duration: str | None = None
    students: str | None = None
    modules: list[str] = Field(default_factory=list)
    subjects: list[str] = Field(default_factory=list)
    icon_class: str = "fa-graduation-cap"
    stats: ProgramStats = Field(default_factory=ProgramStats)
    is_featured: bool = False
    display_order: int = 0

    @field_validator("modules", "subjects", mode="before")
    @classmethod
    def _split_items(cls, value: Any) -> Any:
        return split_list(value)


# --- Founder profile (singleton) -------------------------------------------


class JourneyPhase(BaseModel):
    phase: str = Field(..., min_length=1)
    icon: str | None = None
    description: str = Field(..., min_length=1)
    order: int = 0


class FounderAchievement(BaseModel):
    title: str = Field(..., min_length=1)
    description: str | None = None
    year: str | None = None
    icon: str | None = None
    link: str | None = None


class PhilosophyValue(BaseModel):
    value: str = Field(..., min_length=1)
    icon: str | None = None
    description: str = Field(..., min_length=1)


class WorkHighlight(BaseModel):
    title: str | None = None
    description: str | None = None
    impact_number: str | None = None


class FounderSocialLinks(BaseModel):
    instagram: str | None = "https://instagram.com/sangitamehra1"
    facebook: str | None = None
    linkedin: str | None = None
    twitter: str | None = None
    youtube: str | None = None


class MediaFeature(BaseModel):
    title: str | None = None
    publication: str | None = None
    published_on: date | None = None
    description: str | None = None
    link: str | None = None
    icon: str | None = None


class FounderProfileFields(ContentFields):
    status: ContentStatus = ContentStatus.PUBLISHED
    name: str = Field("Sangeeta Mehra", min_length=1, max_length=200)
    title: str = Field("Founder & Director", min_length=1, max_length=200)
    tagline: str = "From Fashion Designer to Change Maker"
    short_bio: str = (
        "I decided to lose myself in the service of others, aiming to give at-risk kids "
        "basic amenities like food, clothes and shelter and eventually mainstream them "
        "into school."
    )
    full_bio: str = ""
    personal_message: str = ""
    quote: str = "Every child deserves a chance to dream and achieve those dreams."
    journey: list[JourneyPhase] = Field(default_factory=list)
    achievements: list[FounderAchievement] = Field(default_factory=list)
    philosophy: list[PhilosophyValue] = Field(default_factory=list)
    work_highlights: dict[str, WorkHighlight] = Field(default_factory=dict)
    social_media: FounderSocialLinks = Field(default_factory=FounderSocialLinks)
    media_features: list[MediaFeature] = Field(default_factory=list)


# --- History page (singleton) ----------------------------------------------


class HeroSection(BaseModel):
    title: str = "Our Journey"
    subtitle: str = "Two Decades of Transforming Lives"
    description: str | None = None
    quote: str = "I decided to lose myself in the service of others"
    quote_author: str = "Sangita Mehra"


class BeginningDetail(BaseModel):
    icon: str | None = None
    title: str | None = None
    description: str | None = None


class BeginningSection(BaseModel):
    title: str = "The Beginning"
    intro: str = (
        "In 2005, Sangita Mehra, a successful fashion designer from the Mehrasons "
        "Jewellers family, made a life-changing decision that would impact hundreds "
        "of children's lives."
    )
    details: list[BeginningDetail] = Field(default_factory=list)


class TimelineEntry(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    year: int
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    icon: str = "fas fa-star"
    achievements: list[str] = Field(default_factory=list)


class Milestone(BaseModel):
    year: int | None = None
    title: str | None = None
    description: str | None = None
    icon: str | None = None


class HistoryImpact(BaseModel):
    children_impacted: int = Field(0, ge=0)
    volunteers_engaged: int = Field(0, ge=0)
    programs_launched: int = Field(0, ge=0)
    awards_received: int = Field(0, ge=0)


class HistoryPageFields(ContentFields):
    status: ContentStatus = ContentStatus.PUBLISHED
    hero: HeroSection = Field(default_factory=HeroSection)
    beginning: BeginningSection = Field(default_factory=BeginningSection)
    introduction: str = (
        "From a small initiative in 2005 to impacting thousands of lives, our journey "
        "is one of compassion, dedication, and transformative change."
    )
    timeline: list[TimelineEntry] = Field(default_factory=list)
    milestones: list[Milestone] = Field(default_factory=list)
    impact: HistoryImpact = Field(default_factory=HistoryImpact)

    def timeline_entry(self, entry_id: str) -> TimelineEntry | None:
        return next((entry for entry in self.timeline if entry.id == entry_id), None)


# --- Team member -----------------------------------------------------------

TeamCategory = Literal["Leadership", "Educational Team", "Support Team", "Support Helpers"]


class TeamSocialLinks(BaseModel):
    linkedin: str | None = None
    twitter: str | None = None
    facebook: str | None = None
    instagram: str | None = None


class TeamMemberFields(ContentFields):
    name: str = Field(..., min_length=1, max_length=200)
    role: str = Field(..., min_length=1, max_length=200)
    category: TeamCategory = "Educational Team"
    bio: str = Field(..., min_length=1)
    achievements: list[str] = Field(default_factory=list)
    email: str | None = None
    phone: str | None = None
    social_media: TeamSocialLinks = Field(default_factory=TeamSocialLinks)
    order: int = 0
    is_active: bool = True
    joined_date: date | None = None

    @field_validator("achievements", mode="before")
    @classmethod
    def _split_lines(cls, value: Any) -> Any:
        return split_list(value, "\n")
