"""URL derivation for remote media paths.

Transformation directives are rendered in a fixed order (width, height, quality,
format, aspect ratio, crop, focus) as ``key-value`` pairs joined by commas and
appended as ``?tr:...``. Unset options are omitted; values are passed through
verbatim. Video paths are always served untransformed.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import PurePosixPath
from typing import Any, Mapping, Union

from .media_models import MediaReference

VIDEO_EXTENSIONS = frozenset({".mp4", ".avi", ".mov", ".wmv", ".webm"})

_DIRECTIVES: tuple[tuple[str, str], ...] = (
    ("width", "w"),
    ("height", "h"),
    ("quality", "q"),
    ("format", "f"),
    ("aspect_ratio", "ar"),
    ("crop", "c"),
    ("focus", "fo"),
)


@dataclass(frozen=True, slots=True)
class TransformOptions:
    width: int | None = None
    height: int | None = None
    quality: int | None = None
    format: str | None = None
    aspect_ratio: str | None = None
    crop: str | None = None
    focus: str | None = None

    @classmethod
    def coerce(cls, value: "OptionsLike") -> "TransformOptions":
        if value is None:
            return cls()
        if isinstance(value, TransformOptions):
            return value
        return cls(**dict(value))

    def merged(self, overrides: "OptionsLike") -> "TransformOptions":
        """Return a copy where every option set in ``overrides`` wins."""
        other = TransformOptions.coerce(overrides)
        changes = {
            item.name: getattr(other, item.name)
            for item in fields(other)
            if _is_set(getattr(other, item.name))
        }
        return replace(self, **changes)

    def directives(self) -> list[str]:
        rendered: list[str] = []
        for attribute, key in _DIRECTIVES:
            value = getattr(self, attribute)
            if _is_set(value):
                rendered.append(f"{key}-{value}")
        return rendered


OptionsLike = Union[TransformOptions, Mapping[str, Any], None]

# Defaults applied by rendering helpers, never by build_url itself.
IMAGE_DEFAULTS = TransformOptions(quality=80, format="webp")

RESPONSIVE_PRESETS: dict[str, TransformOptions] = {
    "thumbnail": TransformOptions(width=300, height=200, crop="maintain_ratio"),
    "small": TransformOptions(width=640),
    "medium": TransformOptions(width=1024),
    "large": TransformOptions(width=1920),
    "original": TransformOptions(quality=90),
}


def _is_set(value: Any) -> bool:
    return value is not None and value != "" and value != 0


def is_video_path(stored_path: str) -> bool:
    return PurePosixPath(stored_path.split("?", 1)[0]).suffix.lower() in VIDEO_EXTENSIONS


def _base_url(endpoint: str, stored_path: str) -> str:
    return f"{endpoint.rstrip('/')}/{stored_path.lstrip('/')}"


def build_url(endpoint: str, stored_path: str, options: OptionsLike = None) -> str:
    """Return the delivery URL for ``stored_path`` with optional transformations."""
    if not stored_path:
        return ""
    base = _base_url(endpoint, stored_path)
    if is_video_path(stored_path):
        return base
    directives = TransformOptions.coerce(options).directives()
    if not directives:
        return base
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}tr:{','.join(directives)}"


def build_video_url(endpoint: str, stored_path: str) -> str:
    if not stored_path:
        return ""
    return _base_url(endpoint, stored_path)


def responsive_variants(
    endpoint: str,
    stored_path: str,
    defaults: OptionsLike = IMAGE_DEFAULTS,
) -> dict[str, str]:
    """Build the named size variants (thumbnail .. original) for one path."""
    base = TransformOptions.coerce(defaults)
    return {
        name: build_url(endpoint, stored_path, base.merged(preset))
        for name, preset in RESPONSIVE_PRESETS.items()
    }


@dataclass(frozen=True, slots=True)
class MediaUrlBuilder:
    """Resolve references into URLs, falling back to the stored direct URL.

    Without a configured endpoint no transformation is possible, so every helper
    returns ``reference.url`` as-is.
    """

    endpoint: str | None

    def image_url(self, reference: MediaReference | None, options: OptionsLike = None) -> str:
        if reference is None:
            return ""
        if not self.endpoint or not reference.stored_path:
            return reference.url
        if is_video_path(reference.stored_path):
            return build_video_url(self.endpoint, reference.stored_path)
        return build_url(self.endpoint, reference.stored_path, IMAGE_DEFAULTS.merged(options))

    def video_url(self, reference: MediaReference | None) -> str:
        if reference is None:
            return ""
        if not self.endpoint or not reference.stored_path:
            return reference.url
        return build_video_url(self.endpoint, reference.stored_path)

    def responsive(self, reference: MediaReference | None) -> dict[str, str]:
        if reference is None:
            return {name: "" for name in RESPONSIVE_PRESETS}
        if not self.endpoint or not reference.stored_path:
            return {name: reference.url for name in RESPONSIVE_PRESETS}
        return responsive_variants(self.endpoint, reference.stored_path)

    def gallery(self, references: list[MediaReference]) -> list[dict[str, str]]:
        return [
            {
                "reference_id": item.reference_id,
                "thumbnail": self.image_url(item, {"width": 300}),
                "full": self.image_url(item, {"quality": 90}),
            }
            for item in references
        ]
