"""Media binding errors and partial-failure records."""

from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import AppError
from .media_models import MediaReference


class StoreError(AppError):
    """Raised by the store adapter when the remote service rejects a call."""

    def __init__(self, message: str, *, status_code: int | None = None, timed_out: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.timed_out = timed_out


class StoreConfigurationError(StoreError):
    """Raised when the adapter is used without credentials or endpoints."""


class BindError(AppError):
    """Raised when a bind request is malformed (caller error)."""


class UnknownSlotError(BindError):
    """Raised when uploads target a slot the entity kind does not declare."""


class SlotCardinalityError(BindError):
    """Raised when more than one payload is sent to a single-reference slot."""


@dataclass(frozen=True, slots=True)
class UploadError:
    """Upload of one payload failed; its slot kept the previous value."""

    slot: str
    filename: str
    message: str
    timed_out: bool = False

    def describe(self) -> str:
        reason = "timed out" if self.timed_out else self.message
        return f"{self.slot}: upload of '{self.filename}' failed ({reason}); previous media kept"


@dataclass(frozen=True, slots=True)
class RetirementError:
    """A superseded reference could not be removed from the remote store."""

    slot: str
    reference: MediaReference
    message: str
    reason: str = "replaced"

    def describe(self) -> str:
        if self.reason == "detached":
            return (
                f"{self.slot}: media removed, but the file could not be deleted "
                f"from storage ({self.message})"
            )
        if self.reason == "dangling":
            return (
                f"{self.slot}: '{self.reference.display_name}' was deleted from storage "
                f"while the document still points at it ({self.message})"
            )
        if self.reason == "rollback":
            return (
                f"{self.slot}: an upload from the aborted update could not be removed "
                f"from storage ({self.message})"
            )
        return (
            f"{self.slot} updated, but the previous file could not be removed "
            f"from storage ({self.message})"
        )


@dataclass(frozen=True, slots=True)
class CascadeDeletionError:
    """One of a deleted entity's references could not be removed."""

    slot: str
    reference: MediaReference
    message: str

    def describe(self) -> str:
        return f"{self.slot}: '{self.reference.display_name}' could not be removed from storage ({self.message})"
