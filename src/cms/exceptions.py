"""Domain level exceptions and helpers for repository layers."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Mapping

from sqlalchemy import exc as sa_exc

__all__ = [
    "AppError",
    "RepositoryError",
    "NotFoundError",
    "ValidationError",
    "DatabaseOperationError",
    "handle_sqlalchemy_errors",
]


class AppError(Exception):
    """Base class for application specific errors."""


class RepositoryError(AppError):
    """Base class for persistence layer failures."""


class NotFoundError(RepositoryError):
    """Raised when a record could not be located."""


class DatabaseOperationError(RepositoryError):
    """Raised for unexpected database errors."""


class ValidationError(RepositoryError):
    """Raised when entity fields violate their schema.

    ``errors`` maps a field name to a human readable message so the admin UI can
    render them next to the offending inputs.
    """

    def __init__(self, errors: Mapping[str, str], *, entity: str | None = None) -> None:
        self.errors = dict(errors)
        self.entity = entity
        summary = "; ".join(f"{name}: {message}" for name, message in self.errors.items())
        prefix = f"{entity}: " if entity else ""
        super().__init__(f"{prefix}{summary or 'invalid data'}")


@contextmanager
def handle_sqlalchemy_errors(*, entity: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into domain specific ones."""

    try:
        yield
    except sa_exc.DBAPIError as exc:
        label = f"{entity}: " if entity else ""
        raise DatabaseOperationError(f"{label}database operation failed") from exc
