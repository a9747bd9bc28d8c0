"""Errors raised while accepting admin uploads."""

from ..exceptions import AppError


class UploadRejectedError(AppError):
    """Base class for upload transport rejections."""


class UnsupportedMediaError(UploadRejectedError):
    """Raised when a file's content type or extension is not allowed for its field."""


class PayloadTooLargeError(UploadRejectedError):
    """Raised when a single file exceeds the configured size cap."""


class TooManyFilesError(UploadRejectedError):
    """Raised when a request carries more files than allowed."""


class UnexpectedFieldError(UploadRejectedError):
    """Raised when a file arrives under a field name no slot accepts."""
