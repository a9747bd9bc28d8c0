"""Upload validation for admin multipart requests."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import PurePosixPath

from starlette.datastructures import UploadFile

from ..config import UploadLimits
from ..media.media_models import IncomingFile
from .admin_errors import (
    PayloadTooLargeError,
    TooManyFilesError,
    UnexpectedFieldError,
    UnsupportedMediaError,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE_BYTES = 1024 * 1024


@dataclass(slots=True)
class UploadValidator:
    """Validate admin uploads against configured limits.

    Files are grouped by form field name. The field decides the accepted media
    kind; both the declared content type and the file extension must match it.
    """

    limits: UploadLimits

    async def collect(
        self, uploads: Sequence[tuple[str, UploadFile]]
    ) -> dict[str, list[IncomingFile]]:
        if len(uploads) > self.limits.max_files:
            logger.warning(
                "admin.upload.too_many_files",
                extra={"count": len(uploads), "limit": self.limits.max_files},
            )
            raise TooManyFilesError(
                f"at most {self.limits.max_files} files per request, got {len(uploads)}"
            )

        grouped: dict[str, list[IncomingFile]] = {}
        for field_name, upload in uploads:
            incoming = await self.read(field_name, upload)
            grouped.setdefault(field_name, []).append(incoming)
        return grouped

    async def read(self, field_name: str, upload: UploadFile) -> IncomingFile:
        media_kind = self._field_kind(field_name)
        filename = upload.filename or "upload"
        content_type = (upload.content_type or "").lower()
        self._check_type(field_name, media_kind, filename, content_type)

        cap = self.limits.max_file_bytes
        chunks: list[bytes] = []
        size = 0
        try:
            while True:
                chunk = await upload.read(CHUNK_SIZE_BYTES)
                if not chunk:
                    break
                size += len(chunk)
                if size > cap:
                    logger.warning(
                        "admin.upload.payload_too_large",
                        extra={"field": field_name, "size_bytes": size, "limit_bytes": cap},
                    )
                    raise PayloadTooLargeError(
                        f"'{filename}' exceeds the {cap // (1024 * 1024)} MB limit"
                    )
                chunks.append(chunk)
        finally:
            await upload.close()

        logger.info(
            "admin.upload.accepted",
            extra={"field": field_name, "filename": filename, "size_bytes": size},
        )
        return IncomingFile(
            filename=filename,
            content=b"".join(chunks),
            content_type=content_type or "application/octet-stream",
        )

    def _field_kind(self, field_name: str) -> str:
        media_kind = self.limits.field_kinds.get(field_name)
        if media_kind is None:
            logger.warning("admin.upload.unexpected_field", extra={"field": field_name})
            raise UnexpectedFieldError(f"unexpected file field '{field_name}'")
        return media_kind

    def _check_type(
        self, field_name: str, media_kind: str, filename: str, content_type: str
    ) -> None:
        if media_kind == "video":
            allowed_types = self.limits.video_content_types
            allowed_extensions = self.limits.video_extensions
        else:
            allowed_types = self.limits.image_content_types
            allowed_extensions = self.limits.image_extensions
        extension = PurePosixPath(filename).suffix.lower().lstrip(".")
        if content_type not in allowed_types or extension not in allowed_extensions:
            logger.warning(
                "admin.upload.unsupported_media",
                extra={"field": field_name, "content_type": content_type, "filename": filename},
            )
            raise UnsupportedMediaError(
                f"'{filename}' is not an accepted {media_kind} file for '{field_name}'"
            )
