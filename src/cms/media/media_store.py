"""Remote media store adapter (ImageKit REST API over httpx)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from ..config import MediaStoreConfig
from .media_errors import StoreConfigurationError, StoreError
from .media_models import MediaReference
from .media_urls import OptionsLike, build_url

logger = logging.getLogger(__name__)


class MediaStore(Protocol):
    """Contract the binder relies on; no local state, network calls only."""

    async def upload(self, content: bytes, filename: str, folder: str) -> MediaReference:
        ...

    async def delete(self, reference_id: str) -> None:
        ...

    def build_url(self, stored_path: str, options: OptionsLike = None) -> str:
        ...


@dataclass(slots=True)
class ImageKitStore:
    """Upload and delete files in ImageKit.

    Every call opens its own client with the configured timeout; a timeout is
    reported as a :class:`StoreError` with ``timed_out`` set.
    """

    config: MediaStoreConfig
    transport: httpx.AsyncBaseTransport | None = None
    log: logging.Logger = field(default_factory=lambda: logger)

    async def upload(self, content: bytes, filename: str, folder: str) -> MediaReference:
        folder_path = "/" + folder.strip("/")
        tags = [*self.config.tags, folder.strip("/").split("/")[-1]]
        data = {
            "fileName": filename,
            "folder": folder_path,
            "useUniqueFileName": "true",
            "tags": ",".join(tag for tag in tags if tag),
        }
        files = {"file": (filename, content)}

        self.log.info(
            "media.upload.started",
            extra={"filename": filename, "folder": folder_path, "size_bytes": len(content)},
        )
        response = await self._send(
            "POST", self.config.upload_endpoint, data=data, files=files
        )
        if response.status_code not in (200, 201):
            raise StoreError(
                f"upload rejected with status {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )
        reference = self._to_reference(_json_body(response), filename)
        self.log.info(
            "media.upload.completed",
            extra={"reference_id": reference.reference_id, "stored_path": reference.stored_path},
        )
        return reference

    async def delete(self, reference_id: str) -> None:
        if not reference_id:
            return
        url = f"{self.config.api_endpoint.rstrip('/')}/files/{quote(reference_id, safe='')}"
        response = await self._send("DELETE", url)
        if response.status_code == 404:
            self.log.debug("media.delete.already_absent", extra={"reference_id": reference_id})
            return
        if response.status_code not in (200, 204):
            raise StoreError(
                f"delete rejected with status {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )
        self.log.info("media.delete.completed", extra={"reference_id": reference_id})

    def build_url(self, stored_path: str, options: OptionsLike = None) -> str:
        return build_url(self.config.url_endpoint, stored_path, options)

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if not self.config.private_key:
            raise StoreConfigurationError("IMAGEKIT_PRIVATE_KEY is not configured")
        auth = httpx.BasicAuth(self.config.private_key, "")
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds, transport=self.transport
            ) as client:
                return await client.request(method, url, auth=auth, **kwargs)
        except httpx.TimeoutException as exc:
            self.log.warning("media.request.timeout", extra={"method": method, "url": url})
            raise StoreError(f"{method} {url} timed out", timed_out=True) from exc
        except httpx.HTTPError as exc:
            self.log.warning(
                "media.request.failed", extra={"method": method, "url": url, "error": str(exc)}
            )
            raise StoreError(f"{method} {url} failed: {exc}") from exc

    @staticmethod
    def _to_reference(body: dict[str, Any], filename: str) -> MediaReference:
        missing = [key for key in ("fileId", "filePath", "url") if not body.get(key)]
        if missing:
            raise StoreError(f"upload response missing {', '.join(missing)}")
        return MediaReference(
            reference_id=str(body["fileId"]),
            stored_path=str(body["filePath"]),
            url=str(body["url"]),
            thumbnail_url=body.get("thumbnailUrl") or None,
            display_name=str(body.get("name") or filename),
        )


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as exc:
        raise StoreError("upload response is not valid JSON") from exc
    if not isinstance(body, dict):
        raise StoreError("upload response is not a JSON object")
    return body


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or "no details"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)
