"""In-memory media store double recording every call."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from src.cms.media.media_errors import StoreError
from src.cms.media.media_models import MediaReference
from src.cms.media.media_urls import OptionsLike, build_url

ENDPOINT = "https://ik.imagekit.io/demo"


@dataclass
class FakeMediaStore:
    """Uploads succeed unless the filename is listed in ``fail_uploads``."""

    fail_uploads: set[str] = field(default_factory=set)
    fail_deletes: set[str] = field(default_factory=set)
    timeout_uploads: set[str] = field(default_factory=set)
    uploads: list[tuple[str, str]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    objects: dict[str, MediaReference] = field(default_factory=dict)
    _counter: int = 0

    async def upload(self, content: bytes, filename: str, folder: str) -> MediaReference:
        await asyncio.sleep(0)
        self.uploads.append((filename, folder))
        if filename in self.timeout_uploads:
            raise StoreError(f"upload of {filename} timed out", timed_out=True)
        if filename in self.fail_uploads:
            raise StoreError(f"upload of {filename} rejected", status_code=500)
        self._counter += 1
        reference_id = f"file-{self._counter}"
        path = f"/{folder.strip('/')}/{filename}"
        reference = MediaReference(
            reference_id=reference_id,
            stored_path=path,
            url=f"{ENDPOINT}{path}",
            display_name=filename,
        )
        self.objects[reference_id] = reference
        return reference

    async def delete(self, reference_id: str) -> None:
        await asyncio.sleep(0)
        if reference_id in self.fail_deletes:
            raise StoreError(f"delete of {reference_id} rejected", status_code=500)
        self.deleted.append(reference_id)
        self.objects.pop(reference_id, None)

    def build_url(self, stored_path: str, options: OptionsLike = None) -> str:
        return build_url(ENDPOINT, stored_path, options)


def reference(reference_id: str, path: str | None = None) -> MediaReference:
    stored_path = path or f"/programs/festival/{reference_id}.jpg"
    return MediaReference(
        reference_id=reference_id,
        stored_path=stored_path,
        url=f"{ENDPOINT}{stored_path}",
        display_name=stored_path.rsplit("/", 1)[-1],
    )


@dataclass
class TrackingMediaStore(FakeMediaStore):
    """Records upload overlap and the order of completed calls.

    ``delays`` holds the number of event-loop turns an upload of that filename
    takes before it completes.
    """

    delays: dict[str, int] = field(default_factory=dict)
    in_flight: int = 0
    peak: int = 0
    events: list[str] = field(default_factory=list)

    async def upload(self, content: bytes, filename: str, folder: str) -> MediaReference:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            for _ in range(self.delays.get(filename, 1)):
                await asyncio.sleep(0)
            return await super().upload(content, filename, folder)
        finally:
            self.in_flight -= 1
            self.events.append(f"uploaded:{filename}")

    async def delete(self, reference_id: str) -> None:
        self.events.append(f"delete:{reference_id}")
        await super().delete(reference_id)
