import pytest

from src.cms.admin.admin_service import AdminContentService
from src.cms.content.content_kinds import EVENT, HISTORY_PAGE, TEAM_MEMBER
from src.cms.content.content_repository import ContentRepository
from src.cms.exceptions import DatabaseOperationError, NotFoundError, ValidationError
from src.cms.media.media_binder import EntityMediaBinder
from src.cms.media.media_models import IncomingFile
from src.cms.media.orphan_repository import OrphanRepository
from tests.mocks.media_store import FakeMediaStore

EVENT_DATA = {
    "title": "Holi",
    "description": "Colours in the courtyard",
    "category": "festival",
    "event_date": "2026-03-04",
}


def jpeg(name: str, content: bytes = b"jpeg") -> IncomingFile:
    return IncomingFile(filename=name, content=content, content_type="image/jpeg")


@pytest.fixture()
def store() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture()
def orphans(session_factory) -> OrphanRepository:
    return OrphanRepository(session_factory)


@pytest.fixture()
def repository(session_factory) -> ContentRepository:
    return ContentRepository(session_factory)


@pytest.fixture()
def service(repository, store, orphans) -> AdminContentService:
    return AdminContentService(
        repository,
        EntityMediaBinder(store),
        orphans,
    )


@pytest.mark.asyncio
async def test_event_poster_lifecycle(service, store) -> None:
    created = await service.create(EVENT, EVENT_DATA, {}, actor="editor")
    assert created.entity.media["poster"] is None

    first = await service.update(EVENT, created.entity.id, {}, {"poster": [jpeg("a.jpg", b"B1")]})
    r1 = first.entity.media["poster"]
    assert store.uploads == [("a.jpg", "programs/festival")]
    assert service.get(EVENT, created.entity.id).media["poster"] == r1

    second = await service.update(EVENT, created.entity.id, {}, {"poster": [jpeg("b.jpg", b"B2")]})
    r2 = second.entity.media["poster"]
    assert r2 != r1
    assert store.deleted == [r1.reference_id]
    assert service.get(EVENT, created.entity.id).media["poster"] == r2

    store.fail_deletes.add(r2.reference_id)
    result = await service.delete(EVENT, created.entity.id)
    assert result.warnings
    with pytest.raises(NotFoundError):
        service.get(EVENT, created.entity.id)


@pytest.mark.asyncio
async def test_create_validates_before_uploading(service, store) -> None:
    with pytest.raises(ValidationError):
        await service.create(EVENT, {"title": "No description"}, {"poster": [jpeg("a.jpg")]})

    assert store.uploads == []


@pytest.mark.asyncio
async def test_update_validation_failure_leaves_media_untouched(service, store) -> None:
    created = await service.create(EVENT, EVENT_DATA, {"poster": [jpeg("a.jpg")]})

    with pytest.raises(ValidationError):
        await service.update(EVENT, created.entity.id, {"category": "picnic"}, {"poster": [jpeg("b.jpg")]})

    assert len(store.uploads) == 1
    assert store.deleted == []


@pytest.mark.asyncio
async def test_failed_upload_is_reported_and_existing_poster_kept(service, store) -> None:
    created = await service.create(EVENT, EVENT_DATA, {"poster": [jpeg("a.jpg")]})
    store.timeout_uploads.add("slow.jpg")

    result = await service.update(EVENT, created.entity.id, {"title": "Holi 2026"}, {"poster": [jpeg("slow.jpg")]})

    assert result.entity.fields.title == "Holi 2026"
    assert result.entity.media["poster"] == created.entity.media["poster"]
    assert "timed out" in result.warnings[0]


@pytest.mark.asyncio
async def test_failed_retirement_is_recorded_as_orphan(service, store, orphans) -> None:
    created = await service.create(EVENT, EVENT_DATA, {"poster": [jpeg("a.jpg")]})
    old = created.entity.media["poster"]
    store.fail_deletes.add(old.reference_id)

    result = await service.update(EVENT, created.entity.id, {}, {"poster": [jpeg("b.jpg")]})

    assert result.entity.media["poster"].reference_id != old.reference_id
    [orphan] = orphans.list_pending()
    assert orphan.reference_id == old.reference_id
    assert orphan.reason == "replaced"
    assert orphan.entity_id == created.entity.id


def fail_saves(monkeypatch, repository: ContentRepository) -> None:
    def save(entity, *, actor=None):
        raise DatabaseOperationError("Event: database operation failed")

    monkeypatch.setattr(repository, "save", save)


@pytest.mark.asyncio
async def test_failed_save_rolls_back_upload_and_records_dangling_poster(
    service, repository, store, orphans, monkeypatch
) -> None:
    created = await service.create(EVENT, EVENT_DATA, {"poster": [jpeg("a.jpg")]})
    old = created.entity.media["poster"]
    fail_saves(monkeypatch, repository)

    with pytest.raises(DatabaseOperationError):
        await service.update(EVENT, created.entity.id, {}, {"poster": [jpeg("b.jpg")]})

    assert store.deleted == [old.reference_id, "file-2"]
    assert store.objects == {}
    assert repository.get(EVENT, created.entity.id).media["poster"] == old
    [orphan] = orphans.list_pending()
    assert orphan.reference_id == old.reference_id
    assert orphan.reason == "dangling"
    assert orphan.slot == "poster"
    assert orphan.entity_id == created.entity.id


@pytest.mark.asyncio
async def test_failed_save_keeps_existing_gallery_items(
    service, repository, store, orphans, monkeypatch
) -> None:
    created = await service.create(EVENT, EVENT_DATA, {"gallery": [jpeg("g1.jpg")]})
    [existing] = created.entity.media["gallery"]
    fail_saves(monkeypatch, repository)

    with pytest.raises(DatabaseOperationError):
        await service.update(EVENT, created.entity.id, {}, {"gallery": [jpeg("g2.jpg")]})

    assert store.deleted == ["file-2"]
    assert list(store.objects) == [existing.reference_id]
    assert orphans.list_pending() == []


@pytest.mark.asyncio
async def test_failed_rollback_delete_is_recorded(
    service, repository, store, orphans, monkeypatch
) -> None:
    created = await service.create(EVENT, EVENT_DATA, {})
    store.fail_deletes.add("file-1")
    fail_saves(monkeypatch, repository)

    with pytest.raises(DatabaseOperationError):
        await service.update(EVENT, created.entity.id, {}, {"poster": [jpeg("a.jpg")]})

    [orphan] = orphans.list_pending()
    assert orphan.reference_id == "file-1"
    assert orphan.reason == "rollback"


@pytest.mark.asyncio
async def test_failed_save_rolls_back_timeline_image(
    service, repository, store, monkeypatch
) -> None:
    await service.update_singleton(
        HISTORY_PAGE,
        {"timeline": [{"id": "e2005", "year": 2005, "title": "Start", "description": "First class"}]},
        {},
    )
    fail_saves(monkeypatch, repository)

    with pytest.raises(DatabaseOperationError):
        await service.bind_timeline_image("e2005", jpeg("t.jpg"))

    assert store.deleted == ["file-1"]
    assert "timeline:e2005" not in repository.get_or_create_singleton(HISTORY_PAGE).media



@pytest.mark.asyncio
async def test_gallery_uploads_append_and_detach_removes(service, store) -> None:
    created = await service.create(EVENT, EVENT_DATA, {"gallery": [jpeg("g1.jpg"), jpeg("g2.jpg")]})
    updated = await service.update(EVENT, created.entity.id, {}, {"gallery": [jpeg("g3.jpg")]})
    gallery = updated.entity.media["gallery"]
    assert [item.display_name for item in gallery] == ["g1.jpg", "g2.jpg", "g3.jpg"]

    target = gallery[1].reference_id
    detached = await service.detach_media(EVENT, created.entity.id, "gallery", [target])

    assert [item.reference_id for item in detached.entity.media["gallery"]] == [
        gallery[0].reference_id,
        gallery[2].reference_id,
    ]
    assert store.deleted == [target]


@pytest.mark.asyncio
async def test_toggle_featured_flips_flag(service) -> None:
    created = await service.create(EVENT, EVENT_DATA, {})

    assert service.toggle_featured(EVENT, created.entity.id).fields.is_featured is True
    assert service.toggle_featured(EVENT, created.entity.id).fields.is_featured is False


@pytest.mark.asyncio
async def test_toggle_featured_unsupported_kind(service) -> None:
    created = await service.create(TEAM_MEMBER, {"name": "Asha", "role": "Teacher", "bio": "b"}, {})

    with pytest.raises(ValidationError):
        service.toggle_featured(TEAM_MEMBER, created.entity.id)


@pytest.mark.asyncio
async def test_timeline_image_bound_and_pruned_with_entry(service, store) -> None:
    page = await service.update_singleton(
        HISTORY_PAGE,
        {"timeline": [{"id": "e2005", "year": 2005, "title": "Start", "description": "First class"}]},
        {"hero_image": [jpeg("hero.jpg")]},
    )
    assert page.entity.media["hero_image"] is not None

    bound = await service.bind_timeline_image("e2005", jpeg("t.jpg"))
    image = bound.entity.media["timeline:e2005"]
    assert ("t.jpg", "history/timeline") in store.uploads

    pruned = await service.update_singleton(HISTORY_PAGE, {"timeline": []}, {})

    assert "timeline:e2005" not in pruned.entity.media
    assert image.reference_id in store.deleted


@pytest.mark.asyncio
async def test_timeline_image_for_unknown_entry(service, store) -> None:
    with pytest.raises(NotFoundError):
        await service.bind_timeline_image("missing", jpeg("t.jpg"))

    assert store.uploads == []
