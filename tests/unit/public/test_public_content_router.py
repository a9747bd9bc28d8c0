import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.cms.content.content_kinds import EVENT, HISTORY_PAGE, KINDS, TEAM_MEMBER
from src.cms.content.content_repository import ContentRepository
from src.cms.media.media_urls import MediaUrlBuilder
from src.cms.public.public_content_router import build_public_content_router
from src.cms.public.public_content_service import PublicContentService
from tests.mocks.media_store import ENDPOINT, reference

EVENT_DATA = {
    "title": "Holi",
    "description": "Colours",
    "category": "festival",
    "event_date": "2026-03-04",
}


@pytest.fixture()
def repo(session_factory) -> ContentRepository:
    return ContentRepository(session_factory)


@pytest.fixture()
def client(repo) -> TestClient:
    service = PublicContentService(repository=repo, urls=MediaUrlBuilder(ENDPOINT))
    app = FastAPI()
    app.include_router(build_public_content_router(service, list(KINDS.values())))
    return TestClient(app)


def test_lists_only_published_events_with_urls(client, repo) -> None:
    repo.create(EVENT, EVENT_DATA, {})
    published = repo.create(
        EVENT,
        {**EVENT_DATA, "title": "Sports Day", "status": "published"},
        {
            "poster": reference("p", "/programs/festival/p.jpg"),
            "video": reference("v", "/programs/festival/videos/v.mp4"),
            "gallery": [reference("g", "/programs/festival/gallery/g.jpg")],
        },
    )

    items = client.get("/public/events").json()["items"]

    assert [item["id"] for item in items] == [published.id]
    media = items[0]["media"]
    assert media["poster"]["url"] == f"{ENDPOINT}/programs/festival/p.jpg?tr:q-80,f-webp"
    assert media["poster"]["responsive"]["thumbnail"].endswith("tr:w-300,h-200,q-80,f-webp,c-maintain_ratio")
    assert media["video"]["url"] == f"{ENDPOINT}/programs/festival/videos/v.mp4"
    assert media["gallery"][0]["thumbnail"] == f"{ENDPOINT}/programs/festival/gallery/g.jpg?tr:w-300,q-80,f-webp"


def test_draft_event_is_not_found(client, repo) -> None:
    draft = repo.create(EVENT, EVENT_DATA, {})

    assert client.get(f"/public/events/{draft.id}").status_code == 404
    assert client.get("/public/events/unknown").status_code == 404


def test_inactive_team_members_hidden(client, repo) -> None:
    base = {"role": "Teacher", "bio": "b", "status": "published"}
    repo.create(TEAM_MEMBER, {**base, "name": "Asha"}, {})
    repo.create(TEAM_MEMBER, {**base, "name": "Ravi", "is_active": False}, {})

    names = [item["name"] for item in client.get("/public/team-members").json()["items"]]

    assert names == ["Asha"]


def test_history_singleton_renders_timeline_images(client, repo) -> None:
    assert client.get("/public/history").status_code == 404

    repo.create(
        HISTORY_PAGE,
        {"timeline": [{"id": "t1", "year": 2005, "title": "Start", "description": "First class"}]},
        {"timeline:t1": reference("t", "/history/timeline/t.jpg")},
    )

    body = client.get("/public/history").json()

    assert body["timeline"][0]["image"]["url"] == f"{ENDPOINT}/history/timeline/t.jpg?tr:q-80,f-webp"
    assert body["media"]["hero_image"] is None
