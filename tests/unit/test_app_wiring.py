"""Smoke tests for ``create_app`` wiring and the login-to-write flow."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.cms.config import AppConfig, MediaStoreConfig, UploadLimits
from src.cms.db.db_init import init_db
from src.cms.main import create_app

CREDENTIALS = Path(__file__).resolve().parents[1] / "data" / "runtime_credentials.json"


def build_config() -> AppConfig:
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return AppConfig(
        database_url="sqlite:///:memory:",
        engine=engine,
        session_factory=sessionmaker(bind=engine, expire_on_commit=False),
        media_store=MediaStoreConfig(
            public_key="", private_key="", url_endpoint="https://ik.imagekit.io/demo"
        ),
        upload_limits=UploadLimits(),
        admin_credentials_path=CREDENTIALS,
        jwt_signing_key="test-signing-key",
        admin_jwt_ttl_hours=1,
    )


def _route_signatures(app: FastAPI) -> set[tuple[str, str]]:
    signatures: set[tuple[str, str]] = set()
    for route in app.routes:
        methods: Iterable[str] = getattr(route, "methods", []) or []
        for method in methods:
            signatures.add((route.path, method.upper()))
    return signatures


def test_create_app_registers_content_routes() -> None:
    app = create_app(build_config())

    signatures = _route_signatures(app)

    expected = {
        ("/api/admin/login", "POST"),
        ("/api/admin/events", "POST"),
        ("/api/admin/events/{entity_id}", "PUT"),
        ("/api/admin/education-programs/{entity_id}/featured", "PATCH"),
        ("/api/admin/team-members/{entity_id}/media/{slot_name}", "DELETE"),
        ("/api/admin/founder", "PUT"),
        ("/api/admin/history/timeline/{entry_id}/image", "POST"),
        ("/public/events", "GET"),
        ("/public/history", "GET"),
    }
    assert expected <= signatures
    assert ("/api/admin/team-members/{entity_id}/featured", "PATCH") not in signatures


def test_login_then_create_team_member_without_media() -> None:
    client = TestClient(create_app(build_config()))

    login = client.post("/api/admin/login", json={"email": "editor@example.org", "password": "secret"})
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    response = client.post(
        "/api/admin/team-members",
        json={"name": "Asha", "role": "Teacher", "bio": "Teaches maths", "status": "published"},
        headers=headers,
    )

    assert response.status_code == 201
    assert response.json()["item"]["created_by"] == "editor@example.org"
    public = client.get("/public/team-members").json()["items"]
    assert [item["name"] for item in public] == ["Asha"]
    assert public[0]["media"]["profile_image"] is None
