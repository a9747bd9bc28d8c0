from datetime import timedelta

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from src.cms.auth.auth_api import router
from src.cms.auth.auth_dependencies import current_actor, require_role
from src.cms.auth.auth_service import AdminAccount, AdminRole, AuthService, hash_password


def build_client() -> TestClient:
    service = AuthService(
        [
            AdminAccount("root@example.org", "Root", hash_password("secret"), AdminRole.SUPER_ADMIN),
            AdminAccount("editor@example.org", "Editor", hash_password("secret")),
            AdminAccount("gone@example.org", "Gone", hash_password("secret"), is_active=False),
        ],
        signing_key="test-key",
        token_ttl=timedelta(hours=1),
    )
    app = FastAPI()
    app.include_router(router)
    app.state.auth_service = service

    @app.get("/restricted")
    def restricted(
        principal=Depends(require_role(AdminRole.SUPER_ADMIN, AdminRole.ADMIN)),
        actor: str = Depends(current_actor),
    ) -> dict:
        return {"role": str(principal.role), "actor": actor}

    return TestClient(app)


def login(client: TestClient, email: str) -> dict:
    return client.post("/api/admin/login", json={"email": email, "password": "secret"}).json()


def test_login_returns_token_on_success() -> None:
    client = build_client()

    response = client.post("/api/admin/login", json={"email": "editor@example.org", "password": "secret"})

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["expires_in"] == 3600
    assert data["role"] == "editor"
    assert data["name"] == "Editor"


def test_login_returns_401_on_invalid_credentials() -> None:
    client = build_client()

    response = client.post("/api/admin/login", json={"email": "editor@example.org", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"]["failure_reason"] == "invalid_credentials"


def test_login_returns_403_for_deactivated_account() -> None:
    client = build_client()

    response = client.post("/api/admin/login", json={"email": "gone@example.org", "password": "secret"})

    assert response.status_code == 403
    assert response.json()["detail"]["failure_reason"] == "account_disabled"


def test_role_check_admits_listed_roles_only() -> None:
    client = build_client()
    root = login(client, "root@example.org")["access_token"]
    editor = login(client, "editor@example.org")["access_token"]

    allowed = client.get("/restricted", headers={"Authorization": f"Bearer {root}"})
    denied = client.get("/restricted", headers={"Authorization": f"Bearer {editor}"})
    anonymous = client.get("/restricted")

    assert allowed.status_code == 200
    assert allowed.json() == {"role": "super-admin", "actor": "root@example.org"}
    assert denied.status_code == 403
    assert denied.json()["detail"]["failure_reason"] == "insufficient_role"
    assert anonymous.status_code == 401
    assert anonymous.json()["detail"]["failure_reason"] == "missing_token"
