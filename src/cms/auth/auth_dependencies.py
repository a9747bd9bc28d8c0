"""FastAPI dependencies guarding admin routes."""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .auth_service import AdminPrincipal, AdminRole, AuthService, InvalidTokenError, TokenExpiredError

bearer = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    try:
        return request.app.state.auth_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("AuthService is not configured") from exc


def _denied(reason: str, code: int = status.HTTP_401_UNAUTHORIZED) -> HTTPException:
    return HTTPException(status_code=code, detail={"status": "error", "failure_reason": reason})


def current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    service: AuthService = Depends(get_auth_service),
) -> AdminPrincipal:
    if credentials is None:
        raise _denied("missing_token")
    try:
        return service.resolve(credentials.credentials)
    except TokenExpiredError as exc:
        raise _denied("token_expired") from exc
    except InvalidTokenError as exc:
        raise _denied("invalid_token") from exc


def require_role(*roles: AdminRole) -> Callable[..., AdminPrincipal]:
    """Dependency admitting only admins whose role is listed."""
    allowed = frozenset(roles)

    def dependency(principal: AdminPrincipal = Depends(current_admin)) -> AdminPrincipal:
        if principal.role not in allowed:
            raise _denied("insufficient_role", status.HTTP_403_FORBIDDEN)
        return principal

    return dependency


# Every role may edit content.
require_admin_user = require_role(*AdminRole)


def current_actor(principal: AdminPrincipal = Depends(current_admin)) -> str:
    return principal.email


__all__ = [
    "current_actor",
    "current_admin",
    "get_auth_service",
    "require_admin_user",
    "require_role",
]
