"""Login endpoint for site admins."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from .auth_dependencies import get_auth_service
from .auth_service import AccountDisabledError, AuthService, InvalidCredentialsError

router = APIRouter(prefix="/api/admin", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    name: str
    role: str


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        issued = service.login(payload.email, payload.password)
    except AccountDisabledError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"status": "error", "failure_reason": "account_disabled", "details": str(exc)},
        ) from exc
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"status": "error", "failure_reason": "invalid_credentials"},
        ) from exc
    return LoginResponse(
        access_token=issued.access_token,
        expires_in=issued.expires_in,
        name=issued.principal.name,
        role=str(issued.principal.role),
    )
