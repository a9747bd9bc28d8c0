"""Admin accounts, roles and bearer tokens."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from pathlib import Path

import jwt
import structlog
from jwt import ExpiredSignatureError
from jwt import InvalidTokenError as PyJWTInvalidTokenError

logger = structlog.get_logger(__name__)

TOKEN_ALGORITHM = "HS256"


class AdminRole(StrEnum):
    SUPER_ADMIN = "super-admin"
    ADMIN = "admin"
    EDITOR = "editor"


def hash_password(value: str) -> str:
    """Hex sha256 digest stored in the credentials file."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class AdminPrincipal:
    """The authenticated admin behind a request; ``email`` is the actor reference."""

    email: str
    name: str
    role: AdminRole


@dataclass(slots=True)
class AdminAccount:
    email: str
    name: str
    password_hash: str
    role: AdminRole = AdminRole.EDITOR
    is_active: bool = True
    last_login: datetime | None = None

    def principal(self) -> AdminPrincipal:
        return AdminPrincipal(email=self.email, name=self.name, role=self.role)


@dataclass(frozen=True, slots=True)
class IssuedToken:
    access_token: str
    expires_in: int
    principal: AdminPrincipal


class AuthError(Exception):
    """Base class for authentication failures."""


class InvalidCredentialsError(AuthError):
    pass


class AccountDisabledError(AuthError):
    pass


class InvalidTokenError(AuthError):
    pass


class TokenExpiredError(AuthError):
    pass


class AuthService:
    """Log admins in and resolve their bearer tokens back to an account.

    Tokens are checked against the live account list, so deactivating an account
    revokes its outstanding tokens and role changes apply immediately.
    """

    def __init__(
        self, accounts: Iterable[AdminAccount], *, signing_key: str, token_ttl: timedelta
    ) -> None:
        if not signing_key:
            raise RuntimeError("JWT_SIGNING_KEY is not configured")
        self._accounts = {account.email.lower(): account for account in accounts}
        self._signing_key = signing_key
        self.token_ttl = token_ttl

    @classmethod
    def from_file(cls, path: Path, signing_key: str, token_ttl_hours: int) -> "AuthService":
        return cls(
            load_accounts(path),
            signing_key=signing_key,
            token_ttl=timedelta(hours=token_ttl_hours),
        )

    def login(self, email: str, password: str) -> IssuedToken:
        key = email.strip().lower()
        account = self._accounts.get(key)
        if account is None or account.password_hash != hash_password(password):
            logger.warning("auth.login.rejected", email=key)
            raise InvalidCredentialsError("Invalid credentials")
        if not account.is_active:
            logger.warning("auth.login.deactivated", email=key)
            raise AccountDisabledError("Account is deactivated. Contact super admin.")

        now = datetime.now(tz=timezone.utc)
        account.last_login = now
        token = jwt.encode(
            {
                "sub": account.email,
                "role": str(account.role),
                "iat": int(now.timestamp()),
                "exp": int((now + self.token_ttl).timestamp()),
            },
            self._signing_key,
            algorithm=TOKEN_ALGORITHM,
        )
        logger.info("auth.login.accepted", email=account.email, role=str(account.role))
        return IssuedToken(
            access_token=token,
            expires_in=int(self.token_ttl.total_seconds()),
            principal=account.principal(),
        )

    def resolve(self, token: str) -> AdminPrincipal:
        try:
            claims = jwt.decode(
                token,
                self._signing_key,
                algorithms=[TOKEN_ALGORITHM],
                options={"require": ["exp", "iat", "sub"]},
            )
        except ExpiredSignatureError as exc:
            raise TokenExpiredError("Token expired") from exc
        except PyJWTInvalidTokenError as exc:
            raise InvalidTokenError("Invalid token") from exc
        account = self._accounts.get(str(claims["sub"]).lower())
        if account is None or not account.is_active:
            raise InvalidTokenError("Account is unknown or deactivated")
        return account.principal()


def load_accounts(path: Path) -> list[AdminAccount]:
    """Read the ``admins`` array of the credentials file."""
    if not path.exists():
        raise FileNotFoundError(f"Admin credentials file not found: {path}")
    raw = json.loads(path.read_text(encoding="utf-8"))
    entries = raw.get("admins") if isinstance(raw, dict) else None
    if not isinstance(entries, list) or not entries:
        raise ValueError("Admin credentials file must contain a non-empty 'admins' array")

    accounts: list[AdminAccount] = []
    seen: set[str] = set()
    for entry in entries:
        email = str(entry.get("email") or "").strip().lower()
        password_hash = entry.get("password_hash")
        if not email or not password_hash:
            raise ValueError("Each admin entry needs email and password_hash")
        if email in seen:
            raise ValueError(f"Duplicate admin email '{email}'")
        seen.add(email)
        accounts.append(
            AdminAccount(
                email=email,
                name=entry.get("name") or email.partition("@")[0],
                password_hash=password_hash,
                role=AdminRole(entry.get("role", AdminRole.EDITOR)),
                is_active=bool(entry.get("is_active", True)),
            )
        )
    return accounts


__all__ = [
    "AccountDisabledError",
    "AdminAccount",
    "AdminPrincipal",
    "AdminRole",
    "AuthError",
    "AuthService",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "IssuedToken",
    "TokenExpiredError",
    "hash_password",
    "load_accounts",
]
