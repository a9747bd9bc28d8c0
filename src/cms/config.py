"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db


@dataclass(slots=True)
class MediaStoreConfig:
    """Connection settings for the remote media store (ImageKit)."""

    public_key: str
    private_key: str
    url_endpoint: str
    upload_endpoint: str = "https://upload.imagekit.io/api/v1/files/upload"
    api_endpoint: str = "https://api.imagekit.io/v1"
    timeout_seconds: float = 30.0
    max_concurrency: int = 10
    tags: Sequence[str] = ("sasi",)


@dataclass(slots=True)
class UploadLimits:
    max_file_bytes: int = 50 * 1024 * 1024
    max_files: int = 10
    image_content_types: Sequence[str] = (
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/gif",
    )
    image_extensions: Sequence[str] = ("jpeg", "jpg", "png", "webp", "gif")
    video_content_types: Sequence[str] = (
        "video/mp4",
        "video/x-msvideo",
        "video/avi",
        "video/quicktime",
        "video/x-ms-wmv",
        "video/webm",
    )
    video_extensions: Sequence[str] = ("mp4", "avi", "mov", "wmv", "webm")
    field_kinds: Mapping[str, str] = field(
        default_factory=lambda: {
            "poster": "image",
            "gallery": "image",
            "image": "image",
            "profile_image": "image",
            "secondary_image": "image",
            "background_image": "image",
            "hero_image": "image",
            "video": "video",
        }
    )


@dataclass(slots=True)
class AppConfig:
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    media_store: MediaStoreConfig
    upload_limits: UploadLimits
    admin_credentials_path: Path
    jwt_signing_key: str
    admin_jwt_ttl_hours: int


def load_media_store_config() -> MediaStoreConfig:
    """Read ImageKit settings from environment (called once at startup)."""
    return MediaStoreConfig(
        public_key=os.getenv("IMAGEKIT_PUBLIC_KEY", ""),
        private_key=os.getenv("IMAGEKIT_PRIVATE_KEY", ""),
        url_endpoint=os.getenv("IMAGEKIT_URL_ENDPOINT", "").rstrip("/"),
        timeout_seconds=float(os.getenv("IMAGEKIT_TIMEOUT_SECONDS", 30)),
        max_concurrency=int(os.getenv("MEDIA_MAX_CONCURRENCY", 10)),
    )


def load_config() -> AppConfig:
    """Load configuration from environment (SQLite by default)."""
    database_url = os.getenv("DATABASE_URL", "sqlite:///content.db")
    engine = create_engine(database_url, future=True)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)

    upload_limits = UploadLimits(
        max_file_bytes=int(os.getenv("UPLOAD_MAX_FILE_BYTES", 50 * 1024 * 1024)),
        max_files=int(os.getenv("UPLOAD_MAX_FILES", 10)),
    )

    init_db(engine)

    return AppConfig(
        database_url=database_url,
        engine=engine,
        session_factory=session_factory,
        media_store=load_media_store_config(),
        upload_limits=upload_limits,
        admin_credentials_path=Path(
            os.getenv("ADMIN_CREDENTIALS_PATH", "secrets/runtime_credentials.json")
        ),
        jwt_signing_key=os.getenv("JWT_SIGNING_KEY", ""),
        admin_jwt_ttl_hours=int(os.getenv("ADMIN_JWT_TTL_HOURS", 24)),
    )
