"""Dependency wiring helpers."""

from fastapi import FastAPI

from .admin.admin_api import build_admin_routers
from .admin.admin_service import AdminContentService
from .admin.upload_validation import UploadValidator
from .auth.auth_api import router as auth_router
from .auth.auth_service import AuthService
from .config import AppConfig
from .content.content_kinds import KINDS
from .content.content_repository import ContentRepository
from .media.media_binder import EntityMediaBinder
from .media.media_store import ImageKitStore
from .media.media_urls import MediaUrlBuilder
from .media.orphan_repository import OrphanRepository
from .public.public_content_router import build_public_content_router
from .public.public_content_service import PublicContentService


def include_routers(app: FastAPI, config: AppConfig) -> None:
    """Mount module routers and attach services."""
    content_repo = ContentRepository(config.session_factory)
    orphan_repo = OrphanRepository(config.session_factory)
    store = ImageKitStore(config.media_store)
    binder = EntityMediaBinder(store, max_concurrency=config.media_store.max_concurrency)
    admin_service = AdminContentService(content_repo, binder, orphan_repo)
    validator = UploadValidator(config.upload_limits)
    auth_service = AuthService.from_file(
        path=config.admin_credentials_path,
        signing_key=config.jwt_signing_key,
        token_ttl_hours=config.admin_jwt_ttl_hours,
    )
    public_service = PublicContentService(
        repository=content_repo,
        urls=MediaUrlBuilder(config.media_store.url_endpoint or None),
    )

    app.state.config = config
    app.state.content_repo = content_repo
    app.state.orphan_repo = orphan_repo
    app.state.media_store = store
    app.state.admin_content_service = admin_service
    app.state.upload_validator = validator
    app.state.auth_service = auth_service
    app.state.public_content_service = public_service

    kinds = list(KINDS.values())
    app.include_router(auth_router)
    for router in build_admin_routers(kinds):
        app.include_router(router)
    app.include_router(build_public_content_router(public_service, kinds))
