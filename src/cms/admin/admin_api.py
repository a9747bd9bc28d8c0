"""Admin content routes, one router per content kind."""

from __future__ import annotations

import json
from typing import Any, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from starlette.datastructures import UploadFile

from ..auth.auth_dependencies import current_actor, require_admin_user
from ..content.content_kinds import HISTORY_PAGE, EntityKind
from ..content.content_repository import ContentEntity
from ..exceptions import AppError, NotFoundError, ValidationError
from ..media.media_errors import BindError
from ..media.media_models import IncomingFile, slot_value_to_document
from .admin_errors import PayloadTooLargeError, UnsupportedMediaError, UploadRejectedError
from .admin_service import AdminContentService, ContentWriteResult
from .upload_validation import UploadValidator

TIMELINE_IMAGE_FIELD = "image"


def get_admin_service(request: Request) -> AdminContentService:
    try:
        return request.app.state.admin_content_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("AdminContentService is not configured") from exc


def get_upload_validator(request: Request) -> UploadValidator:
    try:
        return request.app.state.upload_validator  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("UploadValidator is not configured") from exc


def entity_payload(entity: ContentEntity) -> dict[str, Any]:
    return {
        "id": entity.id,
        "kind": entity.kind.name,
        "status": str(entity.status),
        "fields": entity.fields.model_dump(mode="json"),
        "media": {name: slot_value_to_document(value) for name, value in entity.media.items()},
        "created_by": entity.created_by,
        "updated_by": entity.updated_by,
        "created_at": entity.created_at.isoformat() if entity.created_at else None,
        "updated_at": entity.updated_at.isoformat() if entity.updated_at else None,
    }


def _write_payload(result: ContentWriteResult) -> dict[str, Any]:
    return {
        "status": "ok",
        "item": entity_payload(result.entity),
        "changed_slots": result.changed_slots,
        "warnings": result.warnings,
    }


def _raise_http(exc: AppError) -> NoReturn:
    if isinstance(exc, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"status": "error", "failure_reason": "validation_failed", "errors": exc.errors},
        ) from exc
    if isinstance(exc, NotFoundError):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"status": "error", "failure_reason": "not_found", "details": str(exc)},
        ) from exc
    if isinstance(exc, UnsupportedMediaError):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail={"status": "error", "failure_reason": "unsupported_media_type", "details": str(exc)},
        ) from exc
    if isinstance(exc, PayloadTooLargeError):
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail={"status": "error", "failure_reason": "payload_too_large", "details": str(exc)},
        ) from exc
    if isinstance(exc, (UploadRejectedError, BindError)):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"status": "error", "failure_reason": "invalid_request", "details": str(exc)},
        ) from exc
    raise exc


async def read_submission(
    request: Request, validator: UploadValidator
) -> tuple[dict[str, Any], dict[str, list[IncomingFile]]]:
    """Split a request into field data and validated uploads.

    Multipart forms carry fields either as a JSON ``payload`` part or as plain
    form parts; JSON bodies carry fields only.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError({"__root__": "body is not valid JSON"}) from None
        if not isinstance(body, dict):
            raise ValidationError({"__root__": "body must be a JSON object"})
        return body, {}

    form = await request.form()
    data: dict[str, Any] = {}
    uploads: list[tuple[str, UploadFile]] = []
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if value.filename:
                uploads.append((key, value))
            continue
        if key == "payload":
            try:
                decoded = json.loads(value)
            except ValueError:
                raise ValidationError({"payload": "not valid JSON"}) from None
            if not isinstance(decoded, dict):
                raise ValidationError({"payload": "must be a JSON object"})
            data.update(decoded)
        else:
            data[key] = value
    return data, await validator.collect(uploads)


def build_admin_content_router(kind: EntityKind) -> APIRouter:
    """CRUD routes for a multi-instance kind under ``/api/admin/<route>``."""
    router = APIRouter(
        prefix=f"/api/admin/{kind.route}",
        tags=[f"admin-{kind.route}"],
        dependencies=[Depends(require_admin_user)],
    )

    @router.get("")
    def list_items(
        category: str | None = None,
        status_filter: str | None = Query(None, alias="status"),
        q: str | None = None,
        featured: bool = False,
        limit: int | None = Query(None, ge=1, le=500),
        service: AdminContentService = Depends(get_admin_service),
    ) -> dict[str, Any]:
        items = service.list_entities(
            kind,
            category=category,
            status=status_filter,
            search=q,
            featured_only=featured,
            limit=limit,
        )
        return {"items": [entity_payload(item) for item in items], "total": len(items)}

    @router.get("/{entity_id}")
    def get_item(
        entity_id: str, service: AdminContentService = Depends(get_admin_service)
    ) -> dict[str, Any]:
        try:
            return entity_payload(service.get(kind, entity_id))
        except AppError as exc:
            _raise_http(exc)

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_item(
        request: Request,
        actor: str = Depends(current_actor),
        service: AdminContentService = Depends(get_admin_service),
        validator: UploadValidator = Depends(get_upload_validator),
    ) -> dict[str, Any]:
        try:
            data, uploads = await read_submission(request, validator)
            result = await service.create(kind, data, uploads, actor=actor)
        except AppError as exc:
            _raise_http(exc)
        return _write_payload(result)

    @router.put("/{entity_id}")
    async def update_item(
        entity_id: str,
        request: Request,
        actor: str = Depends(current_actor),
        service: AdminContentService = Depends(get_admin_service),
        validator: UploadValidator = Depends(get_upload_validator),
    ) -> dict[str, Any]:
        try:
            data, uploads = await read_submission(request, validator)
            result = await service.update(kind, entity_id, data, uploads, actor=actor)
        except AppError as exc:
            _raise_http(exc)
        return _write_payload(result)

    @router.delete("/{entity_id}")
    async def delete_item(
        entity_id: str,
        actor: str = Depends(current_actor),
        service: AdminContentService = Depends(get_admin_service),
    ) -> dict[str, Any]:
        try:
            result = await service.delete(kind, entity_id, actor=actor)
        except AppError as exc:
            _raise_http(exc)
        return {
            "status": "ok",
            "id": result.entity_id,
            "deleted_media": result.deleted_media,
            "warnings": result.warnings,
        }

    @router.delete("/{entity_id}/media/{slot_name}")
    async def detach_media(
        entity_id: str,
        slot_name: str,
        reference_id: list[str] | None = Query(None),
        actor: str = Depends(current_actor),
        service: AdminContentService = Depends(get_admin_service),
    ) -> dict[str, Any]:
        try:
            result = await service.detach_media(
                kind, entity_id, slot_name, reference_id, actor=actor
            )
        except AppError as exc:
            _raise_http(exc)
        return _write_payload(result)

    if kind.supports_featured:

        @router.patch("/{entity_id}/featured")
        def toggle_featured(
            entity_id: str,
            actor: str = Depends(current_actor),
            service: AdminContentService = Depends(get_admin_service),
        ) -> dict[str, Any]:
            try:
                entity = service.toggle_featured(kind, entity_id, actor=actor)
            except AppError as exc:
                _raise_http(exc)
            return {"status": "ok", "item": entity_payload(entity)}

    return router


def build_admin_singleton_router(kind: EntityKind) -> APIRouter:
    """Routes for a singleton kind; the record is created on first access."""
    router = APIRouter(
        prefix=f"/api/admin/{kind.route}",
        tags=[f"admin-{kind.route}"],
        dependencies=[Depends(require_admin_user)],
    )

    @router.get("")
    def get_document(
        actor: str = Depends(current_actor),
        service: AdminContentService = Depends(get_admin_service),
    ) -> dict[str, Any]:
        return entity_payload(service.get_singleton(kind, actor=actor))

    @router.put("")
    async def update_document(
        request: Request,
        actor: str = Depends(current_actor),
        service: AdminContentService = Depends(get_admin_service),
        validator: UploadValidator = Depends(get_upload_validator),
    ) -> dict[str, Any]:
        try:
            data, uploads = await read_submission(request, validator)
            result = await service.update_singleton(kind, data, uploads, actor=actor)
        except AppError as exc:
            _raise_http(exc)
        return _write_payload(result)

    @router.delete("/media/{slot_name}")
    async def detach_media(
        slot_name: str,
        reference_id: list[str] | None = Query(None),
        actor: str = Depends(current_actor),
        service: AdminContentService = Depends(get_admin_service),
    ) -> dict[str, Any]:
        try:
            result = await service.detach_media(kind, None, slot_name, reference_id, actor=actor)
        except AppError as exc:
            _raise_http(exc)
        return _write_payload(result)

    if kind is HISTORY_PAGE:

        @router.post("/timeline/{entry_id}/image")
        async def upload_timeline_image(
            entry_id: str,
            request: Request,
            actor: str = Depends(current_actor),
            service: AdminContentService = Depends(get_admin_service),
            validator: UploadValidator = Depends(get_upload_validator),
        ) -> dict[str, Any]:
            try:
                _, uploads = await read_submission(request, validator)
                files = uploads.get(TIMELINE_IMAGE_FIELD) or []
                if len(files) != 1:
                    raise ValidationError({TIMELINE_IMAGE_FIELD: "exactly one image is required"})
                result = await service.bind_timeline_image(entry_id, files[0], actor=actor)
            except AppError as exc:
                _raise_http(exc)
            return _write_payload(result)

    return router


def build_admin_routers(kinds: list[EntityKind]) -> list[APIRouter]:
    return [
        build_admin_singleton_router(kind) if kind.singleton else build_admin_content_router(kind)
        for kind in kinds
    ]
