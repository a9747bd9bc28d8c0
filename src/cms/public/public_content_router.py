"""Public storefront endpoints."""

from fastapi import APIRouter, Query

from ..content.content_kinds import EntityKind
from .public_content_service import PublicContentService


def _add_collection_routes(router: APIRouter, kind: EntityKind, service: PublicContentService) -> None:
    @router.get(f"/{kind.route}", name=f"list_public_{kind.name}")
    def list_items(
        category: str | None = None,
        featured: bool = False,
        limit: int | None = Query(None, ge=1, le=200),
    ):
        return {
            "items": service.list_published(
                kind, category=category, featured_only=featured, limit=limit
            )
        }

    @router.get(f"/{kind.route}/{{entity_id}}", name=f"get_public_{kind.name}")
    def get_item(entity_id: str):
        return service.get_published(kind, entity_id)


def _add_singleton_route(router: APIRouter, kind: EntityKind, service: PublicContentService) -> None:
    @router.get(f"/{kind.route}", name=f"get_public_{kind.name}")
    def get_document():
        return service.get_singleton(kind)


def build_public_content_router(service: PublicContentService, kinds: list[EntityKind]) -> APIRouter:
    router = APIRouter(prefix="/public", tags=["public-content"])
    for kind in kinds:
        if kind.singleton:
            _add_singleton_route(router, kind, service)
        else:
            _add_collection_routes(router, kind, service)
    return router
