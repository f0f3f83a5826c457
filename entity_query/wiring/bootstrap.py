"""FastAPI dependency providers for the entity API.

This module alone picks concrete adapters: the SQL unit of work, the
sealed entity registry, and use cases configured from ``settings``.
Routers take these through ``Depends()`` and tests swap them with
``app.dependency_overrides``::

    @router.get("/{entity}")
    def list_entities(
        uow: SqlUnitOfWork = Depends(get_uow),
        use_case: ListEntitiesUseCase = Depends(get_list_entities_use_case),
    ):
        return use_case.execute(uow, query)
"""

from __future__ import annotations

from typing import Iterator, Mapping

from entity_query.config import settings
from entity_query.config.entities import COLLECTIONS, build_entity_registry
from entity_query.database import SessionLocal
from entity_query.domain.common.ports import CollectionSpec
from entity_query.domain.filtering import FilterConfigRegistry
from entity_query.infra.db.uow import SqlUnitOfWork
from entity_query.use_cases.entities import (
    CreateEntityUseCase,
    GetEntityUseCase,
    HardDeleteEntityUseCase,
    ListEntitiesUseCase,
    SoftDeleteEntityUseCase,
    UpdateEntityUseCase,
)


# ── Registry ─────────────────────────────────────────────────────────────

_registry: FilterConfigRegistry | None = None


def get_registry() -> FilterConfigRegistry:
    """Return the sealed FilterConfig registry, built on first use."""
    global _registry
    if _registry is None:
        _registry = build_entity_registry(
            default_limit=settings.default_page_limit,
            max_limit=settings.max_page_limit,
        )
    return _registry


# ── Unit of Work ─────────────────────────────────────────────────────────


def get_uow() -> Iterator[SqlUnitOfWork]:
    """One SqlUnitOfWork per request, over SessionLocal and every CollectionSpec."""
    uow = SqlUnitOfWork(SessionLocal, COLLECTIONS)
    yield uow


# ── Use Cases ────────────────────────────────────────────────────────────


def get_list_entities_use_case() -> ListEntitiesUseCase:
    return ListEntitiesUseCase(get_registry(), timeout_seconds=settings.query_timeout_seconds)


def get_get_entity_use_case() -> GetEntityUseCase:
    return GetEntityUseCase(timeout_seconds=settings.query_timeout_seconds)


def get_create_entity_use_case() -> CreateEntityUseCase:
    return CreateEntityUseCase(timeout_seconds=settings.query_timeout_seconds)


def get_update_entity_use_case() -> UpdateEntityUseCase:
    return UpdateEntityUseCase(timeout_seconds=settings.query_timeout_seconds)


def get_soft_delete_entity_use_case() -> SoftDeleteEntityUseCase:
    return SoftDeleteEntityUseCase(timeout_seconds=settings.query_timeout_seconds)


def get_hard_delete_entity_use_case() -> HardDeleteEntityUseCase:
    return HardDeleteEntityUseCase(timeout_seconds=settings.query_timeout_seconds)


# ── Collections ──────────────────────────────────────────────────────────


def get_collections() -> Mapping[str, CollectionSpec]:
    """Return the CollectionSpec of every entity."""
    return COLLECTIONS
