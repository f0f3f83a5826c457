"""Entity use cases: list, get, create, update, soft and hard delete."""

from entity_query.use_cases.entities.create_entity import (
    CreateEntityCommand,
    CreateEntityResult,
    CreateEntityUseCase,
)
from entity_query.use_cases.entities.delete_entity import (
    DeleteEntityCommand,
    HardDeleteEntityUseCase,
    SoftDeleteEntityUseCase,
)
from entity_query.use_cases.entities.get_entity import (
    GetEntityQuery,
    GetEntityResult,
    GetEntityUseCase,
)
from entity_query.use_cases.entities.list_entities import (
    ListEntitiesQuery,
    ListEntitiesResult,
    ListEntitiesUseCase,
)
from entity_query.use_cases.entities.update_entity import (
    UpdateEntityCommand,
    UpdateEntityResult,
    UpdateEntityUseCase,
)

__all__ = [
    "CreateEntityCommand",
    "CreateEntityResult",
    "CreateEntityUseCase",
    "DeleteEntityCommand",
    "HardDeleteEntityUseCase",
    "SoftDeleteEntityUseCase",
    "GetEntityQuery",
    "GetEntityResult",
    "GetEntityUseCase",
    "ListEntitiesQuery",
    "ListEntitiesResult",
    "ListEntitiesUseCase",
    "UpdateEntityCommand",
    "UpdateEntityResult",
    "UpdateEntityUseCase",
]
