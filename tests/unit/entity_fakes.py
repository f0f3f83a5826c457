"""Shared test fakes and config helpers for the entity context.

``FakeUnitOfWork`` hands out InMemoryDocumentRepository instances so use
case and endpoint tests exercise real predicate evaluation without a
database.  ``skill_declaration()`` is the canonical Skill FilterConfig
used across the domain tests.
"""

from __future__ import annotations

from typing import Any, Mapping

from entity_query.domain.common.errors import UnregisteredEntityError
from entity_query.domain.common.ports import CollectionSpec
from entity_query.domain.common.query import FilterConfig
from entity_query.domain.common.uow import UnitOfWork
from entity_query.domain.filtering.registry import FilterConfigRegistry, build_filter_config
from entity_query.infra.memory.document_repo import InMemoryDocumentRepository


# ---------------------------------------------------------------------------
# Config helpers
# ---------------------------------------------------------------------------


def skill_declaration(**overrides: Any) -> dict[str, Any]:
    """Skill declaration with name / jobCategoryId / isActive / timestamps."""
    declaration: dict[str, Any] = {
        "allowedFields": {
            "name": {"type": "string"},
            "jobCategoryId": {"type": "string", "operators": ["equals"]},
            "isActive": {"type": "boolean", "operators": ["equals"]},
            "level": {"type": "number"},
            "notes": {"type": "string", "sortable": False},
            "createdAt": {"type": "date"},
            "updatedAt": {"type": "date"},
        },
        "defaultFilter": {"isActive": True},
        "defaultSort": {"createdAt": -1},
    }
    declaration.update(overrides)
    return declaration


def make_skill_config(**overrides: Any) -> FilterConfig:
    return build_filter_config("skill", skill_declaration(**overrides))


SKILL_COLLECTION = CollectionSpec(
    name="skills",
    unique_fields=("name",),
    soft_delete_field="isActive",
)

EDUCATION_COLLECTION = CollectionSpec(name="educations", date_fields=("startDate", "endDate"))


def make_registry(**declarations: Mapping[str, Any]) -> FilterConfigRegistry:
    registry = FilterConfigRegistry()
    registry.register_declaration("skill", skill_declaration())
    registry.register_declaration(
        "education",
        {
            "allowedFields": {
                "schoolName": {"type": "string"},
                "gpa": {"type": "number"},
                "startDate": {"type": "date"},
                "createdAt": {"type": "date"},
            },
            "defaultSort": {"createdAt": -1},
        },
    )
    for entity, declaration in declarations.items():
        registry.register_declaration(entity, declaration)
    return registry.seal()


# ---------------------------------------------------------------------------
# Fake unit of work
# ---------------------------------------------------------------------------


class FakeUnitOfWork(UnitOfWork):
    """UoW over in-memory repositories; counts commits and rollbacks."""

    def __init__(self, collections: Mapping[str, CollectionSpec] | None = None) -> None:
        collections = collections or {"skill": SKILL_COLLECTION, "education": EDUCATION_COLLECTION}
        self.repositories = {
            entity: InMemoryDocumentRepository(spec, entity=entity)
            for entity, spec in collections.items()
        }
        self.committed = 0
        self.rolled_back = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.rollback()

    def repository(self, entity: str) -> InMemoryDocumentRepository:
        try:
            return self.repositories[entity]
        except KeyError:
            raise UnregisteredEntityError(entity) from None

    def commit(self):
        self.committed += 1

    def rollback(self):
        self.rolled_back += 1


def seed(uow: FakeUnitOfWork, entity: str, *documents: dict[str, Any]) -> list[dict[str, Any]]:
    """Insert documents directly through the entity's repository."""
    repo = uow.repository(entity)
    return [repo.create(doc) for doc in documents]
