"""Tests for the shipped entity declarations and collection specs."""

from __future__ import annotations

import pytest

from entity_query.config.entities import (
    APPLICANT,
    COLLECTIONS,
    EDUCATION,
    FILTER_DECLARATIONS,
    SKILL,
    build_entity_registry,
)
from entity_query.domain.common.errors import FilterConfigError
from entity_query.domain.common.query import FieldType, Operator, SortOrder


@pytest.fixture(scope="module")
def registry():
    return build_entity_registry()


class TestEntityRegistry:
    def test_every_declaration_is_registered_and_sealed(self, registry):
        assert set(registry) == set(FILTER_DECLARATIONS)
        assert len(registry) == 8
        assert registry.sealed

    def test_every_entity_has_a_collection(self, registry):
        assert set(COLLECTIONS) == set(registry.entities())

    def test_sealed_registry_rejects_new_entities(self, registry):
        with pytest.raises(FilterConfigError):
            registry.register_declaration("extra", {"allowedFields": {"name": {"type": "string"}}})

    @pytest.mark.parametrize("entity", list(FILTER_DECLARATIONS))
    def test_default_sort_is_newest_first_then_id(self, registry, entity):
        sort = registry.get(entity).default_sort
        assert (sort[0].field, sort[0].order) == ("createdAt", SortOrder.DESC)
        assert sort[-1].field == "id"

    def test_soft_deletable_entities_hide_inactive_by_default(self, registry):
        for entity in (APPLICANT, SKILL):
            (clause,) = registry.get(entity).default_filter
            assert (clause.field, clause.operator, clause.value) == ("isActive", Operator.EQUALS, True)
        assert registry.get(EDUCATION).default_filter.is_empty()

    def test_limits_are_applied(self):
        registry = build_entity_registry(default_limit=10, max_limit=50)
        config = registry.get(SKILL)
        assert (config.default_limit, config.max_limit) == (10, 50)

    def test_declared_types(self, registry):
        education = registry.get(EDUCATION)
        assert education.field_spec("gpa").value_type is FieldType.NUMBER
        assert education.field_spec("startDate").value_type is FieldType.DATE
        assert education.field_spec("applicantId").allowed_operators == frozenset({Operator.EQUALS})


class TestCollections:
    @pytest.mark.parametrize("entity", [APPLICANT, SKILL])
    def test_soft_delete_flag(self, entity):
        spec = COLLECTIONS[entity]
        assert spec.supports_soft_delete
        assert spec.active_value is True

    def test_hard_delete_only(self):
        assert not COLLECTIONS[EDUCATION].supports_soft_delete

    def test_collection_names_are_unique(self):
        names = [spec.name for spec in COLLECTIONS.values()]
        assert len(names) == len(set(names))

    @pytest.mark.parametrize("entity", list(FILTER_DECLARATIONS))
    def test_date_fields_follow_declared_types(self, registry, entity):
        config = registry.get(entity)
        expected = {name for name, spec in config.fields.items() if spec.value_type is FieldType.DATE}
        assert set(COLLECTIONS[entity].stored_date_fields) == expected

    def test_is_deleted_reads_the_flag(self):
        spec = COLLECTIONS[SKILL]
        assert spec.is_deleted({"isActive": False})
        assert not spec.is_deleted({"isActive": True})
        assert not COLLECTIONS[EDUCATION].is_deleted({"isActive": False})
