"""Unit tests for the entity use cases, run against FakeUnitOfWork."""

from __future__ import annotations

import pytest

from entity_query.domain.common.deadline import Deadline
from entity_query.domain.common.errors import (
    ConflictError,
    NotFoundError,
    QueryTimeoutError,
    TypeMismatchError,
    UnknownFieldError,
    UnregisteredEntityError,
)
from entity_query.domain.common.query import FilterClause, QueryRequest, SortRequest
from entity_query.use_cases.entities import (
    CreateEntityCommand,
    CreateEntityUseCase,
    DeleteEntityCommand,
    GetEntityQuery,
    GetEntityUseCase,
    HardDeleteEntityUseCase,
    ListEntitiesQuery,
    ListEntitiesUseCase,
    SoftDeleteEntityUseCase,
    UpdateEntityCommand,
    UpdateEntityUseCase,
)
from tests.unit.entity_fakes import FakeUnitOfWork, make_registry, seed


class _ExplodingUoW(FakeUnitOfWork):
    """Fails the test if a use case touches the store."""

    def __enter__(self):
        raise AssertionError("store must not be opened")


@pytest.fixture
def uow():
    uow = FakeUnitOfWork()
    seed(
        uow,
        "skill",
        {"id": "s1", "name": "Python", "jobCategoryId": "cat1", "createdAt": "2024-01-01T00:00:00.000000+00:00"},
        {"id": "s2", "name": "Go", "jobCategoryId": "cat2", "createdAt": "2024-01-02T00:00:00Z"},
        {"id": "s3", "name": "Pascal", "jobCategoryId": "cat1", "createdAt": "2024-01-03"},
        {"id": "s4", "name": "Perl", "jobCategoryId": "cat1", "isActive": False},
    )
    return uow


def _list(uow, **request):
    use_case = ListEntitiesUseCase(make_registry())
    return use_case.execute(uow, ListEntitiesQuery(entity="skill", request=QueryRequest(**request))).page


class TestListEntities:
    def test_baseline_hides_inactive(self, uow):
        page = _list(uow)
        assert [d["id"] for d in page.data] == ["s3", "s2", "s1"]
        assert page.total == 3

    def test_filters_and_sort(self, uow):
        page = _list(
            uow,
            filters=(FilterClause("jobCategoryId", "equals", "cat1"),),
            sort=SortRequest("name", "asc"),
        )
        assert [d["name"] for d in page.data] == ["Pascal", "Python"]

    def test_client_cannot_see_soft_deleted(self, uow):
        page = _list(uow, filters=(FilterClause("isActive", "equals", False),))
        assert page.total == 0

    def test_pagination_metadata(self, uow):
        page = _list(uow, page=2, limit=2)
        assert (page.page, page.limit, page.total, page.total_pages) == (2, 2, 3, 2)
        assert [d["id"] for d in page.data] == ["s1"]

    @pytest.mark.parametrize("clause,error", [
        (FilterClause("ghost", "equals", "x"), UnknownFieldError),
        (FilterClause("createdAt", "gte", "not-a-date"), TypeMismatchError),
    ])
    def test_validation_happens_before_store_access(self, clause, error):
        use_case = ListEntitiesUseCase(make_registry())
        with pytest.raises(error):
            use_case.execute(
                _ExplodingUoW(),
                ListEntitiesQuery(entity="skill", request=QueryRequest(filters=(clause,))),
            )

    def test_unregistered_entity(self, uow):
        with pytest.raises(UnregisteredEntityError):
            ListEntitiesUseCase(make_registry()).execute(uow, ListEntitiesQuery(entity="spaceship"))

    def test_expired_deadline_is_passed_through(self, uow):
        query = ListEntitiesQuery(entity="skill", deadline=Deadline(expires_at=0.0, budget=1.0))
        with pytest.raises(QueryTimeoutError):
            ListEntitiesUseCase(make_registry()).execute(uow, query)

    def test_timeout_setting_starts_a_deadline(self, uow):
        with pytest.raises(QueryTimeoutError):
            ListEntitiesUseCase(make_registry(), timeout_seconds=0.0).execute(
                uow, ListEntitiesQuery(entity="skill")
            )


class TestGetEntity:
    def test_soft_deleted_document_reads_as_missing(self, uow):
        with pytest.raises(NotFoundError) as exc_info:
            GetEntityUseCase().execute(uow, GetEntityQuery(entity="skill", entity_id="s4"))
        assert exc_info.value.identifier == "s4"

    def test_include_deleted_returns_soft_deleted_document(self, uow):
        query = GetEntityQuery(entity="skill", entity_id="s4", include_deleted=True)
        assert GetEntityUseCase().execute(uow, query).document["isActive"] is False

    def test_soft_delete_then_get_is_not_found(self, uow):
        SoftDeleteEntityUseCase().execute(uow, DeleteEntityCommand(entity="skill", entity_id="s1"))
        with pytest.raises(NotFoundError):
            GetEntityUseCase().execute(uow, GetEntityQuery(entity="skill", entity_id="s1"))

    def test_entity_without_flag_is_always_returned(self, uow):
        seed(uow, "education", {"id": "e1", "schoolName": "MIT"})
        result = GetEntityUseCase().execute(uow, GetEntityQuery(entity="education", entity_id="e1"))
        assert result.document["schoolName"] == "MIT"

    def test_missing(self, uow):
        with pytest.raises(NotFoundError) as exc_info:
            GetEntityUseCase().execute(uow, GetEntityQuery(entity="skill", entity_id="nope"))
        assert exc_info.value.identifier == "nope"


class TestWrites:
    def test_create_commits(self, uow):
        result = CreateEntityUseCase().execute(
            uow, CreateEntityCommand(entity="skill", data={"name": "Rust"})
        )
        assert result.document["isActive"] is True
        assert uow.committed == 1

    def test_create_conflict_does_not_commit(self, uow):
        with pytest.raises(ConflictError):
            CreateEntityUseCase().execute(uow, CreateEntityCommand(entity="skill", data={"name": "Go"}))
        assert uow.committed == 0
        assert uow.rolled_back == 1

    def test_created_dates_are_filterable_as_sent(self, uow):
        for name, created in (("Rust", "2024-03-01T10:00:00Z"), ("Zig", "2024-03-01")):
            data = {"name": name, "createdAt": created}
            CreateEntityUseCase().execute(uow, CreateEntityCommand(entity="skill", data=data))

        same = _list(uow, filters=(FilterClause("createdAt", "equals", "2024-03-01T10:00:00Z"),))
        from_day = _list(uow, filters=(FilterClause("createdAt", "gte", "2024-03-01"),))
        assert [d["name"] for d in same.data] == ["Rust"]
        assert from_day.total == 2

    def test_create_rejects_non_iso_date(self, uow):
        with pytest.raises(TypeMismatchError):
            CreateEntityUseCase().execute(
                uow, CreateEntityCommand(entity="skill", data={"name": "Rust", "createdAt": "next week"})
            )
        assert uow.committed == 0

    def test_update(self, uow):
        result = UpdateEntityUseCase().execute(
            uow, UpdateEntityCommand(entity="skill", entity_id="s2", data={"name": "Golang"})
        )
        assert result.document["name"] == "Golang"
        assert uow.committed == 1

    def test_update_missing(self, uow):
        with pytest.raises(NotFoundError):
            UpdateEntityUseCase().execute(uow, UpdateEntityCommand(entity="skill", entity_id="x", data={}))

    def test_soft_delete_hides_from_list(self, uow):
        SoftDeleteEntityUseCase().execute(uow, DeleteEntityCommand(entity="skill", entity_id="s1"))
        assert uow.committed == 1
        assert [d["id"] for d in _list(uow).data] == ["s3", "s2"]

    def test_hard_delete(self, uow):
        HardDeleteEntityUseCase().execute(uow, DeleteEntityCommand(entity="skill", entity_id="s4"))
        with pytest.raises(NotFoundError):
            GetEntityUseCase().execute(uow, GetEntityQuery(entity="skill", entity_id="s4", include_deleted=True))

    @pytest.mark.parametrize("use_case", [SoftDeleteEntityUseCase, HardDeleteEntityUseCase])
    def test_delete_missing(self, uow, use_case):
        with pytest.raises(NotFoundError):
            use_case().execute(uow, DeleteEntityCommand(entity="skill", entity_id="ghost"))
        assert uow.committed == 0
