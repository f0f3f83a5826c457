"""Unit tests for the generic entity endpoints (list/get/create/update/delete)."""

from __future__ import annotations

import json

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from entity_query.api.v1.entities import router as entities_router
from entity_query.use_cases.entities import ListEntitiesUseCase
from entity_query.wiring.bootstrap import (
    get_collections,
    get_list_entities_use_case,
    get_registry,
    get_uow,
)
from tests.unit.entity_fakes import (
    EDUCATION_COLLECTION,
    SKILL_COLLECTION,
    FakeUnitOfWork,
    make_registry,
    seed,
)


app = FastAPI()
app.include_router(entities_router, prefix="/api/v1/entities")

BASE = "/api/v1/entities"


@pytest.fixture
def uow():
    uow = FakeUnitOfWork()
    seed(
        uow,
        "skill",
        {"id": "s1", "name": "Python", "jobCategoryId": "cat1", "createdAt": "2024-01-01T00:00:00.000000+00:00"},
        {"id": "s2", "name": "Go", "jobCategoryId": "cat2", "createdAt": "2024-01-02T00:00:00.000000+00:00"},
        {"id": "s3", "name": "pytest", "jobCategoryId": "cat1", "createdAt": "2024-01-03T00:00:00.000000+00:00"},
    )
    seed(uow, "education", {"id": "e1", "schoolName": "MIT", "gpa": 3.9})
    return uow


@pytest.fixture(autouse=True)
def overrides(uow):
    registry = make_registry()
    app.dependency_overrides[get_uow] = lambda: uow
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_list_entities_use_case] = lambda: ListEntitiesUseCase(registry)
    app.dependency_overrides[get_collections] = lambda: {
        "skill": SKILL_COLLECTION,
        "education": EDUCATION_COLLECTION,
    }
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
class TestListEndpoint:
    async def test_default_page(self, client):
        resp = await client.get(f"{BASE}/skill")
        assert resp.status_code == 200
        body = resp.json()
        assert [d["id"] for d in body["data"]] == ["s3", "s2", "s1"]
        assert (body["total"], body["page"], body["limit"], body["totalPages"]) == (3, 1, 20, 1)

    async def test_filters_sort_and_limit(self, client):
        resp = await client.get(f"{BASE}/skill", params={
            "filters": json.dumps([{"field": "name", "operator": "contains", "value": "PY"}]),
            "sort": json.dumps({"field": "name", "direction": "asc"}),
            "limit": "1",
        })
        assert resp.status_code == 200
        body = resp.json()
        assert [d["name"] for d in body["data"]] == ["Python"]
        assert (body["total"], body["totalPages"]) == (2, 2)

    async def test_table_widget_shapes(self, client):
        resp = await client.get(f"{BASE}/skill", params={
            "filters": json.dumps([{"id": "jobCategoryId", "value": "cat1"}]),
            "sort": json.dumps([{"id": "name", "desc": True}, {"id": "createdAt", "desc": False}]),
        })
        assert resp.status_code == 200
        assert [d["id"] for d in resp.json()["data"]] == ["s3", "s1"]

    async def test_limit_is_clamped(self, client):
        resp = await client.get(f"{BASE}/skill", params={"limit": "5000"})
        assert resp.json()["limit"] == 100

    @pytest.mark.parametrize("params", [
        {"filters": "not json"},
        {"filters": json.dumps({"field": "name"})},
        {"sort": "{"},
        {"filters": json.dumps([{"field": "ghost", "operator": "equals", "value": 1}])},
        {"filters": json.dumps([{"field": "jobCategoryId", "operator": "contains", "value": "c"}])},
        {"filters": json.dumps([{"field": "createdAt", "operator": "gte", "value": "yesterday-ish"}])},
        {"filters": json.dumps([{"field": "name", "value": "x"}] * 51)},
        {"filters": json.dumps([{"field": "name", "value": "x" * 1001}])},
        {"page": "-1"},
        {"limit": "ten"},
    ])
    async def test_bad_requests(self, client, params):
        resp = await client.get(f"{BASE}/skill", params=params)
        assert resp.status_code == 400
        assert resp.json()["detail"]

    async def test_unknown_entity(self, client):
        resp = await client.get(f"{BASE}/spaceship")
        assert resp.status_code == 404

    async def test_timeout_maps_to_504(self, client):
        app.dependency_overrides[get_list_entities_use_case] = lambda: ListEntitiesUseCase(
            make_registry(), timeout_seconds=0.0
        )
        resp = await client.get(f"{BASE}/skill")
        assert resp.status_code == 504


@pytest.mark.asyncio
class TestDocumentEndpoints:
    async def test_get(self, client):
        resp = await client.get(f"{BASE}/skill/s2")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Go"

    async def test_get_missing(self, client):
        resp = await client.get(f"{BASE}/skill/nope")
        assert resp.status_code == 404

    async def test_create(self, client, uow):
        resp = await client.post(f"{BASE}/skill", json={"name": "Rust", "jobCategoryId": "cat3"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["id"]
        assert body["isActive"] is True
        assert uow.committed == 1

    async def test_create_normalises_dates(self, client):
        body = {"schoolName": "ETH", "startDate": "2024-03-01T10:00:00Z"}
        resp = await client.post(f"{BASE}/education", json=body)
        assert resp.status_code == 201
        assert resp.json()["startDate"] == "2024-03-01T10:00:00.000000+00:00"

        await client.post(f"{BASE}/skill", json={"name": "Rust", "createdAt": "2024-03-01"})
        resp = await client.get(f"{BASE}/skill", params={
            "filters": json.dumps([{"field": "createdAt", "operator": "gte", "value": "2024-03-01"}]),
        })
        assert [d["name"] for d in resp.json()["data"]] == ["Rust"]

    @pytest.mark.parametrize("method,path", [("post", "/education"), ("patch", "/education/e1")])
    async def test_non_iso_date_is_rejected(self, client, uow, method, path):
        resp = await client.request(method.upper(), f"{BASE}{path}", json={"startDate": "03/01/2024"})
        assert resp.status_code == 400
        assert "startDate" in resp.json()["detail"]
        assert uow.committed == 0

    async def test_create_duplicate(self, client):
        resp = await client.post(f"{BASE}/skill", json={"name": "Go"})
        assert resp.status_code == 409

    async def test_create_requires_object_body(self, client):
        resp = await client.post(f"{BASE}/skill", json=["not", "an", "object"])
        assert resp.status_code == 422

    async def test_update(self, client):
        resp = await client.patch(f"{BASE}/skill/s1", json={"name": "CPython"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "CPython"
        assert resp.json()["id"] == "s1"

    async def test_update_missing(self, client):
        resp = await client.patch(f"{BASE}/skill/nope", json={"name": "x"})
        assert resp.status_code == 404

    async def test_delete_is_soft_when_collection_has_flag(self, client):
        resp = await client.delete(f"{BASE}/skill/s1")
        assert resp.status_code == 204

        assert (await client.get(f"{BASE}/skill/s1")).status_code == 404
        kept = await client.get(f"{BASE}/skill/s1", params={"includeDeleted": "true"})
        assert kept.status_code == 200
        assert kept.json()["isActive"] is False
        listed = (await client.get(f"{BASE}/skill")).json()
        assert "s1" not in [d["id"] for d in listed["data"]]

    async def test_delete_is_hard_without_flag(self, client):
        assert (await client.delete(f"{BASE}/education/e1")).status_code == 204
        assert (await client.get(f"{BASE}/education/e1")).status_code == 404

    async def test_permanent_delete(self, client):
        assert (await client.delete(f"{BASE}/skill/s2/permanent")).status_code == 204
        assert (await client.get(f"{BASE}/skill/s2")).status_code == 404

    async def test_delete_missing(self, client):
        assert (await client.delete(f"{BASE}/skill/ghost")).status_code == 404
        assert (await client.delete(f"{BASE}/skill/ghost/permanent")).status_code == 404
