"""HTTP tests for the public service routes and the admin routes."""
import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from catalog.database import get_store
from catalog.main import app


def _service_json(title: str, category: str = "Development", **extra) -> dict:
    return {
        "title": title,
        "short_description": f"{title} short",
        "full_description": f"{title} full",
        "timeline": "3 weeks",
        "category": category,
        "featured_image": "/img.jpg",
        **extra,
    }


async def _create(client: AsyncClient, title: str, category: str = "Development", **extra) -> dict:
    resp = await client.post("/api/v1/admin/services", json=_service_json(title, category, **extra))
    assert resp.status_code == 201, resp.text
    return resp.json()


class UnavailableStore:
    async def select_where(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))


# ---------------------------------------------------------------------------
# Public routes
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_services_empty(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/services")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "data": [], "error": None}


@pytest.mark.asyncio
async def test_list_services_envelope_and_collapse(async_client: AsyncClient):
    await _create(
        async_client,
        "Api Build",
        features=["A", "B"],
        pricing=[{"name": "Basic", "price": "$1", "description": "d", "features": ["X", "Y"]}],
    )
    resp = await async_client.get("/api/v1/services")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    service = body["data"][0]
    assert service["features"] == ["A", "B"]
    assert service["pricing"][0]["features"] == ["X", "Y"]
    assert service["gallery"] is None
    assert service["testimonials"] is None
    assert service["testimonial"] is None
    assert service["benefits"] == []


@pytest.mark.asyncio
async def test_list_services_by_category(async_client: AsyncClient):
    await _create(async_client, "Code", "Development")
    await _create(async_client, "Look", "Design")
    resp = await async_client.get("/api/v1/services", params={"category": "Design"})
    assert resp.status_code == 200
    assert [s["title"] for s in resp.json()["data"]] == ["Look"]


@pytest.mark.asyncio
async def test_list_services_invalid_category_is_422(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/services", params={"category": "Nope"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_service_names(async_client: AsyncClient):
    await _create(async_client, "Only One")
    resp = await async_client.get("/api/v1/services/names")
    assert resp.status_code == 200
    assert resp.json()["data"] == ["Only One"]


@pytest.mark.asyncio
async def test_get_service_by_slug(async_client: AsyncClient):
    created = await _create(async_client, "Detail Page")
    resp = await async_client.get(f"/api/v1/services/{created['slug']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == created["id"]


@pytest.mark.asyncio
async def test_get_service_not_found(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/services/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "data": None, "error": "Service not found"}


@pytest.mark.asyncio
async def test_storage_error_is_500_with_envelope(async_client: AsyncClient):
    app.dependency_overrides[get_store] = lambda: UnavailableStore()
    resp = await async_client.get("/api/v1/services")
    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["data"] == []
    assert "connection refused" in body["error"]

    resp = await async_client.get("/api/v1/services/anything")
    assert resp.status_code == 500
    assert resp.json()["data"] is None


# ---------------------------------------------------------------------------
# Admin routes
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_admin_create_with_explicit_slug(async_client: AsyncClient):
    created = await _create(async_client, "Custom", slug="my-custom-slug")
    assert created["slug"] == "my-custom-slug"


@pytest.mark.asyncio
async def test_admin_create_validation_error(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/admin/services", json={"title": "Incomplete"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_admin_list_paginated(async_client: AsyncClient):
    for title in ("One", "Two", "Three"):
        await _create(async_client, title)
    resp = await async_client.get(
        "/api/v1/admin/services",
        params={"page": 1, "page_size": 2, "sort_by": "title", "sort_order": "asc"},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [s["title"] for s in data["services"]] == ["One", "Three"]
    assert data["total_services"] == 3
    assert data["has_next_page"] is True


@pytest.mark.asyncio
async def test_admin_list_rejects_bad_sort_order(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/admin/services", params={"sort_order": "sideways"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_admin_update_replaces_service(async_client: AsyncClient):
    created = await _create(async_client, "Before", features=["old"])
    resp = await async_client.put(
        f"/api/v1/admin/services/{created['id']}",
        json=_service_json("After", features=["new-1", "new-2"]),
    )
    assert resp.status_code == 200
    assert resp.json()["slug"] == "after"

    detail = await async_client.get("/api/v1/services/after")
    assert detail.json()["data"]["features"] == ["new-1", "new-2"]


@pytest.mark.asyncio
async def test_admin_update_missing_is_404(async_client: AsyncClient):
    resp = await async_client.put("/api/v1/admin/services/missing", json=_service_json("Ghost"))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_admin_bulk_delete(async_client: AsyncClient):
    first = await _create(async_client, "First")
    second = await _create(async_client, "Second")
    await _create(async_client, "Third")

    resp = await async_client.request(
        "DELETE", "/api/v1/admin/services", json={"ids": [first["id"], second["id"]]}
    )
    assert resp.status_code == 200
    assert resp.json() == {"deleted": 2}

    remaining = await async_client.get("/api/v1/services")
    assert [s["title"] for s in remaining.json()["data"]] == ["Third"]


@pytest.mark.asyncio
async def test_admin_bulk_delete_unknown_ids_is_404(async_client: AsyncClient):
    resp = await async_client.request("DELETE", "/api/v1/admin/services", json={"ids": ["nope"]})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_admin_bulk_delete_requires_ids(async_client: AsyncClient):
    resp = await async_client.request("DELETE", "/api/v1/admin/services", json={"ids": []})
    assert resp.status_code == 422
