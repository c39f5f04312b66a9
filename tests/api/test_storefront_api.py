"""Tests for storefront API endpoints."""

from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.infrastructure.database import get_session
from app.main import app


class UnreachableSession:
    """Session stand-in whose every query fails like a dropped connection."""

    async def execute(self, *args: Any, **kwargs: Any) -> Any:
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    scalar = execute
    get = execute


async def unreachable_session() -> Any:
    yield UnreachableSession()


async def grocery(b: Any) -> dict[str, int]:
    """One active store in F-7 with three overrides and one custom item."""
    f7 = await b.area("F-7")
    store = await b.store(area_ids=[f7.id])
    category = await b.category()
    for name, price in (("Rice", "300"), ("Flour", "100"), ("Sugar", "200")):
        product = await b.product(name, category, base_price=price)
        await b.listing(store, product)
    await b.custom(store, "House Tea", category, price="150")
    await b.store(slug="closed-mart", status="closed", area_ids=[f7.id])
    return {"area_id": f7.id, "store_id": store.id, "category_id": category.id}


@pytest.fixture
def ids(client: TestClient, seed: Any) -> dict[str, int]:
    """Seed the grocery fixture."""
    return seed(grocery)


class TestProducts:
    """Tests for GET /api/products."""

    def test_price_ascending_pages(self, client: TestClient, ids: dict[str, int]) -> None:
        """Two pages of two, interleaving custom and override rows."""
        first = client.get(
            "/api/products", params={"storeSlug": "fresh-mart", "sortBy": "price-asc", "limit": 2}
        )
        assert first.status_code == 200
        body = first.json()
        assert [p["price"] for p in body["products"]] == [100.0, 150.0]
        assert body["nextCursor"] == 2
        assert body["hasMore"] is True
        assert body["total"] == 4

        second = client.get(
            "/api/products",
            params={"store": "fresh-mart", "sortBy": "price_asc", "limit": 2, "cursor": 2},
        ).json()
        assert [p["price"] for p in second["products"]] == [200.0, 300.0]
        assert second["nextCursor"] is None
        assert second["hasMore"] is False

    def test_product_shape(self, client: TestClient, ids: dict[str, int]) -> None:
        body = client.get(
            "/api/products", params={"storeSlug": "fresh-mart", "search": "tea"}
        ).json()

        [product] = body["products"]
        assert product["name"] == "House Tea"
        assert product["source"] == "custom"
        assert product["image"] == ""
        assert product["oldPrice"] is None
        assert product["store_slug"] == "fresh-mart"

    def test_cache_headers(self, client: TestClient, ids: dict[str, int]) -> None:
        response = client.get("/api/products", params={"storeSlug": "fresh-mart"})
        assert response.headers["Cache-Control"].startswith("public, max-age=300")
        assert "X-Catalog-Degraded" not in response.headers

    def test_default_page_size(self, client: TestClient, ids: dict[str, int]) -> None:
        body = client.get("/api/products").json()
        assert len(body["products"]) == 4
        assert body["hasMore"] is False

    def test_unknown_store_is_empty(self, client: TestClient, ids: dict[str, int]) -> None:
        body = client.get("/api/products", params={"storeSlug": "nowhere"}).json()
        assert body == {"products": [], "nextCursor": None, "hasMore": False, "total": 0}

    def test_cursor_beyond_clamp(self, client: TestClient, ids: dict[str, int]) -> None:
        body = client.get("/api/products", params={"cursor": 10_000_000}).json()
        assert body["products"] == []
        assert body["hasMore"] is False

    @pytest.mark.parametrize(
        "params",
        [
            {"limit": 0},
            {"limit": 51},
            {"cursor": -1},
            {"sortBy": "popularity"},
            {"storeSlug": "Fresh Mart!"},
            {"categoryId": 0},
            {"cursor": "abc"},
        ],
    )
    def test_invalid_parameters(self, client: TestClient, params: dict[str, Any]) -> None:
        response = client.get("/api/products", params=params)
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_storage_failure_degrades(
        self, client: TestClient, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failing database yields a flagged, uncached empty page."""
        app.dependency_overrides[get_session] = unreachable_session

        response = client.get("/api/products", params={"storeSlug": "fresh-mart"})

        assert response.status_code == 200
        assert response.json()["products"] == []
        assert response.headers["X-Catalog-Degraded"] == "true"
        assert response.headers["Cache-Control"] == "no-store"
        assert any("Product page degraded" in r.getMessage() for r in caplog.records)

class TestStores:
    """Tests for store and area endpoints."""

    def test_list_stores_by_area(self, client: TestClient, ids: dict[str, int]) -> None:
        body = client.get("/api/stores", params={"areaId": ids["area_id"]}).json()
        assert [s["slug"] for s in body["stores"]] == ["fresh-mart"]
        assert body["total"] == 1

    def test_store_detail(self, client: TestClient, ids: dict[str, int]) -> None:
        response = client.get("/api/stores/fresh-mart")
        assert response.status_code == 200
        store = response.json()["store"]
        assert store["productCount"] == 4
        assert store["areaNames"] == ["F-7"]

    def test_closed_store_not_found(self, client: TestClient, ids: dict[str, int]) -> None:
        response = client.get("/api/stores/closed-mart")
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_malformed_slug(self, client: TestClient) -> None:
        assert client.get("/api/stores/Fresh_Mart").status_code == 400

    def test_areas_and_home(self, client: TestClient, ids: dict[str, int]) -> None:
        areas = client.get("/api/areas").json()
        home = client.get("/api/home").json()

        assert [a["name"] for a in areas["areas"]] == ["F-7"]
        assert home["areas"][0]["storeCount"] == 1

    def test_categories(self, client: TestClient, ids: dict[str, int]) -> None:
        body = client.get("/api/categories").json()
        assert [c["id"] for c in body["categories"]] == [ids["category_id"]]

    def test_list_degrades(self, client: TestClient) -> None:
        app.dependency_overrides[get_session] = unreachable_session

        response = client.get("/api/stores")

        assert response.status_code == 200
        assert response.json() == {"stores": [], "total": 0}
        assert response.headers["X-Catalog-Degraded"] == "true"

    def test_store_detail_reports_outage(self, client: TestClient) -> None:
        """Store detail has no empty form, so storage failures are 503."""
        app.dependency_overrides[get_session] = unreachable_session

        response = client.get("/api/stores/fresh-mart")

        assert response.status_code == 503
        assert response.json()["error_code"] == "STORAGE_ERROR"
