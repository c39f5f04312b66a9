"""Tests for admin API endpoints."""

from typing import Any

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def admin(client: TestClient, admin_headers: dict[str, str]) -> TestClient:
    """Client sending admin credentials."""
    client.headers.update(admin_headers)
    return client


async def store_with_order(b: Any) -> dict[str, Any]:
    store = await b.store()
    order = await b.order(store)
    return {"store_id": store.id, "order_id": order.id}


class TestCatalogCrud:
    """Tests for product and category administration."""

    def test_product_lifecycle(self, admin: TestClient) -> None:
        """Create, read, update, list and delete a global product."""
        category = admin.post("/api/admin/categories", json={"name": "Dairy"}).json()

        created = admin.post(
            "/api/admin/products",
            json={"name": "Milk 1L", "category_id": category["id"], "base_price": "250"},
        )
        assert created.status_code == 201
        product = created.json()
        assert product["slug"] == "milk-1l"

        updated = admin.put(f"/api/admin/products/{product['id']}", json={"base_price": 260})
        assert updated.json()["base_price"] == 260.0

        listing = admin.get("/api/admin/products", params={"search": "milk"}).json()
        assert listing["total"] == 1

        assert admin.delete(f"/api/admin/products/{product['id']}").json() == {"success": True}
        assert admin.get(f"/api/admin/products/{product['id']}").status_code == 404

    def test_missing_required_field(self, admin: TestClient) -> None:
        response = admin.post("/api/admin/products", json={"name": "Milk"})
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_negative_price(self, admin: TestClient) -> None:
        category = admin.post("/api/admin/categories", json={"name": "Dairy"}).json()
        response = admin.post(
            "/api/admin/products",
            json={"name": "Milk", "category_id": category["id"], "base_price": -5},
        )
        assert response.status_code == 400

    def test_duplicate_brand_conflict(self, admin: TestClient) -> None:
        assert admin.post("/api/admin/brands", json={"name": "Nestle"}).status_code == 201
        response = admin.post("/api/admin/brands", json={"name": "Nestle"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT"

    def test_delete_category_with_child(self, admin: TestClient) -> None:
        """Blocked deletes are 409 and leave both rows in place."""
        root = admin.post("/api/admin/categories", json={"name": "Grocery"}).json()
        admin.post("/api/admin/categories", json={"name": "Rice", "parent_id": root["id"]})

        response = admin.delete(f"/api/admin/categories/{root['id']}")

        assert response.status_code == 409
        assert response.json()["error"] == "cannot delete: referenced by other records"
        assert admin.get("/api/admin/categories").json()["total"] == 2

    def test_move_category_under_itself(self, admin: TestClient) -> None:
        root = admin.post("/api/admin/categories", json={"name": "Grocery"}).json()
        child = admin.post(
            "/api/admin/categories", json={"name": "Rice", "parent_id": root["id"]}
        ).json()

        response = admin.put(
            f"/api/admin/categories/{root['id']}", json={"parent_id": child["id"]}
        )

        assert response.status_code == 400

    @pytest.mark.parametrize("params", [{"page": -1}, {"limit": 0}, {"limit": 101}])
    def test_paging_bounds(self, admin: TestClient, params: dict[str, int]) -> None:
        assert admin.get("/api/admin/brands", params=params).status_code == 400


class TestStoreAdministration:
    """Tests for stores, areas and store products."""

    def test_store_write_invalidates_storefront(self, admin: TestClient) -> None:
        """Admin writes are visible on the next storefront read."""
        area = admin.post("/api/admin/areas", json={"name": "F-7", "city": "Islamabad"}).json()
        assert admin.get("/api/stores").json()["total"] == 0

        admin.post(
            "/api/admin/stores",
            json={"name": "Fresh Mart", "status": "active", "area_ids": [area["id"]]},
        )

        stores = admin.get("/api/stores").json()
        assert [s["slug"] for s in stores["stores"]] == ["fresh-mart"]
        assert stores["stores"][0]["areas"] == [area["id"]]

    def test_custom_store_product(self, admin: TestClient) -> None:
        store = admin.post(
            "/api/admin/stores", json={"name": "Fresh Mart", "status": "active"}
        ).json()
        category = admin.post("/api/admin/categories", json={"name": "Bakery"}).json()

        created = admin.post(
            "/api/admin/store-products",
            json={
                "store_id": store["id"],
                "custom_name": "House Bread",
                "custom_category_id": category["id"],
                "custom_price": 150,
            },
        )

        assert created.status_code == 201
        assert created.json()["source"] == "custom"
        page = admin.get("/api/products", params={"storeSlug": "fresh-mart"}).json()
        assert [p["name"] for p in page["products"]] == ["House Bread"]

    def test_custom_store_product_missing_price(self, admin: TestClient) -> None:
        store = admin.post("/api/admin/stores", json={"name": "Fresh Mart"}).json()
        category = admin.post("/api/admin/categories", json={"name": "Bakery"}).json()

        response = admin.post(
            "/api/admin/store-products",
            json={
                "store_id": store["id"],
                "custom_name": "House Bread",
                "custom_category_id": category["id"],
            },
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "custom_price"


class TestOrders:
    """Tests for order administration."""

    def test_status_change(self, admin: TestClient, seed: Any) -> None:
        ids = seed(store_with_order)

        response = admin.patch(
            f"/api/admin/orders/{ids['order_id']}", json={"status": "confirmed"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        listing = admin.get("/api/admin/orders", params={"status": "confirmed"}).json()
        assert listing["total"] == 1

    def test_invalid_transition(self, admin: TestClient, seed: Any) -> None:
        ids = seed(store_with_order)

        response = admin.patch(
            f"/api/admin/orders/{ids['order_id']}", json={"status": "refunded"}
        )

        assert response.status_code == 400
        assert response.json()["details"]["current_state"] == "pending"

    def test_unknown_order(self, admin: TestClient) -> None:
        response = admin.patch("/api/admin/orders/missing", json={"status": "confirmed"})
        assert response.status_code == 404

    def test_stats(self, admin: TestClient, seed: Any) -> None:
        seed(store_with_order)
        stats = admin.get("/api/admin/stats").json()
        assert stats["stores"] == 1
        assert stats["orders"] == 1
