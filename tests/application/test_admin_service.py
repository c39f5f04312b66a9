"""Tests for the admin mutation gateway."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from app.application.admin_service import (
    AdminGateway,
    EntityKind,
    MutationAction,
    invalidation_tags,
)
from app.application.cache_service import CacheService, CacheTag
from app.catalog.models import Category, GlobalProduct
from app.domain.exceptions import (
    ConflictError,
    NotFoundError,
    ReferencedRecordError,
    RequiredFieldError,
    ValidationError,
)


class RecordingCache(CacheService):
    """Cache service that records invalidated tags."""

    def __init__(self) -> None:
        super().__init__()
        self.invalidated: list[str] = []

    def invalidate_tag(self, tag: CacheTag | str) -> int:
        self.invalidated.append(tag.value if isinstance(tag, CacheTag) else tag)
        return super().invalidate_tag(tag)


@pytest.fixture
def recording_cache() -> RecordingCache:
    """Cache that records invalidations."""
    return RecordingCache()


@pytest.fixture
def gateway(session, recording_cache: RecordingCache) -> AdminGateway:
    """Gateway on the test session."""
    return AdminGateway(session, recording_cache)


def test_area_delete_invalidates_store_listings() -> None:
    """Dropping an area also drops its store links."""
    assert invalidation_tags(EntityKind.AREA, MutationAction.DELETE) == (
        CacheTag.AREAS,
        CacheTag.STORES,
        CacheTag.PRODUCTS,
    )
    assert invalidation_tags(EntityKind.AREA, MutationAction.UPDATE) == (CacheTag.AREAS,)


class TestProducts:
    """Tests for global product writes."""

    @pytest.mark.asyncio
    async def test_create_invalidates_after_commit(
        self, builder, gateway, recording_cache
    ) -> None:
        """A committed create invalidates the products tag."""
        category = await builder.category()
        await builder.commit()

        product = await gateway.create_product(
            {"name": "Olper's Milk 1L", "category_id": category.id, "base_price": 280}
        )

        assert product["slug"] == "olper-s-milk-1l"
        assert product["base_price"] == 280.0
        assert recording_cache.invalidated == ["products"]

    @pytest.mark.asyncio
    async def test_missing_category(self, gateway, recording_cache) -> None:
        """category_id is required."""
        with pytest.raises(RequiredFieldError) as exc_info:
            await gateway.create_product({"name": "Milk"})

        assert exc_info.value.details["field"] == "category_id"
        assert recording_cache.invalidated == []

    @pytest.mark.asyncio
    async def test_negative_price(self, builder, gateway) -> None:
        """Negative prices are rejected before writing."""
        category = await builder.category()
        await builder.commit()

        with pytest.raises(ValidationError):
            await gateway.create_product(
                {"name": "Milk", "category_id": category.id, "base_price": -1}
            )

    @pytest.mark.asyncio
    async def test_duplicate_slug_is_conflict(self, builder, gateway, recording_cache) -> None:
        """Unique violations become conflicts and invalidate nothing."""
        category = await builder.category()
        await builder.commit()
        await gateway.create_product({"name": "Milk", "category_id": category.id})
        recording_cache.invalidated.clear()

        with pytest.raises(ConflictError):
            await gateway.create_product({"name": "Milk", "category_id": category.id})

        assert recording_cache.invalidated == []

    @pytest.mark.asyncio
    async def test_unknown_fields_ignored(self, builder, gateway) -> None:
        """Only whitelisted fields are written."""
        category = await builder.category()
        await builder.commit()

        product = await gateway.create_product(
            {"name": "Milk", "category_id": category.id, "id": 999, "owner": "x"}
        )

        assert product["id"] != 999
        assert "owner" not in product

    @pytest.mark.asyncio
    async def test_update_missing(self, gateway) -> None:
        with pytest.raises(NotFoundError):
            await gateway.update_product(404, {"name": "Ghost"})

    @pytest.mark.asyncio
    async def test_delete_listed_product_is_blocked(self, builder, gateway) -> None:
        """A product listed by a store cannot be deleted."""
        store = await builder.store()
        category = await builder.category()
        milk = await builder.product("Milk", category)
        await builder.listing(store, milk)
        await builder.commit()
        milk_id = milk.id

        with pytest.raises(ReferencedRecordError):
            await gateway.delete_product(milk_id)

        assert (await gateway.get_product(milk_id))["name"] == "Milk"

    @pytest.mark.asyncio
    async def test_search(self, builder, gateway) -> None:
        """Admin search matches literally and case-insensitively."""
        category = await builder.category()
        await builder.product("100% Juice", category)
        await builder.product("Milk", category)
        await builder.commit()

        result = await gateway.list_products(search="%")

        assert result["total"] == 1
        assert result["data"][0]["name"] == "100% Juice"


class TestCategories:
    """Tests for category tree writes."""

    @pytest.mark.asyncio
    async def test_create_derives_path(self, gateway) -> None:
        """Paths extend the parent's path; slugs use underscores."""
        root = await gateway.create_category({"name": "Fresh Food"})
        child = await gateway.create_category({"name": "Dairy Eggs", "parent_id": root["id"]})

        assert root["slug"] == "fresh_food"
        assert root["path"] == str(root["id"])
        assert root["depth"] == 0
        assert child["path"] == f"{root['id']}/{child['id']}"
        assert child["depth"] == 1

    @pytest.mark.asyncio
    async def test_unknown_parent(self, gateway) -> None:
        with pytest.raises(NotFoundError):
            await gateway.create_category({"name": "Orphan", "parent_id": 404})

    @pytest.mark.asyncio
    async def test_delete_with_child_is_blocked(self, gateway, session) -> None:
        """Deleting a category that has children is a conflict; both rows survive."""
        root = await gateway.create_category({"name": "Grocery"})
        await gateway.create_category({"name": "Rice", "parent_id": root["id"]})

        with pytest.raises(ReferencedRecordError) as exc_info:
            await gateway.delete_category(root["id"])

        assert exc_info.value.message == "cannot delete: referenced by other records"
        result = await session.execute(select(Category.name).order_by(Category.id))
        assert list(result.scalars()) == ["Grocery", "Rice"]

    @pytest.mark.asyncio
    async def test_move_rebases_subtree(self, gateway) -> None:
        """Moving a category carries its descendants along."""
        food = await gateway.create_category({"name": "Food"})
        home = await gateway.create_category({"name": "Home"})
        dairy = await gateway.create_category({"name": "Dairy", "parent_id": food["id"]})
        cheese = await gateway.create_category({"name": "Cheese", "parent_id": dairy["id"]})

        moved = await gateway.update_category(dairy["id"], {"parent_id": home["id"]})
        cheese_after = await gateway.get_category(cheese["id"])

        assert moved["path"] == f"{home['id']}/{dairy['id']}"
        assert moved["parent_id"] == home["id"]
        assert cheese_after["path"] == f"{home['id']}/{dairy['id']}/{cheese['id']}"
        assert cheese_after["depth"] == 2

    @pytest.mark.asyncio
    async def test_move_to_root(self, gateway) -> None:
        food = await gateway.create_category({"name": "Food"})
        dairy = await gateway.create_category({"name": "Dairy", "parent_id": food["id"]})

        moved = await gateway.update_category(dairy["id"], {"parent_id": None})

        assert moved["path"] == str(dairy["id"])
        assert moved["depth"] == 0

    @pytest.mark.asyncio
    async def test_move_under_descendant_rejected(self, gateway, recording_cache) -> None:
        """A category cannot become its own descendant."""
        food = await gateway.create_category({"name": "Food"})
        dairy = await gateway.create_category({"name": "Dairy", "parent_id": food["id"]})
        recording_cache.invalidated.clear()

        with pytest.raises(ValidationError):
            await gateway.update_category(food["id"], {"parent_id": dairy["id"]})

        assert recording_cache.invalidated == []
        assert (await gateway.get_category(food["id"]))["depth"] == 0


class TestStores:
    """Tests for store writes."""

    @pytest.mark.asyncio
    async def test_create_with_areas(self, builder, gateway, recording_cache) -> None:
        """Stores are linked to their areas and invalidate store listings."""
        f7 = await builder.area("F-7")
        g9 = await builder.area("G-9")
        await builder.commit()

        store = await gateway.create_store(
            {"name": "Fresh Mart", "status": "active", "area_ids": [g9.id, f7.id, f7.id]}
        )

        assert store["slug"] == "fresh-mart"
        assert store["areas"] == sorted([f7.id, g9.id])
        assert set(recording_cache.invalidated) == {"stores", "areas", "products"}

    @pytest.mark.asyncio
    async def test_update_replaces_areas(self, builder, gateway) -> None:
        f7 = await builder.area("F-7")
        g9 = await builder.area("G-9")
        store = await builder.store(area_ids=[f7.id])
        await builder.commit()

        updated = await gateway.update_store(store.id, {"area_ids": [g9.id]})

        assert updated["areas"] == [g9.id]

    @pytest.mark.asyncio
    async def test_invalid_status(self, gateway) -> None:
        with pytest.raises(ValidationError):
            await gateway.create_store({"name": "Fresh Mart", "status": "open"})

    @pytest.mark.asyncio
    async def test_store_with_orders_cannot_be_deleted(self, builder, gateway) -> None:
        store = await builder.store()
        await builder.order(store)
        await builder.commit()

        with pytest.raises(ReferencedRecordError):
            await gateway.delete_store(store.id)


class TestStoreProducts:
    """Tests for store product writes."""

    @pytest.mark.asyncio
    async def test_custom_product_requires_fields(self, builder, gateway) -> None:
        """Custom rows need a name, category and price."""
        store = await builder.store()
        await builder.commit()

        with pytest.raises(RequiredFieldError) as exc_info:
            await gateway.create_store_product(
                {"store_id": store.id, "custom_name": "House Bread", "custom_price": 150}
            )

        assert exc_info.value.details["field"] == "custom_category_id"

    @pytest.mark.asyncio
    async def test_custom_product_created(self, builder, gateway) -> None:
        store = await builder.store()
        category = await builder.category(name="Bakery")
        await builder.commit()

        row = await gateway.create_store_product(
            {
                "store_id": store.id,
                "custom_name": "House Bread",
                "custom_category_id": category.id,
                "custom_price": "150.00",
            }
        )

        assert row["source"] == "custom"
        assert row["slug"] == "house-bread"
        assert row["price"] == 150.0
        assert row["category_name"] == "Bakery"

    @pytest.mark.asyncio
    async def test_override_of_unknown_product(self, builder, gateway) -> None:
        store = await builder.store()
        await builder.commit()

        with pytest.raises(NotFoundError):
            await gateway.create_store_product({"store_id": store.id, "global_product_id": 404})

    @pytest.mark.asyncio
    async def test_override_update(self, builder, gateway) -> None:
        """Overrides change the effective price."""
        store = await builder.store()
        category = await builder.category()
        milk = await builder.product("Milk", category, base_price="100")
        row = await builder.listing(store, milk)
        await builder.commit()

        updated = await gateway.update_store_product(row.id, {"price_override": 85})

        assert updated["price"] == 85.0
        assert updated["source"] == "global"

    @pytest.mark.asyncio
    async def test_list_includes_inactive_stores(self, builder, gateway) -> None:
        """Admins see rows of stores in any status."""
        store = await builder.store(status="suspended")
        category = await builder.category()
        await builder.custom(store, "House Bread", category)
        await builder.commit()

        result = await gateway.list_store_products(store_id=store.id)

        assert result["total"] == 1
        assert result["data"][0]["store_id"] == store.id


class TestOrders:
    """Tests for order status changes."""

    @pytest.mark.asyncio
    async def test_transition_recorded(self, builder, gateway, recording_cache) -> None:
        store = await builder.store()
        order = await builder.order(store)
        await builder.commit()

        updated = await gateway.update_order_status(order.id, "confirmed", note="called customer")

        assert updated["status"] == "confirmed"
        [entry] = updated["status_history"]
        assert entry["from"] == "pending"
        assert entry["to"] == "confirmed"
        assert entry["note"] == "called customer"
        assert recording_cache.invalidated == ["orders"]

    @pytest.mark.asyncio
    async def test_invalid_transition(self, builder, gateway) -> None:
        store = await builder.store()
        order = await builder.order(store)
        await builder.commit()
        order_id = order.id

        with pytest.raises(ValidationError):
            await gateway.update_order_status(order_id, "delivered")

        assert (await gateway.get_order(order_id))["status"] == "pending"

    @pytest.mark.asyncio
    async def test_unknown_status_filter(self, gateway) -> None:
        with pytest.raises(ValidationError):
            await gateway.list_orders(status="lost")


@pytest.mark.asyncio
async def test_stats(builder, gateway) -> None:
    """Stats count rows per table."""
    store = await builder.store()
    category = await builder.category()
    await builder.product("Milk", category)
    await builder.area()
    await builder.order(store)
    await builder.commit()

    stats = await gateway.stats()

    assert stats == {
        "products": 1,
        "stores": 1,
        "brands": 0,
        "categories": 1,
        "areas": 1,
        "orders": 1,
    }


@pytest.mark.asyncio
async def test_money_normalized_to_decimal(builder, gateway, session) -> None:
    """Prices are stored as exact decimals."""
    category = await builder.category()
    await builder.commit()

    created = await gateway.create_product(
        {"name": "Milk", "category_id": category.id, "base_price": "99.95"}
    )

    product = await session.get(GlobalProduct, created["id"])
    assert product.base_price == Decimal("99.95")
