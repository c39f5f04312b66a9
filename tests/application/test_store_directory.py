"""Tests for store and area lookups."""

import pytest
from sqlalchemy.exc import OperationalError

from app.application.store_directory import StoreDirectory
from app.domain.exceptions import StorageError


@pytest.fixture
def directory(session) -> StoreDirectory:
    """Directory on the test session."""
    return StoreDirectory(session)


class TestListStores:
    """Tests for store listing."""

    @pytest.mark.asyncio
    async def test_only_active_stores(self, builder, directory) -> None:
        """Pending, suspended and closed stores are hidden."""
        await builder.store(slug="open-store")
        await builder.store(slug="new-store", status="pending")
        await builder.store(slug="gone-store", status="closed")
        await builder.commit()

        stores = await directory.list_stores()

        assert [s["slug"] for s in stores] == ["open-store"]

    @pytest.mark.asyncio
    async def test_area_filter(self, builder, directory) -> None:
        """Only stores linked to the area are listed."""
        f7 = await builder.area("F-7")
        g9 = await builder.area("G-9")
        await builder.store(slug="alpha-mart", area_ids=[f7.id, g9.id])
        await builder.store(slug="beta-mart", area_ids=[g9.id])
        await builder.commit()

        in_f7 = await directory.list_stores(area_id=f7.id)
        in_g9 = await directory.list_stores(area_id=g9.id)

        assert [s["slug"] for s in in_f7] == ["alpha-mart"]
        assert in_f7[0]["areas"] == sorted([f7.id, g9.id])
        assert [s["slug"] for s in in_g9] == ["alpha-mart", "beta-mart"]

    @pytest.mark.asyncio
    async def test_storage_failure(self, session, directory, monkeypatch) -> None:
        async def failing(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("connection refused"))

        monkeypatch.setattr(session, "execute", failing)

        with pytest.raises(StorageError):
            await directory.list_stores()


class TestGetStore:
    """Tests for store detail."""

    @pytest.mark.asyncio
    async def test_detail(self, builder, directory) -> None:
        """Detail carries active product count and area names."""
        f7 = await builder.area("F-7")
        g9 = await builder.area("G-9")
        store = await builder.store(area_ids=[g9.id, f7.id])
        category = await builder.category()
        await builder.custom(store, "Bread", category)
        await builder.custom(store, "Tea", category)
        await builder.custom(store, "Retired", category, is_active=False)
        await builder.commit()

        detail = await directory.get_store_by_slug("fresh-mart")

        assert detail["productCount"] == 2
        assert detail["areaNames"] == ["F-7", "G-9"]

    @pytest.mark.asyncio
    async def test_count_skips_inactive_global_products(self, builder, directory) -> None:
        """A listing of a retired global product is not counted."""
        store = await builder.store()
        category = await builder.category()
        await builder.listing(store, await builder.product("Milk", category))
        await builder.listing(store, await builder.product("Cola", category, is_active=False))
        await builder.commit()

        detail = await directory.get_store_by_slug("fresh-mart")

        assert detail["productCount"] == 1

    @pytest.mark.asyncio
    async def test_inactive_store_hidden(self, builder, directory) -> None:
        await builder.store(status="suspended")
        await builder.commit()

        assert await directory.get_store_by_slug("fresh-mart") is None

    @pytest.mark.asyncio
    async def test_unknown_store(self, session, directory) -> None:
        assert await directory.get_store_by_slug("nowhere") is None


class TestAreas:
    """Tests for areas and the homepage stats."""

    @pytest.mark.asyncio
    async def test_inactive_areas_hidden(self, builder, directory) -> None:
        await builder.area("F-7")
        await builder.area("Old Town", is_active=False)
        await builder.commit()

        assert [a["name"] for a in await directory.list_areas()] == ["F-7"]

    @pytest.mark.asyncio
    async def test_area_stats_count_active_stores(self, builder, directory) -> None:
        f7 = await builder.area("F-7")
        await builder.store(slug="alpha-mart", area_ids=[f7.id])
        await builder.store(slug="beta-mart", status="suspended", area_ids=[f7.id])
        await builder.commit()

        [stats] = await directory.area_stats()

        assert stats["storeCount"] == 1
