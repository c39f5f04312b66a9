#!/usr/bin/env python3
"""Seed demo catalog script.

Creates a small demo data set (areas, stores, category tree, brands,
global products and store listings) through the admin gateway, so every
row gets the same slugs, category paths and validation as admin writes.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --products-per-store 40
"""

import argparse
import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.application.admin_service import AdminGateway
from app.application.cache_service import CacheService
from app.infrastructure.database import Base, engine, session_scope

AREAS = [
    ("Askari 14, Sector A/B", "Rawalpindi"),
    ("Bahria Phase 8", "Rawalpindi"),
    ("DHA Phase 2", "Islamabad"),
    ("Sector F-7", "Islamabad"),
    ("Sector H-13", "Islamabad"),
]

# Store name -> (indexes into AREAS, delivery charges, free delivery threshold)
STORES = {
    "Hash Mart": ([1], Decimal("200"), Decimal("500")),
    "Royal Cash & Carry": ([3, 4], Decimal("100"), Decimal("1000")),
}

CATEGORY_TREE = {
    "Fresh": ["Fruits & Veg", "Meat"],
    "Snacks": ["Biscuits", "Chocolates", "Chips"],
    "Beverages": ["Soft Drinks", "Juices"],
    "Grocery": ["Pulses", "Rice", "Spices"],
}

BRANDS = ["Nestle", "Shan", "National", "Peek Freans", "Lays"]


async def create_tables() -> None:
    """Create database tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed(products_per_store: int) -> dict[str, int]:
    """Seed the demo data set.

    Args:
        products_per_store: Global products listed by each store.

    Returns:
        Counts of created rows.
    """
    async with session_scope() as session:
        gateway = AdminGateway(session, CacheService())

        area_ids = [
            (await gateway.create_area({"name": name, "city": city}))["id"]
            for name, city in AREAS
        ]

        leaf_ids: list[int] = []
        for root_name, children in CATEGORY_TREE.items():
            root = await gateway.create_category({"name": root_name})
            for child_name in children:
                child = await gateway.create_category(
                    {"name": child_name, "parent_id": root["id"]}
                )
                leaf_ids.append(child["id"])

        brand_ids = [(await gateway.create_brand({"name": name}))["id"] for name in BRANDS]

        product_ids: list[int] = []
        for i in range(products_per_store):
            product = await gateway.create_product(
                {
                    "name": f"Demo Product {i + 1:03d}",
                    "category_id": leaf_ids[i % len(leaf_ids)],
                    "brand_id": brand_ids[i % len(brand_ids)],
                    "base_price": Decimal(50 + (i * 37) % 950),
                    "weight": f"{(i % 5 + 1) * 250}g",
                }
            )
            product_ids.append(product["id"])

        listings = 0
        for store_index, (store_name, (area_indexes, charges, threshold)) in enumerate(
            STORES.items()
        ):
            store = await gateway.create_store(
                {
                    "name": store_name,
                    "store_type": "mart",
                    "status": "active",
                    "same_day_delivery": True,
                    "delivery_charges": charges,
                    "min_order_value": Decimal("100"),
                    "free_delivery_threshold": threshold,
                    "area_ids": [area_ids[i] for i in area_indexes],
                }
            )
            for i, product_id in enumerate(product_ids):
                overrides: dict = {}
                if (i + store_index) % 4 == 0:
                    overrides["price_override"] = Decimal(40 + (i * 31) % 900)
                await gateway.create_store_product(
                    {
                        "store_id": store["id"],
                        "global_product_id": product_id,
                        "stock_quantity": 0 if i % 9 == 0 else 25,
                        "is_in_stock": i % 9 != 0,
                        **overrides,
                    }
                )
                listings += 1

            await gateway.create_store_product(
                {
                    "store_id": store["id"],
                    "custom_name": f"{store_name} House Blend Tea",
                    "custom_category_id": leaf_ids[0],
                    "custom_price": Decimal("350"),
                    "stock_quantity": 10,
                }
            )
            listings += 1

        return {
            "areas": len(area_ids),
            "categories": len(CATEGORY_TREE) + len(leaf_ids),
            "brands": len(brand_ids),
            "products": len(product_ids),
            "stores": len(STORES),
            "store_products": listings,
        }


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed the demo storefront catalog")
    parser.add_argument(
        "--products-per-store",
        type=int,
        default=24,
        help="Global products listed by each store (default: 24)",
    )
    args = parser.parse_args()

    print("=" * 60)
    print("Storefront Catalog Seeder")
    print("=" * 60)

    print("Creating database tables...")
    await create_tables()
    print("Tables ready.")
    print()

    counts = await seed(args.products_per_store)
    for name, count in counts.items():
        print(f"  ✓ {name}: {count}")

    print("=" * 60)
    print("Seeding complete!")
    print("=" * 60)
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
