"""Demo catalog data.

Loads a small category hierarchy and a handful of products through the
store, so the seeded catalog obeys the same invariants as user data:

    1 Electronics          2 Fashion              3 Home & Garden
        4 Smartphones          6 Men's Clothing
            8 iPhone           7 Women's Clothing
            9 Android
        5 Laptops
"""

from typing import Any

import structlog

from storefront.catalog.store import CatalogStore

logger = structlog.get_logger()

# Parents are referenced by slug and must appear before their children.
DEMO_CATEGORIES: list[dict[str, Any]] = [
    {
        "name": "Electronics",
        "slug": "electronics",
        "description": "Electronic devices and accessories",
    },
    {
        "name": "Fashion",
        "slug": "fashion",
        "description": "Clothing and fashion accessories",
    },
    {
        "name": "Home & Garden",
        "slug": "home-garden",
        "description": "Home improvement and garden supplies",
    },
    {
        "name": "Smartphones",
        "slug": "smartphones",
        "description": "Latest smartphones and mobile devices",
        "parent": "electronics",
    },
    {
        "name": "Laptops",
        "slug": "laptops",
        "description": "Laptops and portable computers",
        "parent": "electronics",
    },
    {
        "name": "Men's Clothing",
        "slug": "mens-clothing",
        "description": "Men's fashion and clothing",
        "parent": "fashion",
    },
    {
        "name": "Women's Clothing",
        "slug": "womens-clothing",
        "description": "Women's fashion and clothing",
        "parent": "fashion",
    },
    {
        "name": "iPhone",
        "slug": "iphone",
        "description": "Apple iPhone smartphones",
        "parent": "smartphones",
    },
    {
        "name": "Android",
        "slug": "android",
        "description": "Android smartphones",
        "parent": "smartphones",
    },
]

DEMO_PRODUCTS: list[dict[str, Any]] = [
    {
        "name": "Premium Wireless Headphones",
        "sku": "SKU-000001",
        "description": "Over-ear headphones with active noise cancellation",
        "price": 19999,
        "category": "electronics",
        "status": "active",
        "featured": True,
    },
    {
        "name": "iPhone 15 Pro",
        "sku": "SKU-000002",
        "description": "Titanium design with a 48MP camera",
        "price": 99900,
        "category": "iphone",
        "status": "active",
        "featured": True,
    },
    {
        "name": "Pixel 8",
        "sku": "SKU-000003",
        "description": "Android phone with on-device AI",
        "price": 69900,
        "category": "android",
        "status": "active",
    },
    {
        "name": "Ultrabook 14",
        "sku": "SKU-000004",
        "description": "Thin and light 14-inch laptop",
        "price": 129900,
        "category": "laptops",
        "status": "active",
    },
    {
        "name": "Classic Denim Jacket",
        "sku": "SKU-000005",
        "description": "Stonewashed cotton denim",
        "price": 7950,
        "category": "mens-clothing",
        "status": "active",
    },
    {
        "name": "Linen Summer Dress",
        "sku": "SKU-000006",
        "description": "Breathable linen, midi length",
        "price": 8900,
        "category": "womens-clothing",
        "status": "draft",
    },
    {
        "name": "Ceramic Plant Pot",
        "sku": "SKU-000007",
        "description": "Glazed pot with drainage hole",
        "price": 2400,
        "category": "home-garden",
        "status": "active",
    },
    {
        "name": "Gift Card",
        "sku": "SKU-000008",
        "description": "Redeemable across the whole store",
        "price": 5000,
        "category": None,
        "status": "archived",
    },
]


def seed_demo_data(store: CatalogStore) -> None:
    """Load the demo categories and products into a store.

    Args:
        store: Store to populate; expected to be empty.
    """
    ids_by_slug: dict[str, int] = {}

    for entry in DEMO_CATEGORIES:
        data = {key: value for key, value in entry.items() if key != "parent"}
        if entry.get("parent"):
            data["parent_id"] = ids_by_slug[entry["parent"]]
        category = store.create_category(data)
        ids_by_slug[category.slug] = category.id

    for entry in DEMO_PRODUCTS:
        data = {key: value for key, value in entry.items() if key != "category"}
        data["category_id"] = ids_by_slug[entry["category"]] if entry["category"] else None
        store.create_product(data)

    logger.info(
        "Demo catalog seeded",
        categories=len(DEMO_CATEGORIES),
        products=len(DEMO_PRODUCTS),
    )
