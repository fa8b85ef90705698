#!/usr/bin/env python3
"""Seed product catalog script.

Creates the products table and seeds a set of sample fabrics through
the catalog service, so the configured image policy and URL rules apply.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --clear
"""

import argparse
import asyncio
import base64
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from textile_catalog.catalog.service import get_catalog_service
from textile_catalog.domain.entities import ProductSubmission
from textile_catalog.domain.value_objects import ImageUpload, RawStructured
from textile_catalog.infrastructure.config import StoreBackend, settings
from textile_catalog.infrastructure.database import create_tables

# 1x1 PNG used as the photo of every sample product
SAMPLE_IMAGE = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

SAMPLE_PRODUCTS = [
    {
        "name": "Cotton Greige Poplin",
        "price": "145",
        "main_category": "woven fabrics",
        "sub_category": "greige",
        "nested_category": "cotton",
        "composition": "100% cotton",
        "gsm": "110",
        "width": "63 inch",
        "count": "40x40",
        "construction": "133x72",
        "weave": "plain",
    },
    {
        "name": "Polyester Printed Georgette",
        "price": "210.50",
        "main_category": "woven fabrics",
        "sub_category": "printed",
        "nested_category": "polyester",
        "composition": "100% polyester",
        "gsm": "80",
        "width": "44 inch",
        "weave": "plain",
        "finish": "digital print",
    },
    {
        "name": "Dyed Linen Blend",
        "price": "320",
        "main_category": "woven fabrics",
        "sub_category": "dyed",
        "composition": "55% linen 45% cotton",
        "gsm": "160",
        "width": "58 inch",
    },
    {
        "name": "Twill Drill",
        "price": "180",
        "main_category": "fabrics structure",
        "sub_category": "twill",
        "composition": "100% cotton",
        "gsm": "240",
        "weave": "2/1 twill",
    },
    {
        "name": "Peach Finish Sateen",
        "price": "260",
        "main_category": "fabrics finish",
        "sub_category": "peach finish",
        "composition": "97% cotton 3% spandex",
        "gsm": "190",
        "finish": "peach",
    },
    {
        "name": "Single Jersey Knit",
        "price": "150",
        "main_category": "knitted fabrics",
        "sub_category": "single jersey",
        "composition": "100% cotton",
        "gsm": "170",
    },
]


async def seed(clear: bool) -> dict:
    """Seed the sample products.

    Args:
        clear: Whether to delete existing products first.

    Returns:
        Seeding result with counts.
    """
    service = get_catalog_service()

    deleted = 0
    if clear:
        while True:
            page = await service.list_products(page=1)
            if not page.items:
                break
            for product in page.items:
                await service.delete_product(product.id)
                deleted += 1

    created = 0
    for sample in SAMPLE_PRODUCTS:
        specifications = {
            key: sample[key]
            for key in ("composition", "gsm", "width", "count", "construction", "weave", "finish")
            if key in sample
        }
        specifications["category"] = sample["main_category"]
        specifications["subCategory"] = sample["sub_category"]

        slug = sample["name"].lower().replace(" ", "-")
        await service.create_product(
            ProductSubmission(**sample, specifications=RawStructured(specifications)),
            image=ImageUpload(data=SAMPLE_IMAGE, content_type="image/png", filename=f"{slug}.png"),
        )
        created += 1

    return {"deleted": deleted, "products_created": created}


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed the textile catalog with sample fabrics",
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete existing products before seeding",
    )

    args = parser.parse_args()

    print("=" * 60)
    print("Textile Catalog Seeder")
    print("=" * 60)
    print(f"Store backend: {settings.store_backend.value}")
    print(f"Image mode: {settings.image_mode.value}")
    print(f"Clear existing: {args.clear}")
    print()

    if settings.store_backend == StoreBackend.SQL:
        print("Creating database tables...")
        await create_tables()
        print("Tables ready.")
        print()

    result = await seed(clear=args.clear)

    print(f"  ✓ Deleted: {result['deleted']} existing products")
    print(f"  ✓ Created: {result['products_created']} products")
    print()
    print("=" * 60)
    print("Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
