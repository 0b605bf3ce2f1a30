#!/usr/bin/env python3
"""Seed database with sample catalog data for local development.

Creates:
- A handful of verified products across categories/countries
- One contributor account

Seed script is idempotent: products whose barcode already exists are skipped.

Usage:
    cd services/api
    python -m scripts.seed
"""

import asyncio
from datetime import datetime, timezone
import os
import sys
import uuid

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv  # noqa: E402

from catalog.models import VerificationStatus  # noqa: E402
from catalog.repositories import base  # noqa: E402
from catalog.repositories.products import PRODUCTS, find_by_barcode  # noqa: E402
from catalog.repositories.users import USERS  # noqa: E402
from catalog.stores.postgres import close_db, init_db  # noqa: E402

load_dotenv()

SEED_USER_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")

SAMPLE_PRODUCTS = [
    {
        "name": "Choco Munch",
        "brand": "ABC",
        "category": "Confectionery",
        "industry": "Food & Beverage",
        "country": "India",
        "continents": "Asia",
        "barcode": "8901234567001",
        "mrp": 20.0,
        "description": "Chocolate coated wafer bar",
        "ingredients_list": "sugar, wheat flour, cocoa butter, milk solids",
    },
    {
        "name": "Masala Crunch",
        "brand": "Snacko",
        "category": "Savoury Snacks",
        "industry": "Food & Beverage",
        "country": "India",
        "continents": "Asia",
        "barcode": "8901234567002",
        "mrp": 10.0,
        "is_regional_exclusive": True,
        "description": "Spiced potato chips",
        "ingredients_list": "potato, edible vegetable oil, spices, salt",
    },
    {
        "name": "Oat Milk Barista",
        "brand": "Nordic Oats",
        "category": "Dairy Alternatives",
        "industry": "Food & Beverage",
        "country": "Sweden",
        "continents": "Europe",
        "barcode": "7310865000003",
        "mrp": 3.5,
        "currency": "EUR",
        "description": "Oat drink for coffee",
        "ingredients_list": "water, oats, rapeseed oil, salt",
    },
]


async def seed_database() -> None:
    db = await init_db()
    try:
        if not await base.exists(db, USERS, SEED_USER_ID):
            await base.create(db, USERS, {"id": SEED_USER_ID, "full_name": "Seed Contributor"})
            print(f"  + user {SEED_USER_ID}")

        now = datetime.now(timezone.utc)
        rows = []
        for product in SAMPLE_PRODUCTS:
            if await find_by_barcode(db, product["barcode"]) is not None:
                print(f"  = {product['brand']} / {product['name']} (exists)")
                continue
            rows.append(
                {
                    **product,
                    "verification_status": VerificationStatus.VERIFIED,
                    "ai_confidence_score": 0.9,
                    "is_npd": True,
                    "first_discovered_by": SEED_USER_ID,
                    "discovery_date": now,
                }
            )
        created = await base.bulk_insert(db, PRODUCTS, rows)
        for p in created:
            print(f"  + {p.brand} / {p.name}")
    finally:
        await close_db(db)


if __name__ == "__main__":
    asyncio.run(seed_database())
