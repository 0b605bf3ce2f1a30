#!/usr/bin/env python3
"""Recompute every contributor's tier and quality score.

Schedule:
- Run once per day as a cron job, after the day's review decisions.

Behavior:
- Walks users in id order, one page at a time.
- For each user, aggregates their submissions and persists user_tier /
  quality_score (tiers can go down as well as up).

Run:
  cd services/api
  python -m scripts.recompute_tiers

Optional env vars:
  RECOMPUTE_BATCH=500
"""

import asyncio
from collections import Counter
import logging
import os
import sys

# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from catalog.errors import CatalogError  # noqa: E402
from catalog.query import Pagination, Sort, SortDirection  # noqa: E402
from catalog.repositories import base  # noqa: E402
from catalog.repositories.users import USERS  # noqa: E402
from catalog.services.tiers import compute_tier  # noqa: E402
from catalog.stores.postgres import Database, close_db, init_db  # noqa: E402

logger = logging.getLogger("uvicorn.error")


async def recompute_all(db: Database, batch_size: int = 500) -> dict:
    """Recompute tiers for all users; returns counts per resulting tier."""
    tiers: Counter[str] = Counter()
    errors = 0
    page = 1
    while True:
        result = await base.find(
            db,
            USERS,
            sorts=[Sort("id", SortDirection.ASC)],
            pagination=Pagination(page=page, limit=batch_size),
        )
        for user in result.items:
            try:
                state = await compute_tier(db, user.id)
            except CatalogError as e:
                logger.warning(f"Tier recompute failed for user {user.id}: {e.message}")
                errors += 1
                continue
            tiers[state.tier.value] += 1
        if len(result.items) < batch_size:
            break
        page += 1
    return {"users": sum(tiers.values()), "errors": errors, "tiers": dict(tiers)}


async def main() -> None:
    db = await init_db()
    try:
        batch_size = int(os.getenv("RECOMPUTE_BATCH", "500"))
        summary = await recompute_all(db, batch_size=batch_size)
        # Final output for cron logs (single JSON-ish blob)
        print({"ok": True, **summary})
    finally:
        await close_db(db)


if __name__ == "__main__":
    asyncio.run(main())
