"""Shared fixtures: a throwaway SQLite database behind the Database handle.

Postgres-only pieces (pg_trgm similarity) are stood in for by Python
functions registered on each SQLite connection.
"""

from datetime import datetime, timedelta, timezone
import re
from typing import Any

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine

from catalog.models import NpdSubmission, Product, User, VerificationStatus
from catalog.stores.postgres import Database

_WORD = re.compile(r"[0-9a-z]+")

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _trigrams(value: str) -> set[str]:
    grams: set[str] = set()
    for word in _WORD.findall(value.lower()):
        padded = f"  {word} "
        grams.update(padded[i : i + 3] for i in range(len(padded) - 2))
    return grams


def trgm_similarity(a: str | None, b: str | None) -> float | None:
    """pg_trgm similarity(): shared trigrams / union of trigrams."""
    if a is None or b is None:
        return None
    ta, tb = _trigrams(a), _trigrams(b)
    if not ta or not tb:
        return 0.0
    return len(ta & tb) / len(ta | tb)


@pytest.fixture
async def db(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _register_functions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.create_function("similarity", 2, trgm_similarity)

    database = Database(engine)
    await database.create_tables()
    yield database
    await database.dispose()


def product_row(name: str, brand: str, i: int = 0, **extra: Any) -> dict[str, Any]:
    """Verified product with a distinct, increasing created_at."""
    row: dict[str, Any] = {
        "name": name,
        "brand": brand,
        "verification_status": VerificationStatus.VERIFIED,
        "created_at": BASE_TIME + timedelta(minutes=i),
    }
    row.update(extra)
    return row


async def add_products(db: Database, *rows: dict[str, Any]) -> list[Product]:
    async with db.session() as session:
        products = [Product(**row) for row in rows]
        session.add_all(products)
    return products


async def add_user(db: Database, **extra: Any) -> User:
    async with db.session() as session:
        user = User(full_name=extra.pop("full_name", "Test Contributor"), **extra)
        session.add(user)
    return user


async def add_submissions(db: Database, *rows: dict[str, Any]) -> list[NpdSubmission]:
    async with db.session() as session:
        submissions = [NpdSubmission(**row) for row in rows]
        session.add_all(submissions)
    return submissions
