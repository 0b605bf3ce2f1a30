import asyncio
import logging
import uuid

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool

from catalog.errors import (
    DatabaseError,
    DuplicateError,
    NotFoundError,
    PoolTimeoutError,
    QueryTimeoutError,
    ValidationError,
)
from catalog.models import NpdSubmission, Product, VerificationStatus
from catalog.query import Pagination, Sort, SortDirection
from catalog.repositories import base
from catalog.repositories.products import (
    PRODUCTS,
    find_by_barcode,
    products_discovered_by,
    recent_npd_products,
    update_verification_status,
)
from catalog.repositories.users import USERS
from catalog.stores.postgres import Database

from conftest import add_products, add_user, product_row


async def _catalog(db):
    return await add_products(
        db,
        product_row("Choco Munch", "ABC", 0, category="Snacks", country="India", mrp=20),
        product_row("Masala Crunch", "Snacko", 1, category="Snacks", country="India", mrp=10),
        product_row("Oat Milk", "Nordic", 2, category="Drinks", country="Sweden", mrp=3.5),
        product_row("Mango Lassi", "Amul", 3, category="Drinks", country="India", mrp=25),
        product_row("Paneer", "Amul", 4, category="Dairy", country="India", mrp=80),
    )


@pytest.mark.asyncio
async def test_find_returns_only_rows_matching_every_filter(db):
    await _catalog(db)
    page = await base.find(db, PRODUCTS, {"category": ["Snacks", "Drinks"], "country": "India"})

    assert page.total == 3
    assert {p.name for p in page.items} == {"Choco Munch", "Masala Crunch", "Mango Lassi"}
    for p in page.items:
        assert p.category in ("Snacks", "Drinks") and p.country == "India"


@pytest.mark.asyncio
async def test_find_partial_match_is_case_insensitive(db):
    await _catalog(db)
    page = await base.find(db, PRODUCTS, {"name": "%CRUNCH%"})
    assert [p.name for p in page.items] == ["Masala Crunch"]


@pytest.mark.asyncio
async def test_find_pagination_matches_slice_and_total_ignores_it(db):
    await add_products(db, *(product_row(f"Product {i:02d}", "Brand", i) for i in range(25)))
    sorts = [Sort("name", SortDirection.ASC)]

    everything = await base.find(db, PRODUCTS, sorts=sorts)
    page2 = await base.find(db, PRODUCTS, sorts=sorts, pagination=Pagination(page=2, limit=10))
    page3 = await base.find(db, PRODUCTS, sorts=sorts, pagination=Pagination(page=3, limit=10))

    assert page2.total == 25
    assert [p.id for p in page2.items] == [p.id for p in everything.items[10:20]]
    assert len(page3.items) == 5
    assert page2.total_pages(10) == 3


@pytest.mark.asyncio
async def test_find_defaults_to_primary_key_desc(db):
    products = await _catalog(db)
    page = await base.find(db, PRODUCTS)
    assert [p.id for p in page.items] == sorted((p.id for p in products), reverse=True)


@pytest.mark.asyncio
async def test_find_by_id_and_get_by_id(db):
    products = await _catalog(db)
    found = await base.find_by_id(db, PRODUCTS, products[0].id)
    assert found is not None and found.name == "Choco Munch"

    assert await base.find_by_id(db, PRODUCTS, uuid.uuid4()) is None
    with pytest.raises(NotFoundError):
        await base.get_by_id(db, PRODUCTS, uuid.uuid4())


@pytest.mark.asyncio
async def test_count_and_exists(db):
    products = await _catalog(db)
    assert await base.count(db, PRODUCTS) == 5
    assert await base.count(db, PRODUCTS, {"brand": "Amul"}) == 2
    assert await base.exists(db, PRODUCTS, products[1].id)
    assert not await base.exists(db, PRODUCTS, uuid.uuid4())


@pytest.mark.asyncio
async def test_create_returns_row_with_defaults(db):
    product = await base.create(db, PRODUCTS, {"name": "Kulfi", "brand": "Amul"})
    assert isinstance(product.id, uuid.UUID)
    assert product.verification_status == VerificationStatus.PENDING
    assert product.created_at is not None


@pytest.mark.asyncio
async def test_create_minimal_product_leaves_json_columns_null(db):
    product = await base.create(db, PRODUCTS, {"name": "Choco Munch", "brand": "ABC"})
    assert product.availability_regions is None
    assert product.nutritional_info is None

    async with db.session() as session:
        result = await session.execute(
            text(
                "SELECT COUNT(*) FROM products "
                "WHERE availability_regions IS NULL AND standardized_ingredients IS NULL "
                "AND nutritional_info IS NULL AND allergen_info IS NULL "
                "AND dietary_preferences IS NULL"
            )
        )
        assert result.scalar() == 1


def test_json_columns_are_nullable():
    for table, names in (
        (
            Product.__table__,
            ("availability_regions", "standardized_ingredients", "nutritional_info", "allergen_info", "dietary_preferences"),
        ),
        (NpdSubmission.__table__, ("raw_submission_data", "submission_location")),
    ):
        for name in names:
            assert table.c[name].nullable, f"{table.name}.{name}"


@pytest.mark.asyncio
async def test_create_rejects_read_only_fields(db):
    with pytest.raises(ValidationError):
        await base.create(db, PRODUCTS, {"name": "Kulfi", "brand": "Amul", "created_at": None})


@pytest.mark.asyncio
async def test_create_unique_violation_is_duplicate(db):
    user_id = uuid.uuid4()
    await base.create(db, USERS, {"id": user_id, "full_name": "A"})
    with pytest.raises(DuplicateError):
        await base.create(db, USERS, {"id": user_id, "full_name": "B"})


@pytest.mark.asyncio
async def test_update(db):
    products = await _catalog(db)
    updated = await base.update(db, PRODUCTS, products[0].id, {"brand": "ABC Foods"})
    assert updated.brand == "ABC Foods"
    assert (await base.get_by_id(db, PRODUCTS, products[0].id)).brand == "ABC Foods"


@pytest.mark.asyncio
async def test_update_with_empty_patch_is_validation_error(db):
    products = await _catalog(db)
    with pytest.raises(ValidationError):
        await base.update(db, PRODUCTS, products[0].id, {})


@pytest.mark.asyncio
async def test_update_missing_row_is_not_found(db):
    with pytest.raises(NotFoundError):
        await base.update(db, PRODUCTS, uuid.uuid4(), {"brand": "x"})


@pytest.mark.asyncio
async def test_delete(db):
    products = await _catalog(db)
    assert await base.delete(db, PRODUCTS, products[0].id) is True
    assert await base.delete(db, PRODUCTS, products[0].id) is False
    assert await base.count(db, PRODUCTS) == 4


@pytest.mark.asyncio
async def test_bulk_insert_empty_is_noop(db):
    assert await base.bulk_insert(db, PRODUCTS, []) == []
    assert await base.count(db, PRODUCTS) == 0


@pytest.mark.asyncio
async def test_bulk_insert_inserts_all(db):
    rows = await base.bulk_insert(
        db,
        PRODUCTS,
        [{"name": "A", "brand": "X"}, {"name": "B", "brand": "X"}, {"name": "C", "brand": "Y"}],
    )
    assert len(rows) == 3
    assert await base.count(db, PRODUCTS, {"brand": "X"}) == 2


@pytest.mark.asyncio
async def test_bulk_insert_is_all_or_nothing(db):
    items = [{"name": f"Item {i}", "brand": "X"} for i in range(4)]
    items.append({"name": None, "brand": "X"})  # NOT NULL violation

    with pytest.raises(DatabaseError):
        await base.bulk_insert(db, PRODUCTS, items)
    assert await base.count(db, PRODUCTS) == 0


@pytest.mark.asyncio
async def test_bulk_insert_validates_fields_before_writing(db):
    with pytest.raises(ValidationError):
        await base.bulk_insert(db, PRODUCTS, [{"name": "A", "brand": "X"}, {"name": "B", "nope": 1}])
    assert await base.count(db, PRODUCTS) == 0


@pytest.mark.asyncio
async def test_run_timeout_raises_query_timeout(db):
    with pytest.raises(QueryTimeoutError) as exc_info:
        await db.run(asyncio.sleep(1), sql="SELECT pg_sleep(1)", timeout=0.01)
    assert exc_info.value.sqlstate == "TIMEOUT"
    assert isinstance(exc_info.value, DatabaseError)


@pytest.mark.asyncio
async def test_pool_exhaustion_raises_pool_timeout(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'pool.db'}",
        poolclass=AsyncAdaptedQueuePool,
        pool_size=1,
        max_overflow=0,
        pool_timeout=0.2,
    )
    small = Database(engine)
    await small.create_tables()
    try:
        async with small.session() as holder:
            # Checks out the only pooled connection until the session ends.
            await small.execute(holder, text("SELECT 1"))
            with pytest.raises(PoolTimeoutError) as exc_info:
                await base.count(small, PRODUCTS)
        assert isinstance(exc_info.value, DatabaseError)
        assert await base.count(small, PRODUCTS) == 0
    finally:
        await small.dispose()


@pytest.mark.asyncio
async def test_commit_failure_is_logged_with_last_statement(db, caplog):
    existing = await base.create(db, PRODUCTS, {"name": "Kulfi", "brand": "Amul"})

    caplog.set_level(logging.ERROR, logger="uvicorn.error")
    with pytest.raises(DatabaseError) as exc_info:
        async with db.session() as session:
            await db.execute(session, text("SELECT 1"))
            # Flushed (and rejected) only at commit.
            session.add(Product(id=existing.id, name="Kulfi", brand="Amul"))

    assert exc_info.value.sqlstate == "23505"
    messages = [r.getMessage() for r in caplog.records]
    assert any("Query failed [23505]: COMMIT after SELECT 1 (" in m for m in messages)


@pytest.mark.asyncio
async def test_storage_failure_is_wrapped_without_provider_text(db, caplog):
    from sqlalchemy import text

    caplog.set_level(logging.ERROR, logger="uvicorn.error")
    with pytest.raises(DatabaseError) as exc_info:
        async with db.session() as session:
            await db.execute(session, text("SELECT * FROM no_such_table"))

    assert exc_info.value.message == "Database operation failed"
    assert "no_such_table" not in exc_info.value.message
    assert any("Query failed" in r.getMessage() for r in caplog.records)


def test_logged_query_text_is_truncated(db):
    logged = db._truncate("SELECT " + "x, " * 200)
    assert len(logged) == db.log_query_chars + 3
    assert logged.endswith("...")


@pytest.mark.asyncio
async def test_run_concurrently_cancels_siblings_on_failure():
    cancelled = asyncio.Event()

    async def slow():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    async def boom():
        await asyncio.sleep(0)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await base.run_concurrently(slow(), boom())
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_product_helpers(db):
    user = await add_user(db)
    products = await add_products(
        db,
        product_row("Choco Munch", "ABC", 0, barcode="890001", is_npd=True, first_discovered_by=user.id),
        product_row("Pending Bar", "ABC", 1, barcode="890002", verification_status=VerificationStatus.PENDING),
        product_row("Old Staple", "ABC", 2, is_npd=False),
    )

    assert (await find_by_barcode(db, "890001")).id == products[0].id
    assert await find_by_barcode(db, "890002") is None  # not verified

    discovered = await products_discovered_by(db, user.id)
    assert [p.id for p in discovered] == [products[0].id]

    recent = await recent_npd_products(db, limit=5)
    assert [p.name for p in recent] == ["Choco Munch"]

    flagged = await update_verification_status(db, products[1].id, VerificationStatus.FLAGGED, 0.4)
    assert flagged.verification_status == VerificationStatus.FLAGGED
    assert flagged.ai_confidence_score == 0.4
    assert flagged.last_verified_at is not None


@pytest.mark.asyncio
async def test_repository_rows_are_plain_models(db):
    await _catalog(db)
    page = await base.find(db, PRODUCTS, pagination=Pagination(limit=1))
    assert isinstance(page.items[0], Product)
