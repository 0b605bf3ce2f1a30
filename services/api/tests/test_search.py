from datetime import timedelta

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.dialects import postgresql

from catalog.errors import ValidationError
from catalog.models import VerificationStatus
from catalog.query import Pagination
from catalog.services import search as search_service
from catalog.services.search import (
    SearchFilters,
    autocomplete,
    build_search_statements,
    facet_counts,
    search,
)

from conftest import BASE_TIME, add_products, product_row


def _pg(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


async def _catalog(db):
    return await add_products(
        db,
        product_row("Choco Munch", "ABC", 0, category="Snacks", country="India", mrp=20, is_npd=True),
        product_row("Choco Pie", "Lotte", 1, category="Snacks", country="Korea", mrp=15),
        product_row(
            "Masala Crunch", "Snacko", 2, category="Snacks", country="India", mrp=10, is_regional_exclusive=True
        ),
        product_row("Oat Milk", "Nordic", 3, category="Drinks", country="Sweden", mrp=3.5),
        product_row("Mango Lassi", "Amul", 4, category="Drinks", country="India", mrp=25, country_of_origin="India"),
        product_row(
            "Chocolate Slab",
            "ABC",
            5,
            category="Snacks",
            country="India",
            verification_status=VerificationStatus.PENDING,
        ),
        product_row("100% Juice", "Fresh", 6, category="Drinks", country="India"),
    )


@pytest.mark.asyncio
async def test_search_without_text_orders_newest_first(db):
    await _catalog(db)
    page = await search(db, SearchFilters(), Pagination(page=1, limit=3))
    assert page.total == 7
    assert [p.name for p in page.items] == ["100% Juice", "Chocolate Slab", "Mango Lassi"]


@pytest.mark.asyncio
async def test_facets_and_across_dimensions_or_within(db):
    await _catalog(db)
    filters = SearchFilters(categories=["Snacks", "Drinks"], countries=["India"])
    page = await search(db, filters)

    assert {p.name for p in page.items} == {
        "Choco Munch",
        "Masala Crunch",
        "Mango Lassi",
        "Chocolate Slab",
        "100% Juice",
    }
    assert page.total == 5


@pytest.mark.asyncio
async def test_empty_facet_lists_are_ignored(db):
    await _catalog(db)
    page = await search(db, SearchFilters(categories=[], brands=[], countries=[]))
    assert page.total == 7


@pytest.mark.asyncio
async def test_price_range_and_flags(db):
    await _catalog(db)

    page = await search(db, SearchFilters(min_price=10, max_price=20))
    assert {p.name for p in page.items} == {"Choco Munch", "Choco Pie", "Masala Crunch"}

    page = await search(db, SearchFilters(is_regional_exclusive=True))
    assert [p.name for p in page.items] == ["Masala Crunch"]

    page = await search(db, SearchFilters(is_npd=True))
    assert [p.name for p in page.items] == ["Choco Munch"]


@pytest.mark.asyncio
async def test_status_origin_and_date_facets(db):
    await _catalog(db)

    page = await search(db, SearchFilters(verification_statuses=[VerificationStatus.PENDING]))
    assert [p.name for p in page.items] == ["Chocolate Slab"]

    page = await search(db, SearchFilters(countries_of_origin=["India"]))
    assert [p.name for p in page.items] == ["Mango Lassi"]

    page = await search(
        db,
        SearchFilters(date_from=BASE_TIME + timedelta(minutes=1), date_to=BASE_TIME + timedelta(minutes=2)),
    )
    assert {p.name for p in page.items} == {"Choco Pie", "Masala Crunch"}


@pytest.mark.asyncio
async def test_search_total_ignores_pagination(db):
    await _catalog(db)
    page = await search(db, SearchFilters(countries=["India"]), Pagination(page=2, limit=2))
    assert page.total == 5
    assert len(page.items) == 2
    assert page.total_pages(2) == 3


def test_text_search_statement_ranks_by_relevance_then_confidence_then_recency():
    data_stmt, count_stmt = build_search_statements(SearchFilters(query="choco munch"), 20, 0)
    sql = _pg(data_stmt)

    assert "plainto_tsquery('english'::regconfig" in sql
    assert "@@" in sql
    assert "setweight(to_tsvector('english'::regconfig, coalesce(products.name, '')), 'A')" in sql
    assert "coalesce(products.brand, '')), 'B')" in sql
    assert "coalesce(products.description, '')), 'C')" in sql
    assert "coalesce(products.ingredients_list, '')), 'D')" in sql
    order_by = sql.split("ORDER BY")[1]
    assert order_by.index("ts_rank(") < order_by.index("products.ai_confidence_score DESC")
    assert order_by.index("products.ai_confidence_score DESC") < order_by.index("products.created_at DESC")
    assert "choco munch" not in sql

    count_sql = _pg(count_stmt)
    assert "count(*)" in count_sql
    assert "@@" in count_sql
    assert "ORDER BY" not in count_sql


def test_text_search_combines_with_facets():
    data_stmt, _ = build_search_statements(
        SearchFilters(query="lassi", categories=["Drinks"], min_price=5), 10, 10
    )
    sql = _pg(data_stmt)
    assert "products.category IN" in sql
    assert "products.mrp >=" in sql
    assert "LIMIT" in sql and "OFFSET" in sql


def test_blank_query_is_not_a_text_search():
    data_stmt, _ = build_search_statements(SearchFilters(query="   "), 20, 0)
    sql = _pg(data_stmt)
    assert "plainto_tsquery" not in sql
    assert sql.rstrip().split("ORDER BY")[1].strip().startswith("products.created_at DESC")


@pytest.mark.asyncio
async def test_search_limit_defaults_and_is_capped(db):
    await add_products(db, *(product_row(f"P{i:03d}", "B", i) for i in range(120)))

    page = await search(db, SearchFilters())
    assert len(page.items) == 20

    page = await search(db, SearchFilters(), Pagination(page=1, limit=500))
    assert len(page.items) == 100
    assert page.total == 120


@pytest.mark.asyncio
async def test_autocomplete_contains_match_verified_distinct_sorted(db):
    await _catalog(db)
    await add_products(db, product_row("Choco Munch", "ABC", 10))  # duplicate value

    assert await autocomplete(db, "choco", "name") == ["Choco Munch", "Choco Pie"]
    assert await autocomplete(db, "ABC", "brand") == ["ABC"]
    assert await autocomplete(db, "asia", "continent") == []


@pytest.mark.asyncio
async def test_autocomplete_escapes_like_wildcards(db):
    await _catalog(db)
    assert await autocomplete(db, "%", "name") == ["100% Juice"]
    assert await autocomplete(db, "_", "name") == []


@pytest.mark.asyncio
async def test_autocomplete_is_capped_at_ten(db):
    await add_products(db, *(product_row(f"Tea {i:02d}", "Leaf", i) for i in range(15)))
    values = await autocomplete(db, "tea", "name")
    assert values == [f"Tea {i:02d}" for i in range(10)]


@pytest.mark.asyncio
async def test_autocomplete_rejects_unknown_field(db):
    with pytest.raises(ValidationError):
        await autocomplete(db, "x", "description")


@pytest.mark.asyncio
async def test_autocomplete_blank_prefix_returns_nothing(db):
    await _catalog(db)
    assert await autocomplete(db, "  ", "name") == []


@pytest.mark.asyncio
async def test_facet_counts_verified_only_by_frequency_then_value(db):
    await _catalog(db)
    facets = await facet_counts(db)

    assert facets["categories"] == [
        {"value": "Drinks", "count": 3},
        {"value": "Snacks", "count": 3},
    ]
    assert facets["brands"][0] == {"value": "ABC", "count": 1}
    assert {"value": "India", "count": 4} == facets["countries"][0]


@pytest.mark.asyncio
async def test_facet_counts_top_fifty(db):
    await add_products(db, *(product_row(f"P{i}", f"Brand {i:02d}", i) for i in range(55)))
    facets = await facet_counts(db)
    assert len(facets["brands"]) == 50
    assert facets["categories"] == []


@pytest.mark.asyncio
async def test_facet_counts_served_from_cache(db, monkeypatch: pytest.MonkeyPatch):
    cached = {"categories": [{"value": "Cached", "count": 9}], "brands": [], "countries": []}

    async def fake_get_facets_cache():
        return cached

    monkeypatch.setattr(search_service, "get_facets_cache", fake_get_facets_cache)
    assert await facet_counts(db) == cached


@pytest.mark.asyncio
async def test_cache_failures_fall_back_to_database(db, monkeypatch: pytest.MonkeyPatch):
    await _catalog(db)
    writes = []

    async def broken_get(*args):
        raise RedisConnectionError("redis down")

    async def broken_set(*args):
        writes.append(args)
        raise RedisConnectionError("redis down")

    monkeypatch.setattr(search_service, "get_autocomplete_cache", broken_get)
    monkeypatch.setattr(search_service, "set_autocomplete_cache", broken_set)

    assert await autocomplete(db, "choco", "name") == ["Choco Munch", "Choco Pie"]
    assert writes == [("name", "choco", ["Choco Munch", "Choco Pie"])]
