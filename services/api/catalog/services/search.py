"""Catalog search: ranked full-text search, faceted filtering, autocomplete.

Ranking (free-text queries):
1. ts_rank of the weighted search document against plainto_tsquery DESC
2. Then ai_confidence_score DESC
3. Then created_at DESC (newest first)

Without a free-text query results are ordered by created_at DESC.

Search document weights (english text-search configuration):
- name: A
- brand: B
- description: C
- ingredients_list: D

Facets are ANDed across dimensions; multi-value facets are ORed within a
dimension. Empty facet lists are ignored.
"""

from dataclasses import dataclass, field
from datetime import datetime
import logging
from typing import Any, Awaitable, Callable

from redis.exceptions import RedisError
from sqlalchemy import func, literal_column, select
from sqlalchemy.sql import ColumnElement

from catalog.errors import ValidationError
from catalog.models import Product, VerificationStatus
from catalog.query import Pagination, Range, build_where
from catalog.repositories import base
from catalog.repositories.base import Page
from catalog.repositories.products import PRODUCTS
from catalog.settings import get_settings
from catalog.stores.postgres import Database
from catalog.stores.redis import (
    get_autocomplete_cache,
    get_facets_cache,
    set_autocomplete_cache,
    set_facets_cache,
)

logger = logging.getLogger("uvicorn.error")

TS_CONFIG = literal_column("'english'::regconfig")

AUTOCOMPLETE_LIMIT = 10
FACET_LIMIT = 50

# Public field name -> column. Only these may be autocompleted.
AUTOCOMPLETE_FIELDS = {
    "name": Product.name,
    "brand": Product.brand,
    "category": Product.category,
    "country": Product.country,
    "industry": Product.industry,
    "sector": Product.sector,
    "continent": Product.continents,
}

# Response key -> column
FACET_FIELDS = {
    "categories": Product.category,
    "brands": Product.brand,
    "countries": Product.country,
}


@dataclass
class SearchFilters:
    """Free-text query plus facet selections."""

    query: str | None = None
    categories: list[str] = field(default_factory=list)
    brands: list[str] = field(default_factory=list)
    countries: list[str] = field(default_factory=list)
    countries_of_origin: list[str] = field(default_factory=list)
    verification_statuses: list[VerificationStatus] = field(default_factory=list)
    min_price: float | None = None
    max_price: float | None = None
    is_regional_exclusive: bool | None = None
    is_npd: bool | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None

    @property
    def text(self) -> str | None:
        q = (self.query or "").strip()
        return q or None

    def facet_filters(self) -> dict[str, Any]:
        """Repository filter mapping for the facet selections."""
        price = None
        if self.min_price is not None or self.max_price is not None:
            price = Range(self.min_price, self.max_price)
        created = None
        if self.date_from is not None or self.date_to is not None:
            created = Range(self.date_from, self.date_to)

        return {
            "category": self.categories or None,
            "brand": self.brands or None,
            "country": self.countries or None,
            "country_of_origin": self.countries_of_origin or None,
            "verification_status": self.verification_statuses or None,
            "mrp": price,
            "is_regional_exclusive": self.is_regional_exclusive,
            "is_npd": self.is_npd,
            "created_at": created,
        }


def search_document() -> ColumnElement[Any]:
    """Weighted tsvector over name/brand/description/ingredients_list.

    Must stay identical to the expression GIN index in the migrations.
    """

    def weighted(column: Any, weight: str) -> ColumnElement[Any]:
        return func.setweight(
            func.to_tsvector(TS_CONFIG, func.coalesce(column, literal_column("''"))),
            literal_column(f"'{weight}'"),
        )

    return (
        weighted(Product.name, "A")
        .op("||")(weighted(Product.brand, "B"))
        .op("||")(weighted(Product.description, "C"))
        .op("||")(weighted(Product.ingredients_list, "D"))
    )


def build_search_statements(filters: SearchFilters, limit: int, offset: int) -> tuple[Any, Any]:
    """(data statement, count statement) for a search."""
    where = build_where(PRODUCTS.fields, filters.facet_filters())
    data_stmt = where.apply(select(Product))
    count_stmt = where.apply(select(func.count()).select_from(Product))

    text = filters.text
    if text is not None:
        document = search_document()
        tsquery = func.plainto_tsquery(TS_CONFIG, text)
        match = document.op("@@")(tsquery)
        data_stmt = data_stmt.where(match).order_by(
            func.ts_rank(document, tsquery).desc(),
            Product.ai_confidence_score.desc(),
            Product.created_at.desc(),
        )
        count_stmt = count_stmt.where(match)
    else:
        data_stmt = data_stmt.order_by(Product.created_at.desc())

    return data_stmt.limit(limit).offset(offset), count_stmt


async def search(
    db: Database,
    filters: SearchFilters,
    pagination: Pagination | None = None,
    *,
    timeout: float | None = None,
) -> Page[Product]:
    """Ranked, faceted catalog search.

    Args:
        db: Database handle.
        filters: Free-text query and facet selections.
        pagination: page+limit or offset+limit; limit defaults to the
            configured search page size and is capped at the max.
        timeout: Per-query timeout in seconds (defaults to settings).

    Returns:
        Page of products; `total` ignores pagination.
    """
    settings = get_settings()
    pagination = pagination or Pagination(page=1)
    limit = min(pagination.limit or settings.search_default_limit, settings.search_max_limit)
    if pagination.offset is not None:
        offset = pagination.offset
    else:
        offset = ((pagination.page or 1) - 1) * limit

    data_stmt, count_stmt = build_search_statements(filters, limit, offset)
    if timeout is None:
        timeout = settings.search_timeout
    page = await base.fetch_page(db, data_stmt, count_stmt, timeout=timeout)
    logger.debug(f"Search q={filters.text!r}: {len(page.items)} of {page.total}")
    return page


async def autocomplete(
    db: Database,
    prefix: str,
    field: str = "name",
    *,
    timeout: float | None = None,
) -> list[str]:
    """Up to 10 distinct values of `field` containing `prefix` (verified products only)."""
    column = AUTOCOMPLETE_FIELDS.get(field)
    if column is None:
        raise ValidationError(
            f"Autocomplete is not supported for field '{field}'",
            {"field": field, "allowed": sorted(AUTOCOMPLETE_FIELDS)},
        )
    prefix = (prefix or "").strip()
    if not prefix:
        return []

    cached = await _cache_read(get_autocomplete_cache, field, prefix)
    if cached is not None:
        return cached

    stmt = (
        select(column)
        .distinct()
        .where(column.icontains(prefix, autoescape=True))
        .where(column.is_not(None))
        .where(column != "")
        .where(Product.verification_status == VerificationStatus.VERIFIED)
        .order_by(column)
        .limit(AUTOCOMPLETE_LIMIT)
    )
    rows = await base.fetch_rows(db, stmt, timeout=timeout)
    values = [row[0] for row in rows if row[0]]

    await _cache_write(set_autocomplete_cache, field, prefix, values)
    return values


def _facet_statement(column: Any) -> Any:
    n = func.count().label("count")
    return (
        select(column.label("value"), n)
        .where(column.is_not(None))
        .where(Product.verification_status == VerificationStatus.VERIFIED)
        .group_by(column)
        .order_by(n.desc(), column)
        .limit(FACET_LIMIT)
    )


async def facet_counts(db: Database, *, timeout: float | None = None) -> dict[str, list[dict[str, Any]]]:
    """Top values with counts per facet dimension among verified products.

    Returns:
        {"categories": [{"value", "count"}...], "brands": [...], "countries": [...]}
    """
    cached = await _cache_read(get_facets_cache)
    if cached is not None:
        return cached

    results = await base.run_concurrently(
        *(base.fetch_rows(db, _facet_statement(col), timeout=timeout) for col in FACET_FIELDS.values())
    )
    payload = {
        key: [{"value": row[0], "count": int(row[1])} for row in rows]
        for key, rows in zip(FACET_FIELDS, results)
    }

    await _cache_write(set_facets_cache, payload)
    return payload


async def _cache_read(getter: Callable[..., Awaitable[Any]], *args: Any) -> Any:
    if not get_settings().cache_enabled:
        return None
    try:
        return await getter(*args)
    except RuntimeError:
        # Redis not initialized
        return None
    except (RedisError, ValueError) as e:
        logger.warning(f"Search cache read failed: {e}")
        return None


async def _cache_write(setter: Callable[..., Awaitable[None]], *args: Any) -> None:
    if not get_settings().cache_enabled:
        return
    try:
        await setter(*args)
    except RuntimeError:
        return
    except RedisError as e:
        logger.warning(f"Search cache write failed: {e}")
