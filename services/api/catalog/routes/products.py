"""Product search endpoints.

GET /v1/products/search        - Ranked, faceted search
GET /v1/products/autocomplete  - Suggestions for one field
GET /v1/products/facets        - Facet values with counts
GET /v1/products/{product_id}  - Single product

Routers are thin: call services for business logic.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from catalog.models import VerificationStatus
from catalog.query import Pagination
from catalog.repositories import base
from catalog.repositories.products import PRODUCTS
from catalog.schemas import (
    AutocompleteResponse,
    FacetsResponse,
    ProductOut,
    ProductSearchResponse,
)
from catalog.services.search import SearchFilters, autocomplete, facet_counts, search
from catalog.settings import get_settings
from catalog.routes.deps import get_db
from catalog.stores.postgres import Database

router = APIRouter()


@router.get("/search", response_model=ProductSearchResponse)
async def search_products(
    q: str | None = Query(default=None, description="Free-text query", max_length=200),
    category: list[str] = Query(default=[]),
    brand: list[str] = Query(default=[]),
    country: list[str] = Query(default=[]),
    country_of_origin: list[str] = Query(default=[], alias="countryOfOrigin"),
    verification_status: list[VerificationStatus] = Query(default=[], alias="verificationStatus"),
    min_price: float | None = Query(default=None, alias="minPrice", ge=0),
    max_price: float | None = Query(default=None, alias="maxPrice", ge=0),
    is_regional_exclusive: bool | None = Query(default=None, alias="isRegionalExclusive"),
    is_npd: bool | None = Query(default=None, alias="isNpd"),
    date_from: datetime | None = Query(default=None, alias="dateFrom"),
    date_to: datetime | None = Query(default=None, alias="dateTo"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=100),
    db: Database = Depends(get_db),
) -> ProductSearchResponse:
    """Search the catalog.

    Returns:
        ProductSearchResponse; total ignores pagination.
    """
    limit = limit or get_settings().search_default_limit
    filters = SearchFilters(
        query=q,
        categories=category,
        brands=brand,
        countries=country,
        countries_of_origin=country_of_origin,
        verification_statuses=verification_status,
        min_price=min_price,
        max_price=max_price,
        is_regional_exclusive=is_regional_exclusive,
        is_npd=is_npd,
        date_from=date_from,
        date_to=date_to,
    )
    result = await search(db, filters, Pagination(page=page, limit=limit))
    return ProductSearchResponse(
        items=[ProductOut.model_validate(p) for p in result.items],
        total=result.total,
        page=page,
        limit=limit,
        total_pages=result.total_pages(limit),
    )


@router.get("/autocomplete", response_model=AutocompleteResponse)
async def autocomplete_products(
    q: str = Query(description="Text to match", min_length=1, max_length=100),
    field: str = Query(default="name", description="Field to suggest values for"),
    db: Database = Depends(get_db),
) -> AutocompleteResponse:
    suggestions = await autocomplete(db, q, field)
    return AutocompleteResponse(field=field, suggestions=suggestions)


@router.get("/facets", response_model=FacetsResponse)
async def get_facets(db: Database = Depends(get_db)) -> FacetsResponse:
    return FacetsResponse.model_validate(await facet_counts(db))


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(product_id: UUID, db: Database = Depends(get_db)) -> ProductOut:
    product = await base.get_by_id(db, PRODUCTS, product_id)
    return ProductOut.model_validate(product)
