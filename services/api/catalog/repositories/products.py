"""Product `EntitySpec` and product-specific data access."""

from datetime import datetime, timezone
from typing import Any
import uuid

from sqlalchemy import select

from catalog.models import Product, VerificationStatus
from catalog.query import EntitySpec, FieldRegistry, Pagination, Sort, SortDirection
from catalog.repositories import base
from catalog.stores.postgres import Database

# Descriptive/JSON columns are excluded from filtering and sorting.
PRODUCT_FILTER_FIELDS = (
    "id",
    "name",
    "product_id",
    "brand",
    "industry",
    "sector",
    "sub_sector",
    "segment",
    "sub_segment",
    "category",
    "continents",
    "country",
    "geo",
    "country_of_origin",
    "is_regional_exclusive",
    "barcode",
    "product_code",
    "sku",
    "flavour",
    "currency",
    "mrp",
    "company_name",
    "standardized_company_name",
    "manufacturer",
    "distributor",
    "retailer",
    "source_name",
    "year",
    "verification_status",
    "ai_confidence_score",
    "first_discovered_by",
    "discovery_date",
    "is_npd",
    "created_at",
    "updated_at",
)

PRODUCT_SORT_FIELDS = (
    "id",
    "name",
    "brand",
    "category",
    "country",
    "mrp",
    "verification_status",
    "ai_confidence_score",
    "submission_count",
    "discovery_date",
    "regional_popularity_score",
    "created_at",
    "updated_at",
)

PRODUCTS: EntitySpec[Product] = EntitySpec(
    model=Product,
    fields=FieldRegistry.for_model(
        Product,
        filterable=PRODUCT_FILTER_FIELDS,
        sortable=PRODUCT_SORT_FIELDS,
    ),
)


async def find_by_barcode(db: Database, barcode: str) -> Product | None:
    """Verified product with this barcode, if any."""
    stmt = (
        select(Product)
        .where(Product.barcode == barcode)
        .where(Product.verification_status == VerificationStatus.VERIFIED)
        .limit(1)
    )
    rows = await base.fetch_all(db, stmt)
    return rows[0] if rows else None


async def update_verification_status(
    db: Database,
    product_id: uuid.UUID,
    status: VerificationStatus,
    confidence_score: float | None = None,
) -> Product:
    """Set verification status (stamping last_verified_at) and optionally the AI confidence."""
    patch: dict[str, Any] = {
        "verification_status": status,
        "last_verified_at": datetime.now(timezone.utc),
    }
    if confidence_score is not None:
        patch["ai_confidence_score"] = confidence_score
    return await base.update(db, PRODUCTS, product_id, patch)


async def products_discovered_by(db: Database, user_id: uuid.UUID) -> list[Product]:
    """NPD products first discovered by a contributor, newest discovery first."""
    page = await base.find(
        db,
        PRODUCTS,
        {"first_discovered_by": user_id, "is_npd": True},
        [Sort("discovery_date", SortDirection.DESC)],
    )
    return page.items


async def recent_npd_products(db: Database, limit: int = 20) -> list[Product]:
    page = await base.find(
        db,
        PRODUCTS,
        {"is_npd": True, "verification_status": VerificationStatus.VERIFIED},
        [Sort("discovery_date", SortDirection.DESC)],
        Pagination(limit=limit),
    )
    return page.items
