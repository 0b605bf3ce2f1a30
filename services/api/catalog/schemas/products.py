"""Schemas for product search endpoints (/v1/products)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from catalog.models import VerificationStatus


class ProductOut(BaseModel):
    """Catalog product as returned by search and lookup."""

    id: UUID
    name: str
    brand: str
    description: str | None = None
    product_id: str | None = Field(alias="productId", default=None)
    industry: str | None = None
    sector: str | None = None
    category: str | None = None
    continents: str | None = None
    country: str | None = None
    country_of_origin: str | None = Field(alias="countryOfOrigin", default=None)
    is_regional_exclusive: bool = Field(alias="isRegionalExclusive", default=False)
    barcode: str | None = None
    flavour: str | None = None
    ingredients_list: str | None = Field(alias="ingredientsList", default=None)
    pack_size: str | None = Field(alias="packSize", default=None)
    currency: str | None = None
    mrp: float | None = None
    company_name: str | None = Field(alias="companyName", default=None)
    manufacturer: str | None = None
    verification_status: VerificationStatus = Field(alias="verificationStatus")
    ai_confidence_score: float | None = Field(alias="aiConfidenceScore", default=None)
    is_npd: bool = Field(alias="isNpd", default=False)
    discovery_date: datetime | None = Field(alias="discoveryDate", default=None)
    created_at: datetime | None = Field(alias="createdAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class ProductSearchResponse(BaseModel):
    items: list[ProductOut]
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total_pages: int = Field(alias="totalPages", ge=0)

    model_config = {"populate_by_name": True}


class AutocompleteResponse(BaseModel):
    field: str
    suggestions: list[str]


class FacetValue(BaseModel):
    value: str
    count: int = Field(ge=0)


class FacetsResponse(BaseModel):
    """Top values per facet dimension (verified products only)."""

    categories: list[FacetValue]
    brands: list[FacetValue]
    countries: list[FacetValue]
