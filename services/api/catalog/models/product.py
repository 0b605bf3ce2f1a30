"""Product model.

A catalog record: name + brand plus descriptive fields covering the category
hierarchy, geography, ingredients/nutrition and commercial information.

(name, brand) is deliberately NOT unique: duplicate detection is a soft gate
in the submission workflow, not a storage constraint.
"""

from datetime import date, datetime
from typing import Any
import uuid

from sqlalchemy import JSON, Boolean, Date, DateTime, Enum, Float, ForeignKey, Integer, Numeric, String, Text, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from catalog.models.enums import VerificationStatus, enum_values
from catalog.stores.postgres import Base

# None is stored as SQL NULL, not JSON null.
JsonType = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class Product(Base):
    """Catalog product."""

    __tablename__ = "products"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Basic info
    name: Mapped[str] = mapped_column(String(500))
    product_id: Mapped[str | None] = mapped_column(String(100))  # external/legacy id
    brand: Mapped[str] = mapped_column(String(255), index=True)
    description: Mapped[str | None] = mapped_column(Text)

    # Category hierarchy
    industry: Mapped[str | None] = mapped_column(String(100))
    sector: Mapped[str | None] = mapped_column(String(100))
    sub_sector: Mapped[str | None] = mapped_column(String(100))
    segment: Mapped[str | None] = mapped_column(String(100))
    sub_segment: Mapped[str | None] = mapped_column(String(100))
    category: Mapped[str | None] = mapped_column(String(100), index=True)

    # Geography
    continents: Mapped[str | None] = mapped_column(String(255))
    country: Mapped[str | None] = mapped_column(String(100), index=True)
    geo: Mapped[str | None] = mapped_column(String(255))
    country_of_origin: Mapped[str | None] = mapped_column(String(100))
    availability_regions: Mapped[Any | None] = mapped_column(JsonType)
    is_regional_exclusive: Mapped[bool] = mapped_column(Boolean, default=False)

    # Identification
    barcode: Mapped[str | None] = mapped_column(String(50), index=True)
    product_code: Mapped[str | None] = mapped_column(String(100))
    sku: Mapped[str | None] = mapped_column(String(100))

    # Ingredients & nutrition
    ingredients_list: Mapped[str | None] = mapped_column(Text)
    standardized_ingredients: Mapped[Any | None] = mapped_column(JsonType)
    nutritional_info: Mapped[Any | None] = mapped_column(JsonType)
    calories: Mapped[str | None] = mapped_column(String(50))
    claims: Mapped[str | None] = mapped_column(Text)
    flavour: Mapped[str | None] = mapped_column(String(255))
    allergen_info: Mapped[Any | None] = mapped_column(JsonType)
    dietary_preferences: Mapped[Any | None] = mapped_column(JsonType)

    # Commercial
    price: Mapped[str | None] = mapped_column(String(50))  # as printed, free text
    volume_scale: Mapped[str | None] = mapped_column(String(100))
    volume_subscale: Mapped[str | None] = mapped_column(String(100))
    currency: Mapped[str] = mapped_column(String(3), default="INR")
    mrp: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False))
    pack_size: Mapped[str | None] = mapped_column(String(50))

    # Supply chain
    company_name: Mapped[str | None] = mapped_column(String(255))
    standardized_company_name: Mapped[str | None] = mapped_column(String(255))
    manufacturer: Mapped[str | None] = mapped_column(String(255))
    distributor: Mapped[str | None] = mapped_column(String(255))
    retailer: Mapped[str | None] = mapped_column(String(255))

    # Source & links
    product_link: Mapped[str | None] = mapped_column(Text)
    source_name: Mapped[str | None] = mapped_column(String(255))
    website_address: Mapped[str | None] = mapped_column(Text)

    # Dates
    manufacture_date: Mapped[date | None] = mapped_column(Date)
    expiry_date: Mapped[date | None] = mapped_column(Date)
    year: Mapped[str | None] = mapped_column(String(4))
    date_of_entry: Mapped[date | None] = mapped_column(Date)
    remarks: Mapped[str | None] = mapped_column(Text)

    # Platform metadata
    verification_status: Mapped[VerificationStatus] = mapped_column(
        Enum(VerificationStatus, name="verification_status", values_callable=enum_values),
        default=VerificationStatus.PENDING,
        index=True,
    )
    ai_confidence_score: Mapped[float] = mapped_column(Float, default=0.0)  # 0..1
    submission_count: Mapped[int] = mapped_column(Integer, default=0)
    last_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # NPD (new product discovery)
    first_discovered_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"))
    discovery_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_npd: Mapped[bool] = mapped_column(Boolean, default=False)
    regional_popularity_score: Mapped[float] = mapped_column(Float, default=0.0)  # 0..1

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product {self.brand} / {self.name}>"
