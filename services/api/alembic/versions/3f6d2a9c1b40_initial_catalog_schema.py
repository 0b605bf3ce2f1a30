"""initial_catalog_schema

Revision ID: 3f6d2a9c1b40
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3f6d2a9c1b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

VERIFICATION_STATUS = ("pending", "verified", "rejected", "flagged")
SUBMISSION_STATUS = ("pending", "processing", "approved", "rejected", "duplicate")
USER_TIER = ("bronze", "silver", "gold", "platinum", "diamond")

# Keep in sync with catalog.services.search.search_document()
SEARCH_DOCUMENT = (
    "setweight(to_tsvector('english'::regconfig, coalesce(name, '')), 'A') || "
    "setweight(to_tsvector('english'::regconfig, coalesce(brand, '')), 'B') || "
    "setweight(to_tsvector('english'::regconfig, coalesce(description, '')), 'C') || "
    "setweight(to_tsvector('english'::regconfig, coalesce(ingredients_list, '')), 'D')"
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pg_trgm")

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("total_earnings", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total_submissions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("approved_submissions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "user_tier",
            sa.Enum(*USER_TIER, name="user_tier"),
            nullable=False,
            server_default="bronze",
        ),
        sa.Column("quality_score", sa.Float(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_user_tier"), "users", ["user_tier"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("product_id", sa.String(length=100), nullable=True),
        sa.Column("brand", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("industry", sa.String(length=100), nullable=True),
        sa.Column("sector", sa.String(length=100), nullable=True),
        sa.Column("sub_sector", sa.String(length=100), nullable=True),
        sa.Column("segment", sa.String(length=100), nullable=True),
        sa.Column("sub_segment", sa.String(length=100), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("continents", sa.String(length=255), nullable=True),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("geo", sa.String(length=255), nullable=True),
        sa.Column("country_of_origin", sa.String(length=100), nullable=True),
        sa.Column("availability_regions", postgresql.JSONB(), nullable=True),
        sa.Column("is_regional_exclusive", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("barcode", sa.String(length=50), nullable=True),
        sa.Column("product_code", sa.String(length=100), nullable=True),
        sa.Column("sku", sa.String(length=100), nullable=True),
        sa.Column("ingredients_list", sa.Text(), nullable=True),
        sa.Column("standardized_ingredients", postgresql.JSONB(), nullable=True),
        sa.Column("nutritional_info", postgresql.JSONB(), nullable=True),
        sa.Column("calories", sa.String(length=50), nullable=True),
        sa.Column("claims", sa.Text(), nullable=True),
        sa.Column("flavour", sa.String(length=255), nullable=True),
        sa.Column("allergen_info", postgresql.JSONB(), nullable=True),
        sa.Column("dietary_preferences", postgresql.JSONB(), nullable=True),
        sa.Column("price", sa.String(length=50), nullable=True),
        sa.Column("volume_scale", sa.String(length=100), nullable=True),
        sa.Column("volume_subscale", sa.String(length=100), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="INR"),
        sa.Column("mrp", sa.Numeric(10, 2), nullable=True),
        sa.Column("pack_size", sa.String(length=50), nullable=True),
        sa.Column("company_name", sa.String(length=255), nullable=True),
        sa.Column("standardized_company_name", sa.String(length=255), nullable=True),
        sa.Column("manufacturer", sa.String(length=255), nullable=True),
        sa.Column("distributor", sa.String(length=255), nullable=True),
        sa.Column("retailer", sa.String(length=255), nullable=True),
        sa.Column("product_link", sa.Text(), nullable=True),
        sa.Column("source_name", sa.String(length=255), nullable=True),
        sa.Column("website_address", sa.Text(), nullable=True),
        sa.Column("manufacture_date", sa.Date(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("year", sa.String(length=4), nullable=True),
        sa.Column("date_of_entry", sa.Date(), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column(
            "verification_status",
            sa.Enum(*VERIFICATION_STATUS, name="verification_status"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("ai_confidence_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("submission_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("first_discovered_by", sa.Uuid(), nullable=True),
        sa.Column("discovery_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_npd", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("regional_popularity_score", sa.Float(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint(
            "ai_confidence_score >= 0 AND ai_confidence_score <= 1",
            name="ck_products_ai_confidence_score",
        ),
        sa.ForeignKeyConstraint(["first_discovered_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_products_brand"), "products", ["brand"], unique=False)
    op.create_index(op.f("ix_products_category"), "products", ["category"], unique=False)
    op.create_index(op.f("ix_products_country"), "products", ["country"], unique=False)
    op.create_index(op.f("ix_products_barcode"), "products", ["barcode"], unique=False)
    op.create_index(op.f("ix_products_verification_status"), "products", ["verification_status"], unique=False)
    op.create_index(op.f("ix_products_created_at"), "products", ["created_at"], unique=False)

    # Trigram indexes for similarity() duplicate detection and ILIKE autocomplete
    op.create_index(
        "ix_products_name_trgm",
        "products",
        ["name"],
        postgresql_using="gin",
        postgresql_ops={"name": "gin_trgm_ops"},
    )
    op.create_index(
        "ix_products_brand_trgm",
        "products",
        ["brand"],
        postgresql_using="gin",
        postgresql_ops={"brand": "gin_trgm_ops"},
    )
    # Weighted full-text search document
    op.execute(f"CREATE INDEX ix_products_search_document ON products USING gin (({SEARCH_DOCUMENT}))")

    op.create_table(
        "npd_submissions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=True),
        sa.Column("submitted_product_name", sa.String(length=500), nullable=False),
        sa.Column("submitted_brand", sa.String(length=255), nullable=False),
        sa.Column("submitted_category", sa.String(length=100), nullable=True),
        sa.Column("raw_submission_data", postgresql.JSONB(), nullable=True),
        sa.Column("submission_location", postgresql.JSONB(), nullable=True),
        sa.Column("store_name", sa.String(length=255), nullable=True),
        sa.Column("store_type", sa.String(length=100), nullable=True),
        sa.Column("purchase_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*SUBMISSION_STATUS, name="submission_status"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("ai_confidence_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("human_review_notes", sa.Text(), nullable=True),
        sa.Column("base_reward", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("bonus_reward", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total_reward", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_npd_submissions_status"), "npd_submissions", ["status"], unique=False)
    op.create_index("ix_npd_submissions_user_created", "npd_submissions", ["user_id", "created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_npd_submissions_user_created", table_name="npd_submissions")
    op.drop_index(op.f("ix_npd_submissions_status"), table_name="npd_submissions")
    op.drop_table("npd_submissions")

    op.execute("DROP INDEX IF EXISTS ix_products_search_document")
    op.drop_index("ix_products_brand_trgm", table_name="products")
    op.drop_index("ix_products_name_trgm", table_name="products")
    op.drop_index(op.f("ix_products_created_at"), table_name="products")
    op.drop_index(op.f("ix_products_verification_status"), table_name="products")
    op.drop_index(op.f("ix_products_barcode"), table_name="products")
    op.drop_index(op.f("ix_products_country"), table_name="products")
    op.drop_index(op.f("ix_products_category"), table_name="products")
    op.drop_index(op.f("ix_products_brand"), table_name="products")
    op.drop_table("products")

    op.drop_index(op.f("ix_users_user_tier"), table_name="users")
    op.drop_table("users")

    sa.Enum(name="submission_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="verification_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="user_tier").drop(op.get_bind(), checkfirst=True)
