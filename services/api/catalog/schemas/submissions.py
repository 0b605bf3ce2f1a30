"""Schemas for submission and contributor endpoints."""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from catalog.models import SubmissionStatus, Tier


class SubmissionCreate(BaseModel):
    """Request body for a new product submission."""

    name: str = Field(min_length=1, max_length=500)
    brand: str = Field(min_length=1, max_length=255)
    category: str | None = Field(default=None, max_length=100)
    store_name: str | None = Field(alias="storeName", default=None, max_length=255)
    store_type: str | None = Field(alias="storeType", default=None, max_length=100)
    purchase_price: float | None = Field(alias="purchasePrice", default=None, ge=0)
    purchase_date: date | None = Field(alias="purchaseDate", default=None)
    location: dict[str, Any] | None = None
    raw_data: dict[str, Any] | None = Field(alias="rawData", default=None)

    model_config = {"populate_by_name": True}


class SubmissionOut(BaseModel):
    id: UUID
    user_id: UUID = Field(alias="userId")
    product_id: UUID | None = Field(alias="productId", default=None)
    name: str = Field(validation_alias="submitted_product_name", serialization_alias="name")
    brand: str = Field(validation_alias="submitted_brand", serialization_alias="brand")
    category: str | None = Field(
        default=None,
        validation_alias="submitted_category",
        serialization_alias="category",
    )
    status: SubmissionStatus
    ai_confidence_score: float | None = Field(alias="aiConfidenceScore", default=None)
    base_reward: float = Field(alias="baseReward", default=0)
    bonus_reward: float = Field(alias="bonusReward", default=0)
    total_reward: float = Field(alias="totalReward", default=0)
    created_at: datetime | None = Field(alias="createdAt", default=None)

    model_config = {"populate_by_name": True, "from_attributes": True}


class PossibleDuplicate(BaseModel):
    product_id: UUID = Field(alias="productId")
    name: str
    brand: str
    score: float

    model_config = {"populate_by_name": True}


class SubmissionCreateResponse(BaseModel):
    submission: SubmissionOut
    possible_duplicates: list[PossibleDuplicate] = Field(alias="possibleDuplicates", default_factory=list)

    model_config = {"populate_by_name": True}


class SubmissionListResponse(BaseModel):
    items: list[SubmissionOut]
    total: int = Field(ge=0)


class RewardOut(BaseModel):
    """Reward with its breakdown."""

    submission_id: UUID = Field(alias="submissionId")
    amount: int
    base: int
    quality_bonus: int = Field(alias="qualityBonus")
    regional_bonus: int = Field(alias="regionalBonus")
    multiplier: float
    tier: Tier

    model_config = {"populate_by_name": True}


class TierStateOut(BaseModel):
    user_id: UUID = Field(alias="userId")
    tier: Tier
    submission_count: int = Field(alias="submissionCount")
    approved_count: int = Field(alias="approvedCount")
    rejected_count: int = Field(alias="rejectedCount")
    pending_count: int = Field(alias="pendingCount")
    quality_score: float = Field(alias="qualityScore", ge=0, le=10)
    approval_rate: float = Field(alias="approvalRate", ge=0, le=100)
    reward_multiplier: float = Field(alias="rewardMultiplier")

    model_config = {"populate_by_name": True}
