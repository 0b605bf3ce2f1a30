"""Contributor tier and reward computation.

Quality score (0..10):
    approved / (approved + rejected) * 10, rounded half-up to 2 places.
    Pending submissions are excluded; 0 when nothing has been decided.

Approval rate (0..100):
    approved / total submissions * 100 (pending submissions count here).

Tier selection:
    Walk the tier table from the highest threshold down (min_submissions DESC,
    then min_quality_score DESC) and pick the first tier whose three minimums
    are all met. Default bronze. Tiers can go down as well as up.

Reward:
    quality_bonus = min(floor(confidence * factor), cap)
    regional_bonus = configured bonus if regional-exclusive else 0
    amount = floor((base + quality_bonus + regional_bonus) * multiplier[tier])

The pure functions here never touch the database; `compute_tier` and
`price_submission` load their inputs and persist the results.
"""

from dataclasses import dataclass
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
import logging
import uuid

from catalog.errors import ValidationError
from catalog.models import NpdSubmission, Product, Tier, User
from catalog.repositories import base
from catalog.repositories.products import PRODUCTS
from catalog.repositories.submissions import SUBMISSIONS, status_counts
from catalog.repositories.users import USERS
from catalog.settings import Settings, TierThreshold, get_settings
from catalog.stores.postgres import Database

logger = logging.getLogger("uvicorn.error")

_DEFAULT_TIER = TierThreshold(
    tier=Tier.BRONZE.value,
    min_submissions=0,
    min_quality_score=0.0,
    min_approval_rate=0.0,
    reward_multiplier=1.0,
)


@dataclass(frozen=True)
class TierState:
    """A contributor's statistics and the tier they map to."""

    tier: Tier
    submission_count: int
    approved_count: int
    rejected_count: int
    pending_count: int
    quality_score: float
    approval_rate: float
    reward_multiplier: float


@dataclass(frozen=True)
class RewardResult:
    """Reward amount with its breakdown."""

    amount: int
    base: int
    quality_bonus: int
    regional_bonus: int
    multiplier: float
    tier: Tier


# ============================================================
# Pure computation
# ============================================================


def quality_score(approved: int, rejected: int) -> float:
    decided = approved + rejected
    if decided <= 0:
        return 0.0
    score = (Decimal(approved) * 10 / Decimal(decided)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(score)


def approval_rate(approved: int, submission_count: int) -> float:
    if submission_count <= 0:
        return 0.0
    return approved / submission_count * 100


def validate_tier_table(table: list[TierThreshold]) -> list[TierThreshold]:
    """Reject tier names that are not known Tier values."""
    unknown = [row.tier for row in table if row.tier not in {t.value for t in Tier}]
    if unknown:
        raise ValueError(f"Unknown tier(s) in tier table: {unknown}")
    return table


def select_tier(
    submission_count: int,
    quality: float,
    approval: float,
    table: list[TierThreshold] | None = None,
) -> TierThreshold:
    """Highest tier whose minimums are all met; bronze when none is."""
    if table is None:
        table = get_settings().tier_table
    ordered = sorted(
        validate_tier_table(table),
        key=lambda row: (row.min_submissions, row.min_quality_score),
        reverse=True,
    )
    for row in ordered:
        if (
            submission_count >= row.min_submissions
            and quality >= row.min_quality_score
            and approval >= row.min_approval_rate
        ):
            return row
    for row in table:
        if row.tier == Tier.BRONZE.value:
            return row
    return _DEFAULT_TIER


def tier_state(
    approved: int,
    rejected: int,
    pending: int,
    submission_count: int | None = None,
    table: list[TierThreshold] | None = None,
) -> TierState:
    """Compute quality, approval rate and tier from submission counts."""
    if submission_count is None:
        submission_count = approved + rejected + pending
    quality = quality_score(approved, rejected)
    rate = approval_rate(approved, submission_count)
    row = select_tier(submission_count, quality, rate, table)
    return TierState(
        tier=Tier(row.tier),
        submission_count=submission_count,
        approved_count=approved,
        rejected_count=rejected,
        pending_count=pending,
        quality_score=quality,
        approval_rate=rate,
        reward_multiplier=row.reward_multiplier,
    )


def tier_multiplier(tier: Tier | str, table: list[TierThreshold] | None = None) -> float:
    if table is None:
        table = get_settings().tier_table
    value = Tier(tier).value
    for row in table:
        if row.tier == value:
            return row.reward_multiplier
    return 1.0


def compute_reward(
    confidence: float,
    is_regional_exclusive: bool,
    tier: Tier | str,
    settings: Settings | None = None,
) -> RewardResult:
    """Reward for one submission.

    Args:
        confidence: AI confidence score in [0, 1].
        is_regional_exclusive: Whether the product is a regional exclusive.
        tier: Contributor tier (selects the multiplier).
        settings: Reward configuration (defaults to app settings).
    """
    settings = settings or get_settings()
    if not 0.0 <= confidence <= 1.0:
        raise ValidationError(
            "ai_confidence_score must be between 0 and 1",
            {"ai_confidence_score": confidence},
        )

    raw_bonus = (Decimal(str(confidence)) * settings.reward_quality_bonus_factor).to_integral_value(
        rounding=ROUND_FLOOR
    )
    quality_bonus = min(int(raw_bonus), settings.reward_quality_bonus_cap)
    regional_bonus = settings.reward_regional_bonus if is_regional_exclusive else 0
    subtotal = settings.reward_base + quality_bonus + regional_bonus

    multiplier = tier_multiplier(tier, settings.tier_table)
    amount = (Decimal(subtotal) * Decimal(str(multiplier))).to_integral_value(rounding=ROUND_FLOOR)

    return RewardResult(
        amount=int(amount),
        base=settings.reward_base,
        quality_bonus=quality_bonus,
        regional_bonus=regional_bonus,
        multiplier=multiplier,
        tier=Tier(tier),
    )


# ============================================================
# Database-backed operations
# ============================================================


async def compute_tier(db: Database, user_id: uuid.UUID) -> TierState:
    """Recompute a contributor's tier from their submissions and persist it.

    Idempotent; the tier can go down when the quality score drops.
    """
    user: User = await base.get_by_id(db, USERS, user_id)
    counts = await status_counts(db, user_id)
    state = tier_state(
        approved=counts["approved"],
        rejected=counts["rejected"],
        pending=counts["pending"],
        submission_count=counts["total"],
    )

    await base.update(
        db,
        USERS,
        user_id,
        {
            "user_tier": state.tier,
            "quality_score": state.quality_score,
            "approved_submissions": state.approved_count,
        },
    )
    if state.tier != user.user_tier:
        logger.info(f"User {user_id} tier {user.user_tier.value} -> {state.tier.value}")
    return state


async def price_submission(db: Database, submission_id: uuid.UUID) -> RewardResult:
    """Compute a submission's reward and store base/bonus/total on it."""
    submission: NpdSubmission = await base.get_by_id(db, SUBMISSIONS, submission_id)
    user: User = await base.get_by_id(db, USERS, submission.user_id)

    is_regional = False
    if submission.product_id is not None:
        product: Product | None = await base.find_by_id(db, PRODUCTS, submission.product_id)
        is_regional = bool(product and product.is_regional_exclusive)

    reward = compute_reward(submission.ai_confidence_score or 0.0, is_regional, user.user_tier)
    await base.update(
        db,
        SUBMISSIONS,
        submission_id,
        {
            "base_reward": reward.base,
            "bonus_reward": reward.quality_bonus + reward.regional_bonus,
            "total_reward": reward.amount,
        },
    )
    logger.info(f"Priced submission {submission_id}: {reward.amount} ({reward.tier.value} x{reward.multiplier})")
    return reward
