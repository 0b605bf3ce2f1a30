"""Contributor endpoints.

POST /v1/users/{user_id}/tier - Recompute and persist a contributor's tier
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from catalog.routes.deps import get_db
from catalog.schemas import TierStateOut
from catalog.services.tiers import compute_tier
from catalog.stores.postgres import Database

router = APIRouter()


@router.post("/{user_id}/tier", response_model=TierStateOut)
async def recompute_tier(user_id: UUID, db: Database = Depends(get_db)) -> TierStateOut:
    state = await compute_tier(db, user_id)
    return TierStateOut(
        user_id=user_id,
        tier=state.tier,
        submission_count=state.submission_count,
        approved_count=state.approved_count,
        rejected_count=state.rejected_count,
        pending_count=state.pending_count,
        quality_score=state.quality_score,
        approval_rate=state.approval_rate,
        reward_multiplier=state.reward_multiplier,
    )
