"""Submission endpoints.

POST /v1/submissions                         - Submit a product (duplicate gate)
GET  /v1/submissions                         - Caller's submissions
POST /v1/submissions/{submission_id}/reward  - Price a submission
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from catalog.models import SubmissionStatus
from catalog.query import Pagination
from catalog.repositories.submissions import submissions_for_user
from catalog.routes.deps import get_db, get_user_id
from catalog.schemas import (
    PossibleDuplicate,
    RewardOut,
    SubmissionCreate,
    SubmissionCreateResponse,
    SubmissionListResponse,
    SubmissionOut,
)
from catalog.services.submissions import SubmissionCandidate, submit_candidate
from catalog.services.tiers import price_submission
from catalog.stores.postgres import Database

router = APIRouter()


@router.post("", response_model=SubmissionCreateResponse, status_code=201)
async def create_submission(
    request: SubmissionCreate,
    user_id: UUID = Depends(get_user_id),
    db: Database = Depends(get_db),
) -> SubmissionCreateResponse:
    """Submit a new product candidate.

    Same-user resubmission of an identical name+brand within the window is
    rejected with 409; similar catalog products come back as possibleDuplicates.
    """
    outcome = await submit_candidate(
        db,
        user_id,
        SubmissionCandidate(
            name=request.name,
            brand=request.brand,
            category=request.category,
            store_name=request.store_name,
            store_type=request.store_type,
            purchase_price=request.purchase_price,
            purchase_date=request.purchase_date,
            location=request.location,
            raw_data=request.raw_data,
        ),
    )
    return SubmissionCreateResponse(
        submission=SubmissionOut.model_validate(outcome.submission),
        possible_duplicates=[
            PossibleDuplicate(
                product_id=match.product.id,
                name=match.product.name,
                brand=match.product.brand,
                score=round(match.score, 4),
            )
            for match in outcome.possible_duplicates
        ],
    )


@router.get("", response_model=SubmissionListResponse)
async def list_my_submissions(
    status: SubmissionStatus | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user_id: UUID = Depends(get_user_id),
    db: Database = Depends(get_db),
) -> SubmissionListResponse:
    result = await submissions_for_user(db, user_id, status, Pagination(page=page, limit=limit))
    return SubmissionListResponse(
        items=[SubmissionOut.model_validate(s) for s in result.items],
        total=result.total,
    )


@router.post("/{submission_id}/reward", response_model=RewardOut)
async def reward_submission(submission_id: UUID, db: Database = Depends(get_db)) -> RewardOut:
    """Compute and store the reward for a submission."""
    reward = await price_submission(db, submission_id)
    return RewardOut(
        submission_id=submission_id,
        amount=reward.amount,
        base=reward.base,
        quality_bonus=reward.quality_bonus,
        regional_bonus=reward.regional_bonus,
        multiplier=reward.multiplier,
        tier=reward.tier,
    )
