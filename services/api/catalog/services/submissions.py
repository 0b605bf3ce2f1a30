"""Submission workflow: duplicate gate, then persist.

Flow:
1. Soft check: similar verified products are returned as possible duplicates
2. In one transaction: bump users.total_submissions (locks the contributor row),
   run the hard gate (same-user exact (name, brand) resubmission in the
   window -> DuplicateError), then insert the submission

The row lock serializes concurrent submissions by one contributor, so two
identical requests racing each other cannot both pass the hard gate.
"""

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Any
import uuid

from sqlalchemy import update as sa_update

from catalog.errors import NotFoundError, ValidationError
from catalog.models import NpdSubmission, SubmissionStatus, User
from catalog.services.duplicates import SimilarProduct, check_resubmission, find_similar
from catalog.settings import get_settings
from catalog.stores.postgres import Database

logger = logging.getLogger("uvicorn.error")


@dataclass
class SubmissionCandidate:
    """What a contributor reports about a product they found."""

    name: str
    brand: str
    category: str | None = None
    store_name: str | None = None
    store_type: str | None = None
    purchase_price: float | None = None
    purchase_date: date | None = None
    location: dict[str, Any] | None = None
    raw_data: dict[str, Any] | None = None


@dataclass
class SubmissionOutcome:
    submission: NpdSubmission
    possible_duplicates: list[SimilarProduct] = field(default_factory=list)


async def submit_candidate(
    db: Database,
    user_id: uuid.UUID,
    candidate: SubmissionCandidate,
) -> SubmissionOutcome:
    """Gate a candidate through duplicate detection and store it.

    Raises:
        ValidationError: blank name or brand.
        DuplicateError: same user submitted the same name+brand recently.
        NotFoundError: unknown user.
    """
    name = (candidate.name or "").strip()
    brand = (candidate.brand or "").strip()
    if not name or not brand:
        raise ValidationError("Product name and brand are required", {"name": name, "brand": brand})

    similar = await find_similar(db, name, brand)

    async with db.session() as session:
        submission = NpdSubmission(
            user_id=user_id,
            submitted_product_name=name,
            submitted_brand=brand,
            submitted_category=(candidate.category or "").strip() or None,
            store_name=candidate.store_name,
            store_type=candidate.store_type,
            purchase_price=candidate.purchase_price,
            purchase_date=candidate.purchase_date,
            submission_location=candidate.location,
            raw_submission_data=candidate.raw_data,
            status=SubmissionStatus.PENDING,
            base_reward=get_settings().reward_base,
        )

        result = await db.execute(
            session,
            sa_update(User)
            .where(User.id == user_id)
            .values(total_submissions=User.total_submissions + 1)
            .execution_options(synchronize_session=False),
        )
        if not result.rowcount:
            raise NotFoundError("users", user_id)
        await check_resubmission(db, user_id, name, brand, session=session)

        session.add(submission)
        await db.run(session.flush(), sql="INSERT INTO npd_submissions")

    if similar:
        logger.info(
            f"Submission {submission.id} has {len(similar)} possible duplicate(s), "
            f"best score {similar[0].score:.2f}"
        )
    return SubmissionOutcome(submission=submission, possible_duplicates=similar)
