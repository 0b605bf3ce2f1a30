"""NPD submission `EntitySpec` and submission-specific data access."""

from datetime import datetime
from typing import Any
import uuid

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.models import NpdSubmission, SubmissionStatus
from catalog.query import EntitySpec, FieldRegistry, Pagination, Sort, SortDirection
from catalog.repositories import base
from catalog.repositories.base import Page
from catalog.stores.postgres import Database

SUBMISSIONS: EntitySpec[NpdSubmission] = EntitySpec(
    model=NpdSubmission,
    fields=FieldRegistry.for_model(
        NpdSubmission,
        filterable=(
            "id",
            "user_id",
            "product_id",
            "submitted_product_name",
            "submitted_brand",
            "submitted_category",
            "store_name",
            "store_type",
            "status",
            "created_at",
        ),
        sortable=("id", "status", "ai_confidence_score", "total_reward", "created_at", "reviewed_at"),
    ),
)


async def submissions_for_user(
    db: Database,
    user_id: uuid.UUID,
    status: SubmissionStatus | None = None,
    pagination: Pagination | None = None,
) -> Page[NpdSubmission]:
    """A contributor's submissions, newest first."""
    return await base.find(
        db,
        SUBMISSIONS,
        {"user_id": user_id, "status": status},
        [Sort("created_at", SortDirection.DESC)],
        pagination or Pagination(page=1, limit=20),
    )


async def recent_exact_matches(
    db: Database,
    user_id: uuid.UUID,
    name: str,
    brand: str,
    since: datetime,
    *,
    session: AsyncSession | None = None,
) -> list[NpdSubmission]:
    """Same-user submissions with case-insensitively identical name and brand
    created after `since`.

    Pass `session` to read inside the caller's transaction.
    """
    stmt = (
        select(NpdSubmission)
        .where(NpdSubmission.user_id == user_id)
        .where(func.lower(NpdSubmission.submitted_product_name) == name.strip().lower())
        .where(func.lower(NpdSubmission.submitted_brand) == brand.strip().lower())
        .where(NpdSubmission.created_at > since)
        .order_by(NpdSubmission.created_at.desc())
    )
    if session is None:
        return await base.fetch_all(db, stmt)
    result = await db.execute(session, stmt)
    return list(result.scalars().all())


async def status_counts(db: Database, user_id: uuid.UUID) -> dict[str, int]:
    """Total / approved / rejected / pending submission counts for a contributor."""
    stmt = select(
        func.count().label("total"),
        func.count(case((NpdSubmission.status == SubmissionStatus.APPROVED, 1))).label("approved"),
        func.count(case((NpdSubmission.status == SubmissionStatus.REJECTED, 1))).label("rejected"),
        func.count(case((NpdSubmission.status == SubmissionStatus.PENDING, 1))).label("pending"),
    ).where(NpdSubmission.user_id == user_id)

    async with db.session() as session:
        result = await db.execute(session, stmt)
        row: Any = result.one()
    return {
        "total": int(row.total or 0),
        "approved": int(row.approved or 0),
        "rejected": int(row.rejected or 0),
        "pending": int(row.pending or 0),
    }
