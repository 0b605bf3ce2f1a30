"""Duplicate detection for crowdsourced submissions.

Two independent policies:

1. Soft warning: trigram similarity against verified catalog products.
   score = similarity(name, products.name) + similarity(brand, products.brand)
   Rows with score > threshold (default 0.7) are returned, best first, max 10.
   The submission still goes through; the caller shows "possible duplicate".

2. Hard reject: the same contributor submitting a case-insensitively identical
   (name, brand) within a rolling window (default 24h) raises DuplicateError,
   even when the fuzzy check would only warn.

Requires the pg_trgm extension (see migrations).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.errors import DuplicateError
from catalog.models import Product, VerificationStatus
from catalog.repositories import base
from catalog.repositories.submissions import recent_exact_matches
from catalog.settings import get_settings
from catalog.stores.postgres import Database

logger = logging.getLogger("uvicorn.error")

MAX_SIMILAR = 10

# pg_trgm.similarity_threshold default; the `%` operator matches at or above it.
TRGM_LIMIT = 0.3


@dataclass
class SimilarProduct:
    product: Product
    score: float


def similarity_score(name: str, brand: str):
    """Combined name+brand trigram similarity expression (0..2)."""
    return func.similarity(Product.name, name) + func.similarity(Product.brand, brand)


def similar_statement(
    name: str,
    brand: str,
    threshold: float,
    *,
    limit: int = MAX_SIMILAR,
    trigram_prefilter: bool = False,
):
    """SELECT (Product, score) for the similarity check.

    With `trigram_prefilter` rows must also match `name % :name OR brand % :brand`
    so the gin_trgm_ops indexes can be used. Only applied when the threshold
    is at least twice the pg_trgm limit: below that, a row with both
    similarities under the limit could still score above the threshold.
    """
    score = similarity_score(name, brand).label("score")
    stmt = (
        select(Product, score)
        .where(Product.verification_status == VerificationStatus.VERIFIED)
        .where(similarity_score(name, brand) > threshold)
        .order_by(score.desc())
        .limit(min(limit, MAX_SIMILAR))
    )
    if trigram_prefilter and threshold >= 2 * TRGM_LIMIT:
        stmt = stmt.where(or_(Product.name.op("%")(name), Product.brand.op("%")(brand)))
    return stmt


async def find_similar(
    db: Database,
    name: str,
    brand: str,
    threshold: float | None = None,
    *,
    limit: int = MAX_SIMILAR,
    timeout: float | None = None,
) -> list[SimilarProduct]:
    """Verified products similar to (name, brand), highest score first.

    Args:
        db: Database handle.
        name: Candidate product name.
        brand: Candidate brand.
        threshold: Minimum combined score (exclusive); defaults to settings.
        limit: Max rows returned (capped at 10).

    Returns:
        List of SimilarProduct.
    """
    if threshold is None:
        threshold = get_settings().duplicate_similarity_threshold
    name, brand = name.strip(), brand.strip()

    stmt = similar_statement(
        name,
        brand,
        threshold,
        limit=limit,
        trigram_prefilter=db.engine.dialect.name == "postgresql",
    )
    rows = await base.fetch_rows(db, stmt, timeout=timeout)
    return [SimilarProduct(product=row[0], score=float(row[1])) for row in rows]


async def check_resubmission(
    db: Database,
    user_id: uuid.UUID,
    name: str,
    brand: str,
    *,
    now: datetime | None = None,
    session: AsyncSession | None = None,
) -> None:
    """Raise DuplicateError if this user submitted the same name+brand within the window.

    With `session` the lookup runs inside that transaction, so a caller
    holding the contributor row lock sees every committed submission.
    """
    window = timedelta(hours=get_settings().duplicate_window_hours)
    since = (now or datetime.now(timezone.utc)) - window

    matches = await recent_exact_matches(db, user_id, name, brand, since, session=session)
    if matches:
        logger.info(f"Rejected resubmission by user {user_id}: {brand} / {name}")
        raise DuplicateError(
            "Submission",
            "the same name and brand",
            {
                "submission_id": str(matches[0].id),
                "window_hours": get_settings().duplicate_window_hours,
            },
        )
