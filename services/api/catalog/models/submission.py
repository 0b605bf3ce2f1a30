"""NPD submission model.

A crowdsourced candidate for a new product: what the contributor saw
(name/brand/category), where they saw it, and how it was processed and paid.
"""

from datetime import date, datetime
from typing import Any
import uuid

from sqlalchemy import Date, DateTime, Enum, Float, ForeignKey, Index, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from catalog.models.enums import SubmissionStatus, enum_values
from catalog.models.product import JsonType
from catalog.stores.postgres import Base


class NpdSubmission(Base):
    """Submission of a (possibly new) product by a contributor."""

    __tablename__ = "npd_submissions"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        # Supports the same-user exact-match resubmission check.
        Index("ix_npd_submissions_user_created", "user_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"))
    product_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("products.id"))

    # Candidate
    submitted_product_name: Mapped[str] = mapped_column(String(500))
    submitted_brand: Mapped[str] = mapped_column(String(255))
    submitted_category: Mapped[str | None] = mapped_column(String(100))
    raw_submission_data: Mapped[Any | None] = mapped_column(JsonType)

    # Context
    submission_location: Mapped[Any | None] = mapped_column(JsonType)  # GPS / address
    store_name: Mapped[str | None] = mapped_column(String(255))
    store_type: Mapped[str | None] = mapped_column(String(100))
    purchase_price: Mapped[float | None] = mapped_column(Numeric(10, 2, asdecimal=False))
    purchase_date: Mapped[date | None] = mapped_column(Date)

    # Processing
    status: Mapped[SubmissionStatus] = mapped_column(
        Enum(SubmissionStatus, name="submission_status", values_callable=enum_values),
        default=SubmissionStatus.PENDING,
        index=True,
    )
    ai_confidence_score: Mapped[float] = mapped_column(Float, default=0.0)  # 0..1
    human_review_notes: Mapped[str | None] = mapped_column(Text)

    # Rewards
    base_reward: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    bonus_reward: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    total_reward: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)

    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<NpdSubmission {self.id} {self.status.value}>"
