"""Contributor (user) model.

Only the columns the tier/reward engine reads and writes are mapped here;
credentials, KYC and payout details live with the auth collaborator.
"""

from datetime import datetime
import uuid

from sqlalchemy import DateTime, Enum, Float, Integer, Numeric, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from catalog.models.enums import Tier, enum_values
from catalog.stores.postgres import Base


class User(Base):
    """Contributor submitting new products."""

    __tablename__ = "users"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name: Mapped[str] = mapped_column(String(255))

    # Metrics
    total_earnings: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    total_submissions: Mapped[int] = mapped_column(Integer, default=0)
    approved_submissions: Mapped[int] = mapped_column(Integer, default=0)
    user_tier: Mapped[Tier] = mapped_column(
        Enum(Tier, name="user_tier", values_callable=enum_values),
        default=Tier.BRONZE,
        index=True,
    )
    quality_score: Mapped[float] = mapped_column(Float, default=0.0)  # 0..10

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
        return f"<User {self.id} {self.user_tier.value}>"
