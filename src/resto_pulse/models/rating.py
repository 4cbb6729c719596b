# src/resto_pulse/models/rating.py
"""Per-identity star ratings."""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from resto_pulse.db.session import Base
from resto_pulse.db.time import utcnow


class Rating(Base):
    """One visitor's rating of a restaurant."""

    __tablename__ = "rating"
    __table_args__ = (
        # Upserts resolve against this constraint; a second rating overwrites.
        UniqueConstraint("restaurant_id", "identity_token", name="uq_rating_restaurant_identity"),
        CheckConstraint("value >= 1 AND value <= 5", name="ck_rating_value_range"),
        Index("ix_rating_restaurant_id", "restaurant_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("restaurant.id", ondelete="CASCADE"),
        nullable=False,
    )
    identity_token: Mapped[str] = mapped_column(String(128), nullable=False)
    # Half-step granularity: 1.0, 1.5, ... 5.0.
    value: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
