# src/resto_pulse/models/restaurant.py
"""SQLAlchemy models for restaurants and their rating rollups."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from resto_pulse.db.session import Base
from resto_pulse.db.time import utcnow


class Restaurant(Base):
    """Restaurant listed by the admin surface.

    Read-only to visitors; ratings and reviews only target active rows.
    """

    __tablename__ = "restaurant"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    menu_images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    stats: Mapped[RestaurantStats | None] = relationship(
        "RestaurantStats",
        back_populates="restaurant",
        cascade="all, delete-orphan",
        uselist=False,
    )


class RestaurantStats(Base):
    """Rollup of rating and review rows for one restaurant.

    Always rewritten from an aggregate query over the underlying rows; never
    incremented in place.
    """

    __tablename__ = "restaurant_stats"

    restaurant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("restaurant.id", ondelete="CASCADE"),
        primary_key=True,
    )
    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    refreshed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    restaurant: Mapped[Restaurant] = relationship("Restaurant", back_populates="stats")
