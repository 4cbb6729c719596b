# src/resto_pulse/models/review.py
"""Free-text reviews with optional photos."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from resto_pulse.db.session import Base
from resto_pulse.db.time import utcnow


class Review(Base):
    """Review left by one identity on one restaurant."""

    __tablename__ = "review"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "identity_token", name="uq_review_restaurant_identity"),
        # Daily quota counts rows per identity since midnight.
        Index("ix_review_identity_created", "identity_token", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("restaurant.id", ondelete="CASCADE"),
        nullable=False,
    )
    identity_token: Mapped[str] = mapped_column(String(128), nullable=False)
    reviewer_name: Mapped[str] = mapped_column(String(100), nullable=False, default="Anonymous")
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # HTTPS URLs returned by the blob store.
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class ReviewSubmission(Base):
    """Append-only log of new reviews, one row per review created.

    Deleting a review leaves its submission in place, so the daily quota
    keeps counting it.
    """

    __tablename__ = "review_submission"
    __table_args__ = (
        Index("ix_review_submission_identity_created", "identity_token", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    identity_token: Mapped[str] = mapped_column(String(128), nullable=False)
    # No foreign key: rows outlive the restaurant and the review.
    restaurant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
