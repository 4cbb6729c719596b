# src/resto_pulse/models/suggestion.py
"""Community suggestions/complaints and the reactions left on them."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from resto_pulse.db.session import Base
from resto_pulse.db.time import utcnow

SUGGESTION_TYPES = ("suggestion", "complaint")


class Suggestion(Base):
    """Post on the community board that visitors can like or dislike."""

    __tablename__ = "suggestion"
    __table_args__ = (
        CheckConstraint("type IN ('suggestion', 'complaint')", name="ck_suggestion_type"),
        CheckConstraint("likes >= 0 AND dislikes >= 0", name="ck_suggestion_counts"),
        Index("ix_suggestion_identity_token", "identity_token"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="suggestion")
    restaurant_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    food_item: Mapped[str | None] = mapped_column(String(200), nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_email: Mapped[str | None] = mapped_column(String(254), nullable=True)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # Author; edits and deletes require the same token.
    identity_token: Mapped[str] = mapped_column(String(128), nullable=False)

    # Recounted from suggestion_reaction after every toggle.
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dislikes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class SuggestionReaction(Base):
    """Current reaction of one identity on one suggestion.

    The absence of a row is the "no reaction" state.
    """

    __tablename__ = "suggestion_reaction"
    __table_args__ = (
        CheckConstraint(
            "reaction_type IN ('like', 'dislike')",
            name="ck_suggestion_reaction_type",
        ),
        Index("ix_suggestion_reaction_suggestion_id", "suggestion_id"),
    )

    suggestion_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("suggestion.id", ondelete="CASCADE"),
        primary_key=True,
    )
    identity_token: Mapped[str] = mapped_column(String(128), primary_key=True)

    # Composite primary key prevents duplicate reactions from the same identity.

    reaction_type: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
