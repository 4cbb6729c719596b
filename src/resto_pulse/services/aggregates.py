"""Derived aggregates over rating, review and reaction rows.

Nothing here increments a counter. Rollups are recomputed from the
underlying rows with a single aggregate query after every mutation, and the
``verify_*`` helpers re-derive them to check consistency.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from resto_pulse.db.time import utcnow
from resto_pulse.db.upsert import upsert
from resto_pulse.models import (
    Rating,
    Restaurant,
    RestaurantStats,
    Review,
    Suggestion,
    SuggestionReaction,
)


@dataclass(frozen=True)
class RatingSummary:
    """Average and count of ratings for one restaurant."""

    restaurant_id: int
    average_rating: float
    rating_count: int
    review_count: int = 0

    @property
    def display_average(self) -> float:
        """Average rounded to one decimal place for display."""
        return round(self.average_rating, 1)


@dataclass(frozen=True)
class ReactionCounts:
    """Like and dislike totals for one suggestion."""

    suggestion_id: str
    like_count: int
    dislike_count: int


def _live_rating_aggregate(db: Session, restaurant_id: int) -> tuple[float, int]:
    row = db.execute(
        select(func.avg(Rating.value), func.count(Rating.id)).where(
            Rating.restaurant_id == restaurant_id
        )
    ).one()
    average, count = row
    return (float(average) if average is not None else 0.0, int(count or 0))


def _live_review_count(db: Session, restaurant_id: int) -> int:
    return int(
        db.scalar(select(func.count(Review.id)).where(Review.restaurant_id == restaurant_id)) or 0
    )


def refresh_restaurant_stats(db: Session, restaurant_id: int) -> RatingSummary:
    """Recompute the rollup for a restaurant inside the caller's transaction."""
    db.flush()
    average, count = _live_rating_aggregate(db, restaurant_id)
    reviews = _live_review_count(db, restaurant_id)
    upsert(
        db,
        RestaurantStats,
        {
            "restaurant_id": restaurant_id,
            "average_rating": average,
            "rating_count": count,
            "review_count": reviews,
            "refreshed_at": utcnow(),
        },
        conflict_columns=("restaurant_id",),
        update_columns=("average_rating", "rating_count", "review_count", "refreshed_at"),
    )
    return RatingSummary(restaurant_id, average, count, reviews)


def refresh_all_restaurant_stats(db: Session) -> int:
    """Recompute every restaurant's rollup; returns how many were refreshed."""
    restaurant_ids = db.scalars(select(Restaurant.id)).all()
    for restaurant_id in restaurant_ids:
        refresh_restaurant_stats(db, restaurant_id)
    return len(restaurant_ids)


def read_rating_summary(db: Session, restaurant_id: int) -> RatingSummary:
    """Return the stored rollup, or an empty summary if none exists yet."""
    stats = db.execute(
        select(RestaurantStats)
        .where(RestaurantStats.restaurant_id == restaurant_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if stats is None:
        return RatingSummary(restaurant_id, 0.0, 0, 0)
    return RatingSummary(
        restaurant_id,
        float(stats.average_rating),
        int(stats.rating_count),
        int(stats.review_count),
    )


def rating_distribution(db: Session, restaurant_id: int) -> dict[int, int]:
    """Count ratings per whole star (4.5 counts towards 4)."""
    distribution = {star: 0 for star in range(1, 6)}
    values = db.scalars(select(Rating.value).where(Rating.restaurant_id == restaurant_id))
    for value in values:
        star = int(math.floor(value))
        if star in distribution:
            distribution[star] += 1
    return distribution


def recount_reactions(db: Session, suggestion: Suggestion) -> ReactionCounts:
    """Recount likes/dislikes from reaction rows and store them on the suggestion."""
    db.flush()
    rows = db.execute(
        select(SuggestionReaction.reaction_type, func.count())
        .where(SuggestionReaction.suggestion_id == suggestion.id)
        .group_by(SuggestionReaction.reaction_type)
    ).all()
    totals = {reaction_type: int(count) for reaction_type, count in rows}
    suggestion.likes = totals.get("like", 0)
    suggestion.dislikes = totals.get("dislike", 0)
    return ReactionCounts(suggestion.id, suggestion.likes, suggestion.dislikes)


def verify_rating_summary(db: Session, restaurant_id: int) -> bool:
    """Return True if the stored rollup equals the live aggregate."""
    stored = read_rating_summary(db, restaurant_id)
    average, count = _live_rating_aggregate(db, restaurant_id)
    return stored.rating_count == count and math.isclose(
        stored.average_rating, average, abs_tol=1e-9
    )


def verify_reaction_counts(db: Session, suggestion_id: str) -> bool:
    """Return True if the suggestion's counters equal its reaction rows."""
    suggestion = db.get(Suggestion, suggestion_id)
    if suggestion is None:
        return False
    rows = db.execute(
        select(SuggestionReaction.reaction_type, func.count())
        .where(SuggestionReaction.suggestion_id == suggestion_id)
        .group_by(SuggestionReaction.reaction_type)
    ).all()
    totals = {reaction_type: int(count) for reaction_type, count in rows}
    return (
        suggestion.likes == totals.get("like", 0)
        and suggestion.dislikes == totals.get("dislike", 0)
    )
