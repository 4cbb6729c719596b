"""Star ratings keyed by (restaurant, identity)."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from resto_pulse.core.settings import settings
from resto_pulse.db.time import utcnow
from resto_pulse.db.upsert import upsert
from resto_pulse.models import Rating
from resto_pulse.services.aggregates import (
    RatingSummary,
    rating_distribution,
    read_rating_summary,
    refresh_restaurant_stats,
)
from resto_pulse.services.identity import require_identity
from resto_pulse.services.restaurants import require_active_restaurant, restaurant_lock
from resto_pulse.services.results import (
    NotFoundError,
    ServiceResult,
    ValidationError,
    guarded,
    token_prefix,
)

logger = logging.getLogger(__name__)

HALF_STEP_TOLERANCE = 0.01


@dataclass(frozen=True)
class RatingOutcome:
    """Stored rating and the refreshed rollup after a submission."""

    restaurant_id: int
    rating: float
    summary: RatingSummary


def parse_rating_value(value: object, minimum: float, maximum: float) -> float:
    """Validate a rating and round it to the nearest half step.

    Raises:
        ValidationError: If the value is not a finite number within range.
    """
    if isinstance(value, bool):
        raise ValidationError("Rating must be a number")
    try:
        numeric = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as err:
        raise ValidationError("Rating must be a number") from err

    if not math.isfinite(numeric) or numeric < minimum or numeric > maximum:
        raise ValidationError(f"Rating must be between {minimum:g} and {maximum:g}")

    rounded = math.floor(numeric * 2 + 0.5) / 2
    if abs(numeric - rounded) > HALF_STEP_TOLERANCE:
        logger.debug("Rating rounded to nearest half step: %s -> %s", numeric, rounded)
    return rounded


class RatingService:
    """Submit and read ratings.

    A submission is one native upsert on the (restaurant, identity)
    constraint followed by a rollup refresh, committed together.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        rating_min: float | None = None,
        rating_max: float | None = None,
    ) -> None:
        self.clock = clock
        self.rating_min = settings.rating_min if rating_min is None else rating_min
        self.rating_max = settings.rating_max if rating_max is None else rating_max

    def submit_rating(
        self,
        db: Session,
        restaurant_id: int,
        identity: str,
        value: object,
    ) -> ServiceResult[RatingOutcome]:
        """Create or overwrite the caller's rating and return the new rollup."""

        def _submit() -> RatingOutcome:
            token = require_identity(identity)
            rating = parse_rating_value(value, self.rating_min, self.rating_max)
            require_active_restaurant(db, restaurant_id, for_update=True)

            now = self.clock()
            upsert(
                db,
                Rating,
                {
                    "restaurant_id": restaurant_id,
                    "identity_token": token,
                    "value": rating,
                    "created_at": now,
                    "updated_at": now,
                },
                conflict_columns=("restaurant_id", "identity_token"),
                update_columns=("value", "updated_at"),
            )
            summary = refresh_restaurant_stats(db, restaurant_id)
            db.commit()
            logger.info(
                "Stored rating %.1f for restaurant %s by %s (avg %.3f over %d)",
                rating,
                restaurant_id,
                token_prefix(token),
                summary.average_rating,
                summary.rating_count,
            )
            return RatingOutcome(restaurant_id, rating, summary)

        return guarded(
            "submit_rating", db, _submit, restaurant_id=restaurant_id, identity=identity
        )

    def get_summary(self, db: Session, restaurant_id: int) -> ServiceResult[RatingSummary]:
        """Return the stored rollup for a restaurant."""
        return guarded(
            "get_rating_summary",
            db,
            lambda: read_rating_summary(db, restaurant_id),
            restaurant_id=restaurant_id,
        )

    def get_distribution(self, db: Session, restaurant_id: int) -> ServiceResult[dict[int, int]]:
        return guarded(
            "get_rating_distribution",
            db,
            lambda: rating_distribution(db, restaurant_id),
            restaurant_id=restaurant_id,
        )

    def get_user_rating(
        self, db: Session, restaurant_id: int, identity: str
    ) -> ServiceResult[float | None]:
        """Return the caller's current rating, or None if they have not rated."""

        def _read() -> float | None:
            token = require_identity(identity)
            value = db.scalar(
                select(Rating.value).where(
                    Rating.restaurant_id == restaurant_id,
                    Rating.identity_token == token,
                )
            )
            return float(value) if value is not None else None

        return guarded(
            "get_user_rating", db, _read, restaurant_id=restaurant_id, identity=identity
        )

    def has_user_rated(self, db: Session, restaurant_id: int, identity: str) -> bool:
        result = self.get_user_rating(db, restaurant_id, identity)
        return bool(result.success and result.value is not None)

    def delete_rating(
        self, db: Session, restaurant_id: int, identity: str
    ) -> ServiceResult[RatingSummary]:
        """Remove one identity's rating (admin action) and refresh the rollup."""

        def _delete() -> RatingSummary:
            token = require_identity(identity)
            db.execute(restaurant_lock(restaurant_id))
            result = db.execute(
                delete(Rating).where(
                    Rating.restaurant_id == restaurant_id,
                    Rating.identity_token == token,
                )
            )
            if not result.rowcount:
                raise NotFoundError("Rating not found")
            summary = refresh_restaurant_stats(db, restaurant_id)
            db.commit()
            return summary

        return guarded(
            "delete_rating", db, _delete, restaurant_id=restaurant_id, identity=identity
        )
