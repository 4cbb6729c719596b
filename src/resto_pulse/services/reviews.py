"""Free-text reviews with photos and a server-side daily quota."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from urllib.parse import urlparse

import bleach
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from resto_pulse.core.settings import settings
from resto_pulse.db.time import start_of_day, utcnow
from resto_pulse.db.upsert import upsert
from resto_pulse.models import Restaurant, Review, ReviewSubmission
from resto_pulse.services.aggregates import (
    rating_distribution,
    read_rating_summary,
    refresh_restaurant_stats,
)
from resto_pulse.services.identity import require_identity
from resto_pulse.services.restaurants import require_active_restaurant, restaurant_lock
from resto_pulse.services.results import (
    NotFoundError,
    OwnershipError,
    QuotaExceededError,
    ServiceResult,
    ValidationError,
    guarded,
    token_prefix,
)

logger = logging.getLogger(__name__)

DEFAULT_REVIEWER_NAME = "Anonymous"
MAX_IMAGE_URL_LENGTH = 2048


@dataclass
class ReviewDraft:
    """Fields a visitor submits for a review."""

    reviewer_name: str | None = None
    comment: str | None = None
    images: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReviewStats:
    total_reviews: int
    average_rating: float
    rating_distribution: dict[int, int]


@dataclass(frozen=True)
class RecentReview:
    review: Review
    restaurant_name: str


def sanitize_text(value: str | None) -> str:
    """Strip all markup from user text and trim surrounding whitespace."""
    if not value:
        return ""
    return bleach.clean(value, tags=[], attributes={}, strip=True).strip()


def validate_image_urls(images: Sequence[object] | None, max_count: int) -> list[str]:
    """Return the image URLs if all are HTTPS and within the count cap.

    Raises:
        QuotaExceededError: If more than ``max_count`` URLs were given.
        ValidationError: If any entry is not an HTTPS URL.
    """
    urls = list(images or [])
    if len(urls) > max_count:
        raise QuotaExceededError(f"Maximum {max_count} images allowed")
    cleaned: list[str] = []
    for url in urls:
        if not isinstance(url, str) or len(url) > MAX_IMAGE_URL_LENGTH:
            raise ValidationError("Image URLs must be HTTPS links")
        parsed = urlparse(url.strip())
        if parsed.scheme != "https" or not parsed.netloc:
            raise ValidationError("Image URLs must be HTTPS links")
        cleaned.append(url.strip())
    return cleaned


class ReviewService:
    """Create, edit and read reviews.

    A review is keyed by (restaurant, identity) like a rating; writing twice
    overwrites. Each new review is logged in ``review_submission`` and the
    per-identity daily quota counts that log, so deleting a review does not
    free a slot.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        daily_limit: int | None = None,
    ) -> None:
        self.clock = clock
        self.daily_limit = settings.review_daily_limit if daily_limit is None else daily_limit
        self.max_comment_length = settings.review_max_comment_length
        self.max_name_length = settings.review_max_name_length
        self.max_images = settings.max_images_per_post

    def _prepare(self, draft: ReviewDraft) -> tuple[str, str, list[str]]:
        name = sanitize_text(draft.reviewer_name) or DEFAULT_REVIEWER_NAME
        if len(name) > self.max_name_length:
            raise ValidationError(f"Name must be at most {self.max_name_length} characters")
        comment = sanitize_text(draft.comment)
        if len(comment) > self.max_comment_length:
            raise ValidationError(
                f"Comment must be at most {self.max_comment_length} characters"
            )
        images = validate_image_urls(draft.images, self.max_images)
        if not comment and not images:
            raise ValidationError("Review must have a comment or at least one image")
        return name, comment, images

    def _find(self, db: Session, restaurant_id: int, token: str) -> Review | None:
        return db.execute(
            select(Review)
            .where(Review.restaurant_id == restaurant_id, Review.identity_token == token)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _count_today(self, db: Session, token: str) -> int:
        since = start_of_day(self.clock())
        return int(
            db.scalar(
                select(func.count(ReviewSubmission.id)).where(
                    ReviewSubmission.identity_token == token,
                    ReviewSubmission.created_at >= since,
                )
            )
            or 0
        )

    def add_review(
        self,
        db: Session,
        restaurant_id: int,
        identity: str,
        draft: ReviewDraft,
    ) -> ServiceResult[Review]:
        """Create the caller's review, or overwrite the one they already wrote."""

        def _add() -> Review:
            token = require_identity(identity)
            name, comment, images = self._prepare(draft)
            require_active_restaurant(db, restaurant_id, for_update=True)

            now = self.clock()
            is_new = self._find(db, restaurant_id, token) is None
            if is_new:
                written_today = self._count_today(db, token)
                if written_today >= self.daily_limit:
                    raise QuotaExceededError(
                        f"Daily limit of {self.daily_limit} reviews reached, try again tomorrow"
                    )
                db.add(
                    ReviewSubmission(
                        identity_token=token, restaurant_id=restaurant_id, created_at=now
                    )
                )

            upsert(
                db,
                Review,
                {
                    "restaurant_id": restaurant_id,
                    "identity_token": token,
                    "reviewer_name": name,
                    "comment": comment,
                    "images": images,
                    "created_at": now,
                    "updated_at": now,
                },
                conflict_columns=("restaurant_id", "identity_token"),
                update_columns=("reviewer_name", "comment", "images", "updated_at"),
            )
            refresh_restaurant_stats(db, restaurant_id)
            db.commit()
            review = self._find(db, restaurant_id, token)
            if review is None:
                raise NotFoundError("Review not found")
            logger.info(
                "Stored review %s for restaurant %s by %s",
                review.id,
                restaurant_id,
                token_prefix(token),
            )
            return review

        return guarded("add_review", db, _add, restaurant_id=restaurant_id, identity=identity)

    def update_review(
        self,
        db: Session,
        restaurant_id: int,
        identity: str,
        draft: ReviewDraft,
    ) -> ServiceResult[Review]:
        """Edit the caller's existing review. Edits never count against the quota."""

        def _update() -> Review:
            token = require_identity(identity)
            name, comment, images = self._prepare(draft)
            require_active_restaurant(db, restaurant_id)
            review = self._find(db, restaurant_id, token)
            if review is None:
                raise NotFoundError("No review found to update")
            review.reviewer_name = name
            review.comment = comment
            review.images = images
            review.updated_at = self.clock()
            db.commit()
            db.refresh(review)
            logger.info("Updated review %s by %s", review.id, token_prefix(token))
            return review

        return guarded(
            "update_review", db, _update, restaurant_id=restaurant_id, identity=identity
        )

    def delete_review(
        self, db: Session, restaurant_id: int, identity: str
    ) -> ServiceResult[int]:
        """Delete the caller's own review of a restaurant; returns its id."""

        def _delete() -> int:
            token = require_identity(identity)
            db.execute(restaurant_lock(restaurant_id))
            review = self._find(db, restaurant_id, token)
            if review is None:
                others = db.scalar(
                    select(func.count(Review.id)).where(Review.restaurant_id == restaurant_id)
                )
                if others:
                    raise OwnershipError("You can only delete your own review")
                raise NotFoundError("No review found to delete")
            review_id = review.id
            db.delete(review)
            refresh_restaurant_stats(db, restaurant_id)
            db.commit()
            logger.info("Deleted review %s by %s", review_id, token_prefix(token))
            return review_id

        return guarded(
            "delete_review", db, _delete, restaurant_id=restaurant_id, identity=identity
        )

    def delete_review_by_id(
        self, db: Session, review_id: int, identity: str | None = None
    ) -> ServiceResult[int]:
        """Delete a review by id.

        With an ``identity`` the stored author must match; without one the
        call is an admin removal.
        """

        def _delete() -> int:
            review = db.get(Review, review_id)
            if review is None:
                raise NotFoundError("Review not found")
            if identity is not None and review.identity_token != require_identity(identity):
                raise OwnershipError("You can only delete your own review")
            restaurant_id = review.restaurant_id
            db.execute(restaurant_lock(restaurant_id))
            db.delete(review)
            refresh_restaurant_stats(db, restaurant_id)
            db.commit()
            logger.info("Deleted review %s (admin=%s)", review_id, identity is None)
            return review_id

        return guarded("delete_review_by_id", db, _delete, review_id=review_id, identity=identity)

    def list_reviews(self, db: Session, restaurant_id: int) -> ServiceResult[list[Review]]:
        def _list() -> list[Review]:
            return list(
                db.scalars(
                    select(Review)
                    .where(Review.restaurant_id == restaurant_id)
                    .order_by(Review.created_at.desc(), Review.id.desc())
                )
            )

        return guarded("list_reviews", db, _list, restaurant_id=restaurant_id)

    def get_user_review(
        self, db: Session, restaurant_id: int, identity: str
    ) -> ServiceResult[Review | None]:
        def _read() -> Review | None:
            return self._find(db, restaurant_id, require_identity(identity))

        return guarded(
            "get_user_review", db, _read, restaurant_id=restaurant_id, identity=identity
        )

    def has_user_reviewed(self, db: Session, restaurant_id: int, identity: str) -> bool:
        result = self.get_user_review(db, restaurant_id, identity)
        return bool(result.success and result.value is not None)

    def get_review_stats(self, db: Session, restaurant_id: int) -> ServiceResult[ReviewStats]:
        """Review count plus rating average and per-star distribution."""

        def _stats() -> ReviewStats:
            summary = read_rating_summary(db, restaurant_id)
            return ReviewStats(
                total_reviews=summary.review_count,
                average_rating=summary.display_average,
                rating_distribution=rating_distribution(db, restaurant_id),
            )

        return guarded("get_review_stats", db, _stats, restaurant_id=restaurant_id)

    def recent_reviews(self, db: Session, limit: int = 10) -> ServiceResult[list[RecentReview]]:
        """Newest reviews across all active restaurants."""

        def _recent() -> list[RecentReview]:
            rows = db.execute(
                select(Review, Restaurant.name)
                .join(Restaurant, Restaurant.id == Review.restaurant_id)
                .where(Restaurant.is_active.is_(True))
                .order_by(Review.created_at.desc(), Review.id.desc())
                .limit(limit)
            ).all()
            return [RecentReview(review, name) for review, name in rows]

        return guarded("recent_reviews", db, _recent)

    def reviews_today(self, db: Session, identity: str) -> ServiceResult[int]:
        """How many reviews the identity created since midnight UTC."""
        return guarded(
            "reviews_today",
            db,
            lambda: self._count_today(db, require_identity(identity)),
            identity=identity,
        )
