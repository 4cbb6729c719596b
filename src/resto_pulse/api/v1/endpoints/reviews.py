# src/resto_pulse/api/v1/endpoints/reviews.py
"""Review endpoints for the Resto Pulse API."""

from fastapi import APIRouter, Query, status

from resto_pulse.schemas.review import (
    RecentReviewListResponse,
    RecentReviewResponse,
    ReviewCreate,
    ReviewDeletedResponse,
    ReviewEnvelope,
    ReviewFields,
    ReviewListResponse,
    ReviewResponse,
    ReviewStatsResponse,
    ReviewUpdate,
    UserReviewResponse,
)
from resto_pulse.services.reviews import ReviewDraft

from ..dependencies import IdentityDep, ReviewServiceDep, SessionDep, unwrap

router = APIRouter(prefix="/reviews", tags=["reviews"])


def _draft(payload: ReviewFields) -> ReviewDraft:
    return ReviewDraft(
        reviewer_name=payload.reviewer_name,
        comment=payload.comment,
        images=list(payload.images),
    )


@router.post("", response_model=ReviewEnvelope, status_code=status.HTTP_201_CREATED)
async def add_review(
    payload: ReviewCreate,
    db: SessionDep,
    identity: IdentityDep,
    reviews: ReviewServiceDep,
) -> ReviewEnvelope:
    """Create the caller's review; a second call overwrites the first."""
    review = unwrap(reviews.add_review(db, payload.restaurant_id, identity, _draft(payload)))
    return ReviewEnvelope(review=ReviewResponse.model_validate(review))


@router.get("/recent", response_model=RecentReviewListResponse)
async def recent_reviews(
    db: SessionDep,
    reviews: ReviewServiceDep,
    limit: int = Query(10, ge=1, le=50),
) -> RecentReviewListResponse:
    items = unwrap(reviews.recent_reviews(db, limit))
    return RecentReviewListResponse(
        reviews=[
            RecentReviewResponse(
                **ReviewResponse.model_validate(item.review).model_dump(),
                restaurant_name=item.restaurant_name,
            )
            for item in items
        ]
    )


@router.delete("/by-id/{review_id}", response_model=ReviewDeletedResponse)
async def delete_review_by_id(
    review_id: int,
    db: SessionDep,
    identity: IdentityDep,
    reviews: ReviewServiceDep,
) -> ReviewDeletedResponse:
    """Delete a review by id; only its author may do so."""
    deleted = unwrap(reviews.delete_review_by_id(db, review_id, identity))
    return ReviewDeletedResponse(review_id=deleted)


@router.put("/{restaurant_id}", response_model=ReviewEnvelope)
async def update_review(
    restaurant_id: int,
    payload: ReviewUpdate,
    db: SessionDep,
    identity: IdentityDep,
    reviews: ReviewServiceDep,
) -> ReviewEnvelope:
    review = unwrap(reviews.update_review(db, restaurant_id, identity, _draft(payload)))
    return ReviewEnvelope(review=ReviewResponse.model_validate(review))


@router.delete("/{restaurant_id}", response_model=ReviewDeletedResponse)
async def delete_review(
    restaurant_id: int,
    db: SessionDep,
    identity: IdentityDep,
    reviews: ReviewServiceDep,
) -> ReviewDeletedResponse:
    deleted = unwrap(reviews.delete_review(db, restaurant_id, identity))
    return ReviewDeletedResponse(review_id=deleted)


@router.get("/{restaurant_id}", response_model=ReviewListResponse)
async def list_reviews(
    restaurant_id: int,
    db: SessionDep,
    reviews: ReviewServiceDep,
) -> ReviewListResponse:
    items = unwrap(reviews.list_reviews(db, restaurant_id))
    return ReviewListResponse(
        reviews=[ReviewResponse.model_validate(item) for item in items],
        count=len(items),
    )


@router.get("/{restaurant_id}/mine", response_model=UserReviewResponse)
async def get_my_review(
    restaurant_id: int,
    db: SessionDep,
    identity: IdentityDep,
    reviews: ReviewServiceDep,
) -> UserReviewResponse:
    """Return the caller's review and how much of today's quota is used."""
    review = unwrap(reviews.get_user_review(db, restaurant_id, identity))
    today = unwrap(reviews.reviews_today(db, identity))
    return UserReviewResponse(
        review=ReviewResponse.model_validate(review) if review is not None else None,
        has_reviewed=review is not None,
        reviews_today=today,
        daily_limit=reviews.daily_limit,
    )


@router.get("/{restaurant_id}/stats", response_model=ReviewStatsResponse)
async def get_review_stats(
    restaurant_id: int,
    db: SessionDep,
    reviews: ReviewServiceDep,
) -> ReviewStatsResponse:
    stats = unwrap(reviews.get_review_stats(db, restaurant_id))
    return ReviewStatsResponse(
        total_reviews=stats.total_reviews,
        average_rating=stats.average_rating,
        rating_distribution=stats.rating_distribution,
    )
