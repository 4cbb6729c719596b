# src/resto_pulse/api/v1/endpoints/ratings.py
"""Rating endpoints for the Resto Pulse API."""

from fastapi import APIRouter

from resto_pulse.schemas.rating import (
    RatingCreate,
    RatingSubmitResponse,
    RatingSummaryEnvelope,
    RatingSummaryResponse,
    UserRatingResponse,
)

from ..dependencies import IdentityDep, RatingServiceDep, SessionDep, unwrap

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.post("", response_model=RatingSubmitResponse)
async def submit_rating(
    payload: RatingCreate,
    db: SessionDep,
    identity: IdentityDep,
    ratings: RatingServiceDep,
) -> RatingSubmitResponse:
    """Create or overwrite the caller's rating and return the refreshed rollup."""
    outcome = unwrap(ratings.submit_rating(db, payload.restaurant_id, identity, payload.rating))
    return RatingSubmitResponse(
        rating=outcome.rating,
        summary=RatingSummaryResponse.from_summary(outcome.summary),
    )


@router.get("/{restaurant_id}", response_model=RatingSummaryEnvelope)
async def get_rating_summary(
    restaurant_id: int,
    db: SessionDep,
    ratings: RatingServiceDep,
) -> RatingSummaryEnvelope:
    summary = unwrap(ratings.get_summary(db, restaurant_id))
    distribution = unwrap(ratings.get_distribution(db, restaurant_id))
    return RatingSummaryEnvelope(
        summary=RatingSummaryResponse.from_summary(summary, distribution)
    )


@router.get("/{restaurant_id}/mine", response_model=UserRatingResponse)
async def get_my_rating(
    restaurant_id: int,
    db: SessionDep,
    identity: IdentityDep,
    ratings: RatingServiceDep,
) -> UserRatingResponse:
    value = unwrap(ratings.get_user_rating(db, restaurant_id, identity))
    return UserRatingResponse(rating=value, has_rated=value is not None)
