# src/resto_pulse/api/v1/endpoints/admin.py
"""Admin endpoints: password login and moderation of restaurants and posts."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from resto_pulse.core.security import create_admin_token, login_throttle, verify_admin_password
from resto_pulse.core.settings import settings
from resto_pulse.schemas.admin import AdminLogin, AdminToken, StatsRefreshResponse
from resto_pulse.schemas.common import SuccessResponse
from resto_pulse.schemas.rating import RatingSummaryEnvelope, RatingSummaryResponse
from resto_pulse.schemas.restaurant import (
    RestaurantCreate,
    RestaurantEnvelope,
    RestaurantListResponse,
    RestaurantResponse,
    RestaurantUpdate,
)
from resto_pulse.services.results import ErrorKind

from ..dependencies import (
    AdminDep,
    RatingServiceDep,
    RestaurantServiceDep,
    ReviewServiceDep,
    ServiceFailure,
    SessionDep,
    SuggestionServiceDep,
    unwrap,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=AdminToken)
async def login(payload: AdminLogin, request: Request) -> AdminToken:
    """Exchange the admin password for a short-lived bearer token.

    Repeated failures lock the login for a while, per client host.
    """
    host = request.client.host if request.client else "unknown"
    if login_throttle.is_locked(host):
        raise ServiceFailure(
            ErrorKind.QUOTA_EXCEEDED,
            f"Too many failed attempts, try again in {settings.admin_lockout_minutes} minutes",
        )
    if not verify_admin_password(payload.password):
        login_throttle.record_failure(host)
        logger.warning("Failed admin login attempt from %s", host)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid password",
        )
    login_throttle.reset(host)
    logger.info("Admin logged in")
    return AdminToken(
        access_token=create_admin_token(),
        expires_in=settings.admin_token_expire_minutes * 60,
    )


@router.get("/restaurants", response_model=RestaurantListResponse)
async def list_all_restaurants(
    _admin: AdminDep,
    db: SessionDep,
    restaurants: RestaurantServiceDep,
) -> RestaurantListResponse:
    views = restaurants.list_restaurants(db, include_inactive=True)
    return RestaurantListResponse(
        restaurants=[RestaurantResponse.from_view(view) for view in views]
    )


@router.post(
    "/restaurants", response_model=RestaurantEnvelope, status_code=status.HTTP_201_CREATED
)
async def create_restaurant(
    payload: RestaurantCreate,
    _admin: AdminDep,
    db: SessionDep,
    restaurants: RestaurantServiceDep,
) -> RestaurantEnvelope:
    view = unwrap(restaurants.create_restaurant(db, payload.model_dump()))
    return RestaurantEnvelope(restaurant=RestaurantResponse.from_view(view))


@router.put("/restaurants/{restaurant_id}", response_model=RestaurantEnvelope)
async def update_restaurant(
    restaurant_id: int,
    payload: RestaurantUpdate,
    _admin: AdminDep,
    db: SessionDep,
    restaurants: RestaurantServiceDep,
) -> RestaurantEnvelope:
    fields = payload.model_dump(exclude_unset=True)
    view = unwrap(restaurants.update_restaurant(db, restaurant_id, fields))
    return RestaurantEnvelope(restaurant=RestaurantResponse.from_view(view))


@router.post("/restaurants/{restaurant_id}/deactivate", response_model=RestaurantEnvelope)
async def deactivate_restaurant(
    restaurant_id: int,
    _admin: AdminDep,
    db: SessionDep,
    restaurants: RestaurantServiceDep,
) -> RestaurantEnvelope:
    view = unwrap(restaurants.deactivate_restaurant(db, restaurant_id))
    return RestaurantEnvelope(restaurant=RestaurantResponse.from_view(view))


@router.delete("/restaurants/{restaurant_id}", response_model=SuccessResponse)
async def delete_restaurant(
    restaurant_id: int,
    _admin: AdminDep,
    db: SessionDep,
    restaurants: RestaurantServiceDep,
) -> SuccessResponse:
    unwrap(restaurants.delete_restaurant(db, restaurant_id))
    return SuccessResponse(message=f"Restaurant {restaurant_id} deleted")


@router.delete("/reviews/{review_id}", response_model=SuccessResponse)
async def delete_review(
    review_id: int,
    _admin: AdminDep,
    db: SessionDep,
    reviews: ReviewServiceDep,
) -> SuccessResponse:
    unwrap(reviews.delete_review_by_id(db, review_id))
    return SuccessResponse(message=f"Review {review_id} deleted")


@router.delete("/suggestions/{suggestion_id}", response_model=SuccessResponse)
async def delete_suggestion(
    suggestion_id: str,
    _admin: AdminDep,
    db: SessionDep,
    suggestions: SuggestionServiceDep,
) -> SuccessResponse:
    unwrap(suggestions.delete_suggestion(db, suggestion_id, None))
    return SuccessResponse(message=f"Suggestion {suggestion_id} deleted")


@router.delete("/ratings/{restaurant_id}/{identity}", response_model=RatingSummaryEnvelope)
async def delete_rating(
    restaurant_id: int,
    identity: str,
    _admin: AdminDep,
    db: SessionDep,
    ratings: RatingServiceDep,
) -> RatingSummaryEnvelope:
    summary = unwrap(ratings.delete_rating(db, restaurant_id, identity))
    return RatingSummaryEnvelope(summary=RatingSummaryResponse.from_summary(summary))


@router.post("/stats/refresh", response_model=StatsRefreshResponse)
async def refresh_stats(
    _admin: AdminDep,
    db: SessionDep,
    restaurants: RestaurantServiceDep,
) -> StatsRefreshResponse:
    """Recompute every restaurant rollup from the underlying rows."""
    refreshed = unwrap(restaurants.refresh_stats(db))
    return StatsRefreshResponse(refreshed=refreshed)
