# src/resto_pulse/api/v1/endpoints/restaurants.py
"""Public restaurant endpoints for the Resto Pulse API."""

from fastapi import APIRouter, Query

from resto_pulse.schemas.restaurant import (
    RestaurantEnvelope,
    RestaurantListResponse,
    RestaurantResponse,
)

from ..dependencies import RestaurantServiceDep, SessionDep, unwrap

router = APIRouter(prefix="/restaurants", tags=["restaurants"])


@router.get("", response_model=RestaurantListResponse)
async def list_restaurants(
    db: SessionDep,
    restaurants: RestaurantServiceDep,
) -> RestaurantListResponse:
    """Active restaurants with their rating rollups."""
    views = restaurants.list_restaurants(db)
    return RestaurantListResponse(
        restaurants=[RestaurantResponse.from_view(view) for view in views]
    )


@router.get("/top", response_model=RestaurantListResponse)
async def top_restaurants(
    db: SessionDep,
    restaurants: RestaurantServiceDep,
    limit: int = Query(5, ge=1, le=50),
) -> RestaurantListResponse:
    views = restaurants.top_rated(db, limit)
    return RestaurantListResponse(
        restaurants=[RestaurantResponse.from_view(view) for view in views]
    )


@router.get("/{restaurant_id}", response_model=RestaurantEnvelope)
async def get_restaurant(
    restaurant_id: int,
    db: SessionDep,
    restaurants: RestaurantServiceDep,
) -> RestaurantEnvelope:
    view = unwrap(restaurants.get_restaurant(db, restaurant_id))
    return RestaurantEnvelope(restaurant=RestaurantResponse.from_view(view))
