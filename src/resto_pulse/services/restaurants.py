"""Restaurant listing for visitors and CRUD for the admin surface."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from resto_pulse.models import Restaurant, RestaurantStats
from resto_pulse.services.aggregates import (
    RatingSummary,
    read_rating_summary,
    refresh_all_restaurant_stats,
    refresh_restaurant_stats,
)
from resto_pulse.services.results import (
    NotFoundError,
    ServiceResult,
    ValidationError,
    guarded,
)

logger = logging.getLogger(__name__)

TOP_RATED_THRESHOLD = 4.0
EDITABLE_FIELDS = (
    "name",
    "description",
    "phone",
    "address",
    "image_url",
    "menu_images",
    "is_active",
)


@dataclass(frozen=True)
class RestaurantView:
    """Restaurant row paired with its rating rollup."""

    restaurant: Restaurant
    summary: RatingSummary


def restaurant_lock(restaurant_id: int) -> Select[tuple[Restaurant]]:
    """``SELECT ... FOR UPDATE`` on one restaurant row.

    Writers that recompute the restaurant's rollup take this lock first so
    concurrent recomputes see each other's committed rows.
    """
    return (
        select(Restaurant)
        .where(Restaurant.id == restaurant_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


def require_active_restaurant(
    db: Session, restaurant_id: int, *, for_update: bool = False
) -> Restaurant:
    """Return the restaurant if it exists and is active.

    With ``for_update`` the row stays locked until the transaction ends.

    Raises:
        ValidationError: If ``restaurant_id`` is not a positive integer.
        NotFoundError: If no active restaurant has that id.
    """
    if isinstance(restaurant_id, bool) or not isinstance(restaurant_id, int) or restaurant_id < 1:
        raise ValidationError("A valid restaurant id is required")
    if for_update:
        restaurant = db.execute(restaurant_lock(restaurant_id)).scalar_one_or_none()
    else:
        restaurant = db.get(Restaurant, restaurant_id)
    if restaurant is None or not restaurant.is_active:
        raise NotFoundError("Restaurant not found")
    return restaurant


def _clean_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    values = {key: fields[key] for key in EDITABLE_FIELDS if key in fields}
    if "name" in values:
        name = (values["name"] or "").strip()
        if not name:
            raise ValidationError("Restaurant name is required")
        values["name"] = name
    if "menu_images" in values and values["menu_images"] is None:
        values["menu_images"] = []
    return values


class RestaurantService:
    """Read restaurants with rollups and manage them for admins."""

    def list_restaurants(self, db: Session, include_inactive: bool = False) -> list[RestaurantView]:
        stmt = select(Restaurant).order_by(Restaurant.name)
        if not include_inactive:
            stmt = stmt.where(Restaurant.is_active.is_(True))
        return [
            RestaurantView(restaurant, read_rating_summary(db, restaurant.id))
            for restaurant in db.scalars(stmt)
        ]

    def get_restaurant(self, db: Session, restaurant_id: int) -> ServiceResult[RestaurantView]:
        def _read() -> RestaurantView:
            restaurant = require_active_restaurant(db, restaurant_id)
            return RestaurantView(restaurant, read_rating_summary(db, restaurant.id))

        return guarded("get_restaurant", db, _read, restaurant_id=restaurant_id)

    def top_rated(self, db: Session, limit: int = 10) -> list[RestaurantView]:
        """Active restaurants averaging at least four stars, best first."""
        stmt = (
            select(Restaurant)
            .join(RestaurantStats, RestaurantStats.restaurant_id == Restaurant.id)
            .where(
                Restaurant.is_active.is_(True),
                RestaurantStats.rating_count > 0,
                RestaurantStats.average_rating >= TOP_RATED_THRESHOLD,
            )
            .order_by(
                RestaurantStats.average_rating.desc(),
                RestaurantStats.rating_count.desc(),
                Restaurant.id,
            )
            .limit(limit)
        )
        return [
            RestaurantView(restaurant, read_rating_summary(db, restaurant.id))
            for restaurant in db.scalars(stmt)
        ]

    def create_restaurant(
        self, db: Session, fields: Mapping[str, Any]
    ) -> ServiceResult[RestaurantView]:
        def _create() -> RestaurantView:
            values = _clean_fields(fields)
            if "name" not in values:
                raise ValidationError("Restaurant name is required")
            restaurant = Restaurant(**values)
            db.add(restaurant)
            db.flush()
            summary = refresh_restaurant_stats(db, restaurant.id)
            db.commit()
            db.refresh(restaurant)
            logger.info("Created restaurant %s (%s)", restaurant.id, restaurant.name)
            return RestaurantView(restaurant, summary)

        return guarded("create_restaurant", db, _create)

    def update_restaurant(
        self, db: Session, restaurant_id: int, fields: Mapping[str, Any]
    ) -> ServiceResult[RestaurantView]:
        def _update() -> RestaurantView:
            restaurant = db.get(Restaurant, restaurant_id)
            if restaurant is None:
                raise NotFoundError("Restaurant not found")
            for key, value in _clean_fields(fields).items():
                setattr(restaurant, key, value)
            db.commit()
            db.refresh(restaurant)
            logger.info("Updated restaurant %s", restaurant_id)
            return RestaurantView(restaurant, read_rating_summary(db, restaurant_id))

        return guarded("update_restaurant", db, _update, restaurant_id=restaurant_id)

    def deactivate_restaurant(
        self, db: Session, restaurant_id: int
    ) -> ServiceResult[RestaurantView]:
        return self.update_restaurant(db, restaurant_id, {"is_active": False})

    def delete_restaurant(self, db: Session, restaurant_id: int) -> ServiceResult[int]:
        def _delete() -> int:
            restaurant = db.get(Restaurant, restaurant_id)
            if restaurant is None:
                raise NotFoundError("Restaurant not found")
            db.delete(restaurant)
            db.commit()
            logger.info("Deleted restaurant %s", restaurant_id)
            return restaurant_id

        return guarded("delete_restaurant", db, _delete, restaurant_id=restaurant_id)

    def refresh_stats(self, db: Session) -> ServiceResult[int]:
        """Recompute every rollup from the underlying rows."""

        def _refresh() -> int:
            refreshed = refresh_all_restaurant_stats(db)
            db.commit()
            logger.info("Refreshed rating rollups for %d restaurants", refreshed)
            return refreshed

        return guarded("refresh_stats", db, _refresh)
