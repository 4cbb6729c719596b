# src/resto_pulse/schemas/restaurant.py
"""Restaurant Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class RestaurantCreate(BaseModel):
    """Schema for creating a restaurant from the admin surface."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    phone: str | None = Field(None, max_length=50)
    address: str | None = None
    image_url: str | None = None
    menu_images: list[str] = Field(default_factory=list)
    is_active: bool = True


class RestaurantUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    phone: str | None = Field(None, max_length=50)
    address: str | None = None
    image_url: str | None = None
    menu_images: list[str] | None = None
    is_active: bool | None = None


class RestaurantResponse(BaseModel):
    """Restaurant with its rating rollup."""

    id: int
    name: str
    description: str | None
    phone: str | None
    address: str | None
    image_url: str | None
    menu_images: list[str]
    is_active: bool
    average_rating: float
    rating_count: int
    review_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_view(cls, view):
        restaurant = view.restaurant
        return cls(
            id=restaurant.id,
            name=restaurant.name,
            description=restaurant.description,
            phone=restaurant.phone,
            address=restaurant.address,
            image_url=restaurant.image_url,
            menu_images=list(restaurant.menu_images or []),
            is_active=restaurant.is_active,
            average_rating=view.summary.display_average,
            rating_count=view.summary.rating_count,
            review_count=view.summary.review_count,
            created_at=restaurant.created_at,
            updated_at=restaurant.updated_at,
        )


class RestaurantEnvelope(BaseModel):
    success: bool = True
    restaurant: RestaurantResponse


class RestaurantListResponse(BaseModel):
    success: bool = True
    restaurants: list[RestaurantResponse]
