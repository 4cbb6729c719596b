# src/resto_pulse/schemas/rating.py
"""Rating-related Pydantic schemas."""

from pydantic import BaseModel, Field


class RatingCreate(BaseModel):
    """Schema for submitting a rating."""

    restaurant_id: int = Field(..., description="Restaurant being rated")
    rating: float = Field(..., description="Stars from 1 to 5, rounded to the nearest half")


class RatingSummaryResponse(BaseModel):
    """Server-computed rollup for a restaurant."""

    restaurant_id: int
    average_rating: float
    display_average: float
    rating_count: int
    review_count: int = 0
    distribution: dict[int, int] | None = None

    @classmethod
    def from_summary(cls, summary, distribution: dict[int, int] | None = None):
        return cls(
            restaurant_id=summary.restaurant_id,
            average_rating=summary.average_rating,
            display_average=summary.display_average,
            rating_count=summary.rating_count,
            review_count=summary.review_count,
            distribution=distribution,
        )


class RatingSubmitResponse(BaseModel):
    success: bool = True
    rating: float
    summary: RatingSummaryResponse


class RatingSummaryEnvelope(BaseModel):
    success: bool = True
    summary: RatingSummaryResponse


class UserRatingResponse(BaseModel):
    success: bool = True
    rating: float | None
    has_rated: bool
