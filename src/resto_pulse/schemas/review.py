# src/resto_pulse/schemas/review.py
"""Review-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ReviewFields(BaseModel):
    """Editable review fields. Length and URL rules are enforced by the service."""

    reviewer_name: str | None = Field(None, description="Display name, defaults to Anonymous")
    comment: str | None = Field(None, description="Plain-text comment")
    images: list[str] = Field(default_factory=list, description="HTTPS image URLs")


class ReviewCreate(ReviewFields):
    """Schema for creating (or overwriting) the caller's review."""

    restaurant_id: int


class ReviewUpdate(ReviewFields):
    """Schema for editing the caller's existing review."""


class ReviewResponse(BaseModel):
    """Review as returned by the API. The author's identity token is never exposed."""

    id: int
    restaurant_id: int
    reviewer_name: str
    comment: str
    images: list[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RecentReviewResponse(ReviewResponse):
    restaurant_name: str


class ReviewEnvelope(BaseModel):
    success: bool = True
    review: ReviewResponse


class ReviewListResponse(BaseModel):
    success: bool = True
    reviews: list[ReviewResponse]
    count: int


class RecentReviewListResponse(BaseModel):
    success: bool = True
    reviews: list[RecentReviewResponse]


class UserReviewResponse(BaseModel):
    success: bool = True
    review: ReviewResponse | None
    has_reviewed: bool
    reviews_today: int
    daily_limit: int


class ReviewStatsResponse(BaseModel):
    success: bool = True
    total_reviews: int
    average_rating: float
    rating_distribution: dict[int, int]


class ReviewDeletedResponse(BaseModel):
    success: bool = True
    review_id: int
