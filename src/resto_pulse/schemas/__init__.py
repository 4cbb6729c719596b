# src/resto_pulse/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .admin import AdminLogin, AdminToken
from .common import ErrorResponse, SuccessResponse
from .rating import RatingCreate, RatingSubmitResponse, RatingSummaryResponse
from .restaurant import RestaurantCreate, RestaurantResponse, RestaurantUpdate
from .review import ReviewCreate, ReviewResponse, ReviewUpdate
from .suggestion import ReactionResponse, ReactionToggle, SuggestionCreate, SuggestionResponse
from .upload import UploadResponse

__all__ = [
    "AdminLogin", "AdminToken",
    "ErrorResponse", "SuccessResponse",
    "RatingCreate", "RatingSubmitResponse", "RatingSummaryResponse",
    "RestaurantCreate", "RestaurantResponse", "RestaurantUpdate",
    "ReviewCreate", "ReviewResponse", "ReviewUpdate",
    "ReactionResponse", "ReactionToggle", "SuggestionCreate", "SuggestionResponse",
    "UploadResponse",
]
