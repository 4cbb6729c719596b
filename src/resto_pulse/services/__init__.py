# src/resto_pulse/services/__init__.py
"""Business logic services for the Resto Pulse application."""

from .ratings import RatingService
from .restaurants import RestaurantService
from .results import ErrorKind, ServiceResult
from .reviews import ReviewService
from .storage import BlobStorageService
from .suggestions import SuggestionService

__all__ = [
    "BlobStorageService",
    "ErrorKind",
    "RatingService",
    "RestaurantService",
    "ReviewService",
    "ServiceResult",
    "SuggestionService",
]
