# src/resto_pulse/models/__init__.py
"""SQLAlchemy models for the Resto Pulse application."""

from .rating import Rating
from .restaurant import Restaurant, RestaurantStats
from .review import Review, ReviewSubmission
from .suggestion import SUGGESTION_TYPES, Suggestion, SuggestionReaction

__all__ = [
    "Rating",
    "Restaurant", "RestaurantStats",
    "Review", "ReviewSubmission",
    "SUGGESTION_TYPES", "Suggestion", "SuggestionReaction",
]
