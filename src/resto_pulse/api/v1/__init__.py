# src/resto_pulse/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    ratings_router,
    reactions_router,
    restaurants_router,
    reviews_router,
    suggestions_router,
    uploads_router,
)

__all__ = [
    "admin_router",
    "ratings_router",
    "reactions_router",
    "restaurants_router",
    "reviews_router",
    "suggestions_router",
    "uploads_router",
]
