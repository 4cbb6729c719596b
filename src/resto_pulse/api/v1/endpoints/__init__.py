# src/resto_pulse/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .ratings import router as ratings_router
from .reactions import router as reactions_router
from .restaurants import router as restaurants_router
from .reviews import router as reviews_router
from .suggestions import router as suggestions_router
from .uploads import router as uploads_router

__all__ = [
    "admin_router",
    "ratings_router",
    "reactions_router",
    "restaurants_router",
    "reviews_router",
    "suggestions_router",
    "uploads_router",
]
