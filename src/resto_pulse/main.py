# src/resto_pulse/main.py
"""Main entry point for the Resto Pulse application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from resto_pulse.api.v1 import (
    admin_router,
    ratings_router,
    reactions_router,
    restaurants_router,
    reviews_router,
    suggestions_router,
    uploads_router,
)
from resto_pulse.api.v1.dependencies import ServiceFailure, service_failure_handler
from resto_pulse.core.settings import settings
from resto_pulse.db.session import create_tables
from resto_pulse.schemas.common import ErrorResponse
from resto_pulse.services.results import ErrorKind

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Resto Pulse API",
    description="Restaurant ratings, reviews and community suggestions",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

app.add_exception_handler(ServiceFailure, service_failure_handler)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render malformed request bodies in the same shape as service failures."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    body = ErrorResponse(
        error=f"{location}: {message}" if location else message,
        kind=ErrorKind.VALIDATION.value,
    )
    return JSONResponse(status_code=400, content=body.model_dump())


# Include API routers
app.include_router(restaurants_router, prefix="/api/v1")
app.include_router(ratings_router, prefix="/api/v1")
app.include_router(reviews_router, prefix="/api/v1")
app.include_router(suggestions_router, prefix="/api/v1")
app.include_router(reactions_router, prefix="/api/v1")
app.include_router(uploads_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    if settings.auto_create_tables:
        create_tables()
        logger.info("Database tables ensured")
    if not settings.cloudinary_configured:
        logger.warning("Cloudinary credentials missing; image uploads will fail")
    if not settings.admin_password:
        logger.warning("ADMIN_PASSWORD not set; admin login is disabled")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Restaurant ratings, reviews and community suggestions",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("resto_pulse.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
