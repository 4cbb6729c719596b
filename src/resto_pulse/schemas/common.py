"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every rejected request."""

    success: bool = False
    error: str = Field(..., description="Human readable reason.")
    kind: str = Field(..., description="Failure category, e.g. validation or not_found.")


class SuccessResponse(BaseModel):
    """Acknowledgement for mutations that return no payload."""

    success: bool = True
    message: str | None = None
