# src/resto_pulse/schemas/admin.py
"""Admin surface Pydantic schemas."""

from pydantic import BaseModel, Field


class AdminLogin(BaseModel):
    password: str = Field(..., min_length=1)


class AdminToken(BaseModel):
    """Bearer token issued after a successful admin login."""

    success: bool = True
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Lifetime in seconds")


class StatsRefreshResponse(BaseModel):
    success: bool = True
    refreshed: int
