"""Admin authentication schemas."""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Admin credentials."""

    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=200)


class AdminResponse(BaseModel):
    """Currently authenticated admin."""

    username: str
