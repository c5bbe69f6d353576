# src/queryloop/schemas/user.py
"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProfileCreate(BaseModel):
    """Schema for creating the profile that mirrors the caller's identity."""

    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    display_name: str | None = Field(None, max_length=128)
    bio: str | None = Field(None, max_length=2000)


class AuthorSummary(BaseModel):
    """Author fields shown next to posts."""

    id: str
    username: str
    display_name: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    """Public profile returned by the API."""

    id: str
    username: str
    display_name: str | None
    is_admin: bool
    reputation: int
    bio: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    """Editable profile fields; the username cannot change."""

    display_name: str | None = Field(None, max_length=128)
    bio: str | None = Field(None, max_length=2000)

    model_config = ConfigDict(extra="forbid")
