# src/queryloop/models/user.py
"""SQLAlchemy models for identities and user profiles."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from queryloop.db.session import Base
from queryloop.db.time import new_id, utcnow


class Identity(Base):
    """Login identity mirrored from the identity provider.

    Credentials never live here; the row only anchors the id that bearer
    tokens carry in their subject claim.
    """

    __tablename__ = "identities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class User(Base):
    """Public profile for an identity."""

    __tablename__ = "users"

    # Same value as the identity id; no FK so the identity can be removed first.
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    # Immutable key used in public profile URLs.
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Stored for profile display; not used by scoring.
    reputation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
