# src/queryloop/db/time.py
"""Time and identifier helpers for database models."""

import uuid
from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def new_id() -> str:
    """Return a fresh opaque row identifier."""
    return str(uuid.uuid4())
