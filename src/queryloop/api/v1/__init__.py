# src/queryloop/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    answers_router,
    questions_router,
    tags_router,
    users_router,
    votes_router,
)

__all__ = [
    "answers_router",
    "questions_router",
    "tags_router",
    "users_router",
    "votes_router",
]
