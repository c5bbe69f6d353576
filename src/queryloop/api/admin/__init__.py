"""Admin endpoints mounted under ``/api/admin``.

Every route requires an admin caller and answers with ``{"success": true}``
or ``{"error": message}``.
"""

from .moderation import router as moderation_router
from .questions import router as questions_router
from .users import router as users_router

__all__ = ["moderation_router", "questions_router", "users_router"]
