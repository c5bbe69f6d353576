"""Visibility rules for pending and approved questions."""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class _QuestionLike(Protocol):
    author_id: str
    is_public: bool


class VisibilityState(str, Enum):
    """How a question presents to a particular caller."""

    PUBLIC = "public"
    # Pending, shown because the caller is the author or an admin.
    PENDING_VISIBLE = "pending_visible"
    # Pending and hidden; the caller sees "awaiting moderation".
    PENDING_HIDDEN = "pending_hidden"


class VisibilityGate:
    """Decides who may view and answer a question.

    Lifecycle: Pending (on creation) -> Public (admin approval) -> Deleted.
    There is no way back from Public to Pending.
    """

    @staticmethod
    def can_view(question: _QuestionLike, caller_id: str | None, caller_is_admin: bool) -> bool:
        """Public questions are visible to all; pending ones to the author and admins."""
        if question.is_public:
            return True
        if caller_is_admin:
            return True
        return caller_id is not None and caller_id == question.author_id

    @staticmethod
    def can_answer(question: _QuestionLike, caller_is_admin: bool) -> bool:
        """Answering opens only after approval, for admins too.

        ``caller_is_admin`` is accepted to match ``can_view`` but does not
        change the outcome.
        """
        return bool(question.is_public)

    @classmethod
    def visibility(
        cls,
        question: _QuestionLike,
        caller_id: str | None,
        caller_is_admin: bool,
    ) -> VisibilityState:
        if question.is_public:
            return VisibilityState.PUBLIC
        if cls.can_view(question, caller_id, caller_is_admin):
            return VisibilityState.PENDING_VISIBLE
        return VisibilityState.PENDING_HIDDEN
