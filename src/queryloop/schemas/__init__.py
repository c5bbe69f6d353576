"""
Pydantic schemas for API request/response models and typed store records.
"""

from .admin import AdminQuestionRequest, AdminUserRequest, ModerationRequest, PendingQuestion
from .question import (
    AnswerCreate,
    AnswerDetail,
    FavoriteState,
    QuestionCreate,
    QuestionDetail,
    QuestionSummary,
)
from .user import ProfileCreate, UserResponse
from .vote import VoteCreate, VoteState

__all__ = [
    "AdminQuestionRequest", "AdminUserRequest", "ModerationRequest", "PendingQuestion",
    "AnswerCreate", "AnswerDetail",
    "FavoriteState",
    "QuestionCreate", "QuestionDetail", "QuestionSummary",
    "ProfileCreate", "UserResponse",
    "VoteCreate", "VoteState",
]
