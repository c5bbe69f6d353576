# src/queryloop/models/__init__.py
"""SQLAlchemy models for the QueryLoop application."""

from .answer import Answer, AnswerAttachment
from .question import Question, QuestionAttachment, QuestionTag, Tag
from .user import Identity, User
from .vote import Favorite, TargetType, Vote

__all__ = [
    "Answer", "AnswerAttachment",
    "Favorite",
    "Identity",
    "Question", "QuestionAttachment", "QuestionTag",
    "Tag",
    "TargetType",
    "User",
    "Vote",
]
