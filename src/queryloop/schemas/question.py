# src/queryloop/schemas/question.py
"""Question and answer Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .user import AuthorSummary, UserResponse


class QuestionCreate(BaseModel):
    """Schema for asking a new question."""

    title: str = Field(..., min_length=1, max_length=300)
    body: str = Field(..., min_length=1, max_length=20000)
    tags: list[str] = Field(default_factory=list, max_length=10)


class AnswerCreate(BaseModel):
    """Schema for answering a question."""

    body: str = Field(..., min_length=1, max_length=20000)


class TagResponse(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class AttachmentResponse(BaseModel):
    id: str
    file_path: str

    model_config = ConfigDict(from_attributes=True)


class QuestionSummary(BaseModel):
    """Question fields used in lists."""

    id: str
    title: str
    author_id: str
    is_public: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuestionResponse(QuestionSummary):
    body: str
    updated_at: datetime


class AnswerResponse(BaseModel):
    id: str
    question_id: str
    author_id: str
    body: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AnswerDetail(AnswerResponse):
    author: AuthorSummary | None = None
    attachments: list[AttachmentResponse] = Field(default_factory=list)
    score: int = 0
    user_vote: Literal[-1, 0, 1] = 0


class QuestionDetail(QuestionResponse):
    """Everything the question page needs in one response."""

    author: AuthorSummary | None = None
    tags: list[TagResponse] = Field(default_factory=list)
    attachments: list[AttachmentResponse] = Field(default_factory=list)
    score: int = 0
    user_vote: Literal[-1, 0, 1] = 0
    favorite_count: int = 0
    is_favorite: bool = False
    can_answer: bool = False
    answers: list[AnswerDetail] = Field(default_factory=list)


class FavoriteState(BaseModel):
    favorited: bool
    favorite_count: int


class ProfilePage(BaseModel):
    """Public profile with the user's approved questions."""

    user: UserResponse
    questions: list[QuestionSummary]


class ActivityPage(BaseModel):
    """The caller's own questions (pending included), answers and favorites."""

    questions: list[QuestionSummary]
    answers: list[AnswerResponse]
    favorites: list[QuestionSummary]
