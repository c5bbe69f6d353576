# src/queryloop/schemas/admin.py
"""Request bodies for the admin endpoints.

Fields are optional so that missing values produce the admin surface's own
``{"error": ...}`` 400 response instead of a schema validation error.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ModerationRequest(BaseModel):
    action: str | None = None
    question_id: str | None = Field(None, alias="questionId")

    model_config = ConfigDict(populate_by_name=True)


class AdminQuestionRequest(BaseModel):
    action: str | None = None
    question_id: str | None = Field(None, alias="questionId")
    new_title: str | None = Field(None, alias="newTitle")

    model_config = ConfigDict(populate_by_name=True)


class AdminUserRequest(BaseModel):
    action: str | None = None
    user_id: str | None = Field(None, alias="userId")

    model_config = ConfigDict(populate_by_name=True)


class PendingAuthor(BaseModel):
    username: str | None = None
    display_name: str | None = None


class PendingQuestion(BaseModel):
    """Row of the moderation queue."""

    id: str
    title: str
    author_id: str
    created_at: datetime
    author: PendingAuthor
