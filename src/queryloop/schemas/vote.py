# src/queryloop/schemas/vote.py
"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from queryloop.models.vote import TargetType


class VoteCreate(BaseModel):
    """Schema for casting a vote."""

    target_type: TargetType
    target_id: str = Field(..., min_length=1)
    value: Literal[-1, 1] = Field(..., description="1 for upvote, -1 for downvote")


class VoteState(BaseModel):
    """Aggregate score of a target and the caller's own vote on it."""

    score: int
    user_vote: Literal[-1, 0, 1] = 0
