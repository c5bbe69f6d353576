# src/queryloop/models/vote.py
"""Models capturing voting and favorite interactions."""

from enum import Enum

from sqlalchemy import CheckConstraint, ForeignKey, Index, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from queryloop.db.session import Base


class TargetType(str, Enum):
    """Kinds of entity that can receive votes."""

    QUESTION = "question"
    ANSWER = "answer"


class Vote(Base):
    """Per-user vote on a question or an answer.

    The composite primary key allows at most one row per (target, user).
    """

    __tablename__ = "votes"
    __table_args__ = (
        CheckConstraint("value IN (1, -1)", name="ck_votes_value"),
        CheckConstraint(
            "target_type IN ('question', 'answer')",
            name="ck_votes_target_type",
        ),
        Index("ix_votes_target", "target_type", "target_id"),
        Index("ix_votes_user_id", "user_id"),
    )

    target_type: Mapped[str] = mapped_column(String(16), primary_key=True)
    # Polymorphic reference, so no FK; the cascade coordinator removes these rows.
    target_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        primary_key=True,
    )

    # 1 = upvote, -1 = downvote.
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)


class Favorite(Base):
    """Presence of a row means the user favorited the question."""

    __tablename__ = "favorites"
    __table_args__ = (Index("ix_favorites_user_id", "user_id"),)

    question_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("questions.id"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        primary_key=True,
    )
