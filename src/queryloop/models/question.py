# src/queryloop/models/question.py
"""SQLAlchemy models for questions, tags and question attachments."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from queryloop.db.session import Base
from queryloop.db.time import new_id, utcnow


class Question(Base):
    """A question posted by a user.

    New questions start pending (``is_public = False``) and only become
    visible to everyone once an admin approves them.
    """

    __tablename__ = "questions"
    __table_args__ = (
        Index("ix_questions_author_id", "author_id"),
        Index("ix_questions_is_public_created_at", "is_public", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
    )
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Legacy denormalized counter; scores are aggregated from the votes table.
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Tag(Base):
    """Named label attached to questions."""

    __tablename__ = "tags"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)


class QuestionTag(Base):
    """Link row between a question and a tag."""

    __tablename__ = "questions_tags"

    question_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("questions.id"),
        primary_key=True,
    )
    tag_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tags.id"),
        primary_key=True,
    )


class QuestionAttachment(Base):
    """File uploaded alongside a question; ``file_path`` keys into object storage."""

    __tablename__ = "question_attachments"
    __table_args__ = (Index("ix_question_attachments_question_id", "question_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    question_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("questions.id"),
        nullable=False,
    )
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
