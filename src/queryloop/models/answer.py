# src/queryloop/models/answer.py
"""SQLAlchemy models for answers and their attachments."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from queryloop.db.session import Base
from queryloop.db.time import new_id, utcnow


class Answer(Base):
    """Reply to a question."""

    __tablename__ = "answers"
    __table_args__ = (
        Index("ix_answers_question_id", "question_id"),
        Index("ix_answers_author_id", "author_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    question_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("questions.id"),
        nullable=False,
    )
    author_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    # Legacy column kept for older schema variants.
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class AnswerAttachment(Base):
    """File uploaded alongside an answer."""

    __tablename__ = "answer_attachments"
    __table_args__ = (Index("ix_answer_attachments_answer_id", "answer_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    answer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("answers.id"),
        nullable=False,
    )
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
