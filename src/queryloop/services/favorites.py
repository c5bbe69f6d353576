"""Favorite toggling for questions."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from queryloop.exceptions import AuthorizationError, NotFoundError
from queryloop.models import Favorite, Question
from queryloop.schemas.records import QuestionRecord, to_records
from queryloop.services.identity import Caller
from queryloop.services.visibility import VisibilityGate

logger = logging.getLogger(__name__)


class FavoriteService:
    """Adds or removes a caller's favorite on a question."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def toggle(self, question_id: str, caller: Caller) -> tuple[bool, int]:
        """Flip the caller's favorite; returns ``(favorited, favorite_count)``."""
        if caller.id is None:
            raise AuthorizationError("You must be logged in to favorite.", authenticated=False)
        question = self.db.get(Question, question_id)
        if question is None or not VisibilityGate.can_view(question, caller.id, caller.is_admin):
            raise NotFoundError("question", question_id)

        existing = self.db.get(Favorite, (question_id, caller.id))
        if existing is not None:
            self.db.delete(existing)
            favorited = False
        else:
            self.db.add(Favorite(question_id=question_id, user_id=caller.id))
            favorited = True
        try:
            self.db.commit()
        except IntegrityError:
            # Another request added the same favorite first.
            self.db.rollback()
            favorited = True
        logger.debug("Favorite on %s by %s -> %s", question_id, caller.id, favorited)
        return favorited, self.count(question_id)

    def count(self, question_id: str) -> int:
        return int(
            self.db.scalar(
                select(func.count()).select_from(Favorite).where(Favorite.question_id == question_id)
            )
            or 0
        )

    def is_favorite(self, question_id: str, user_id: str | None) -> bool:
        if user_id is None:
            return False
        return self.db.get(Favorite, (question_id, user_id)) is not None

    def list_for_user(self, caller: Caller) -> list[QuestionRecord]:
        """Questions the caller favorited and can still see, newest first."""
        if caller.id is None:
            return []
        questions = self.db.scalars(
            select(Question)
            .join(Favorite, Favorite.question_id == Question.id)
            .where(Favorite.user_id == caller.id)
            .order_by(Question.created_at.desc(), Question.id)
        ).all()
        return to_records(
            QuestionRecord,
            [q for q in questions if VisibilityGate.can_view(q, caller.id, caller.is_admin)],
        )
