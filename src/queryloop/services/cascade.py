"""Ordered deletion of questions and users with everything that hangs off them.

Order inside a question cascade:

1. question attachments (blobs, then rows)
2. answers, each with its attachments (blobs, then rows) and votes
3. favorites
4. tag links
5. votes on the question
6. the question row

All row deletions of one cascade share a single transaction. Blob removal
runs before the rows that reference it are deleted and treats missing blobs
as removed, so when any step fails the rows are rolled back, their metadata
still points at what is left in storage, and re-running the cascade finishes
the job.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from queryloop.core.settings import settings
from queryloop.exceptions import CascadeDeletionError, NotFoundError, QueryLoopError
from queryloop.models import (
    Answer,
    AnswerAttachment,
    Favorite,
    Question,
    QuestionAttachment,
    QuestionTag,
    TargetType,
    User,
    Vote,
)
from queryloop.schemas.records import (
    AnswerAttachmentRecord,
    QuestionAttachmentRecord,
    to_records,
)
from queryloop.services.identity import IdentityDirectory
from queryloop.services.storage import ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class CascadeReport:
    """Counts of what a cascade removed."""

    questions: int = 0
    answers: int = 0
    question_attachments: int = 0
    answer_attachments: int = 0
    blobs: int = 0
    votes: int = 0
    favorites: int = 0
    tag_links: int = 0
    identities: int = 0
    users: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class CascadeDeletionCoordinator:
    """Deletes questions and users without leaving orphaned rows or blobs."""

    def __init__(
        self,
        db: Session,
        store: ObjectStore,
        *,
        question_bucket: str | None = None,
        answer_bucket: str | None = None,
    ) -> None:
        self.db = db
        self.store = store
        self.question_bucket = question_bucket or settings.question_files_bucket
        self.answer_bucket = answer_bucket or settings.answer_files_bucket
        self._step = "start"

    def delete_question(self, question_id: str) -> CascadeReport:
        """Remove a question and all dependents.

        Raises:
            NotFoundError: If the question does not exist.
            CascadeDeletionError: If a step fails; no rows were removed.
        """
        if self.db.get(Question, question_id) is None:
            raise NotFoundError("question", question_id)

        report = CascadeReport()
        self._run("question", question_id, lambda: self._cascade_question(question_id, report))
        return report

    def delete_user(self, user_id: str) -> CascadeReport:
        """Remove a user, their content, their votes and their identity.

        Raises:
            NotFoundError: If the profile does not exist.
            CascadeDeletionError: If a step fails; no rows were removed.
        """
        if self.db.get(User, user_id) is None:
            raise NotFoundError("user", user_id)

        report = CascadeReport()
        self._run("user", user_id, lambda: self._cascade_user(user_id, report))
        return report

    def _run(self, kind: str, entity_id: str, work: Callable[[], None]) -> None:
        self._step = "start"
        try:
            work()
            self._enter("commit")
            self.db.commit()
        except (QueryLoopError, SQLAlchemyError, OSError) as err:
            self.db.rollback()
            logger.error(
                "Cascade delete of %s %s failed at step %s: %s",
                kind,
                entity_id,
                self._step,
                err,
                exc_info=True,
            )
            raise CascadeDeletionError(self._step, err) from err

    def _enter(self, step: str) -> None:
        self._step = step
        logger.debug("Cascade step: %s", step)

    @contextmanager
    def _stage(self, step: str) -> Iterator[None]:
        previous = self._step
        self._enter(step)
        yield
        self._step = previous

    def _cascade_question(self, question_id: str, report: CascadeReport) -> None:
        with self._stage(f"question_attachments:{question_id}"):
            rows = self.db.scalars(
                select(QuestionAttachment).where(QuestionAttachment.question_id == question_id)
            ).all()
            paths = [record.file_path for record in to_records(QuestionAttachmentRecord, rows)]
            if paths:
                report.blobs += self.store.remove(self.question_bucket, paths)
                report.question_attachments += self._delete(
                    delete(QuestionAttachment).where(QuestionAttachment.question_id == question_id)
                )

        answer_ids = self.db.scalars(
            select(Answer.id).where(Answer.question_id == question_id)
        ).all()
        for answer_id in answer_ids:
            self._cascade_answer(answer_id, report)

        with self._stage(f"favorites:{question_id}"):
            report.favorites += self._delete(
                delete(Favorite).where(Favorite.question_id == question_id)
            )
        with self._stage(f"tag_links:{question_id}"):
            report.tag_links += self._delete(
                delete(QuestionTag).where(QuestionTag.question_id == question_id)
            )
        with self._stage(f"question_votes:{question_id}"):
            report.votes += self._delete(
                delete(Vote).where(
                    Vote.target_type == TargetType.QUESTION.value,
                    Vote.target_id == question_id,
                )
            )
        with self._stage(f"question:{question_id}"):
            report.questions += self._delete(delete(Question).where(Question.id == question_id))
        logger.info("Question %s removed: %s", question_id, report.as_dict())

    def _cascade_answer(self, answer_id: str, report: CascadeReport) -> None:
        with self._stage(f"answer_attachments:{answer_id}"):
            rows = self.db.scalars(
                select(AnswerAttachment).where(AnswerAttachment.answer_id == answer_id)
            ).all()
            paths = [record.file_path for record in to_records(AnswerAttachmentRecord, rows)]
            if paths:
                report.blobs += self.store.remove(self.answer_bucket, paths)
                report.answer_attachments += self._delete(
                    delete(AnswerAttachment).where(AnswerAttachment.answer_id == answer_id)
                )
        with self._stage(f"answer_votes:{answer_id}"):
            report.votes += self._delete(
                delete(Vote).where(
                    Vote.target_type == TargetType.ANSWER.value,
                    Vote.target_id == answer_id,
                )
            )
        with self._stage(f"answer:{answer_id}"):
            report.answers += self._delete(delete(Answer).where(Answer.id == answer_id))

    def _cascade_user(self, user_id: str, report: CascadeReport) -> None:
        question_ids = self.db.scalars(
            select(Question.id).where(Question.author_id == user_id)
        ).all()
        for question_id in question_ids:
            self._cascade_question(question_id, report)

        # Answers on other people's questions; the ones above are already gone.
        answer_ids = self.db.scalars(select(Answer.id).where(Answer.author_id == user_id)).all()
        for answer_id in answer_ids:
            self._cascade_answer(answer_id, report)

        with self._stage(f"user_votes:{user_id}"):
            report.votes += self._delete(delete(Vote).where(Vote.user_id == user_id))
        with self._stage(f"user_favorites:{user_id}"):
            report.favorites += self._delete(delete(Favorite).where(Favorite.user_id == user_id))
        with self._stage(f"identity:{user_id}"):
            report.identities += IdentityDirectory(self.db).remove(user_id)
        with self._stage(f"user:{user_id}"):
            report.users += self._delete(delete(User).where(User.id == user_id))
        logger.info("User %s removed: %s", user_id, report.as_dict())

    def _delete(self, statement) -> int:
        result = self.db.execute(statement)
        self.db.flush()
        return result.rowcount or 0
