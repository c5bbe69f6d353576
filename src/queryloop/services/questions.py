"""Question, answer, tag and attachment workflows."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from queryloop.core.settings import settings
from queryloop.exceptions import (
    AuthorizationError,
    NotFoundError,
    PendingModerationError,
    QueryLoopError,
    ValidationError,
)
from queryloop.models import (
    Answer,
    AnswerAttachment,
    Question,
    QuestionAttachment,
    QuestionTag,
    Tag,
    TargetType,
    User,
)
from queryloop.schemas.admin import PendingAuthor, PendingQuestion
from queryloop.schemas.question import (
    AnswerDetail,
    AttachmentResponse,
    QuestionDetail,
    TagResponse,
)
from queryloop.schemas.records import (
    AnswerAttachmentRecord,
    AnswerRecord,
    QuestionAttachmentRecord,
    QuestionRecord,
    TagRecord,
    UserRecord,
    to_record,
    to_records,
)
from queryloop.schemas.user import AuthorSummary
from queryloop.services.favorites import FavoriteService
from queryloop.services.identity import Caller
from queryloop.services.storage import (
    ObjectStore,
    answer_file_path,
    question_file_path,
    validate_attachment,
)
from queryloop.services.visibility import VisibilityGate
from queryloop.services.votes import VoteLedger

logger = logging.getLogger(__name__)

MAX_TAG_LENGTH = 64


def normalize_tags(names: list[str]) -> list[str]:
    """Lower-case, strip and de-duplicate tag names, keeping first-seen order."""
    seen: dict[str, None] = {}
    for raw in names:
        name = raw.strip().lower()
        if not name:
            continue
        if len(name) > MAX_TAG_LENGTH:
            raise ValidationError(f"Tag '{name[:20]}...' is too long", field="tags")
        seen.setdefault(name, None)
    return list(seen)


def _require_login(caller: Caller, action: str) -> str:
    if caller.id is None:
        raise AuthorizationError(f"You must be logged in to {action}.", authenticated=False)
    return caller.id


class QuestionService:
    """Creates and reads questions and answers on behalf of a caller."""

    def __init__(self, db: Session, store: ObjectStore | None = None) -> None:
        self.db = db
        self.store = store
        self.votes = VoteLedger(db)
        self.favorites = FavoriteService(db)

    # Writes

    def ask(self, caller: Caller, title: str, body: str, tags: list[str] | None = None) -> QuestionRecord:
        """Create a pending question with its tags."""
        author_id = _require_login(caller, "ask a question")
        if not title.strip() or not body.strip():
            raise ValidationError("Title and body are required")

        question = Question(
            title=title.strip(),
            body=body,
            author_id=author_id,
            is_public=False,
        )
        self.db.add(question)
        self.db.flush()
        for tag in self._get_or_create_tags(normalize_tags(tags or [])):
            self.db.add(QuestionTag(question_id=question.id, tag_id=tag.id))
        self.db.commit()
        logger.info("Question %s created by %s (pending)", question.id, author_id)
        return to_record(QuestionRecord, question)

    def _get_or_create_tags(self, names: list[str]) -> list[Tag]:
        if not names:
            return []
        existing = {
            tag.name: tag for tag in self.db.scalars(select(Tag).where(Tag.name.in_(names))).all()
        }
        tags: list[Tag] = []
        for name in names:
            tag = existing.get(name)
            if tag is None:
                tag = Tag(name=name)
                self.db.add(tag)
                self.db.flush()
            tags.append(tag)
        return tags

    def answer(self, question_id: str, caller: Caller, body: str) -> AnswerRecord:
        """Post an answer; only approved questions accept answers."""
        author_id = _require_login(caller, "post an answer")
        if not body.strip():
            raise ValidationError("Answer body cannot be empty.", field="body")
        question = self.get_viewable(question_id, caller)
        if not VisibilityGate.can_answer(question, caller.is_admin):
            raise AuthorizationError("Answers are closed until this question is approved.")

        answer = Answer(question_id=question.id, author_id=author_id, body=body)
        self.db.add(answer)
        self.db.commit()
        logger.info("Answer %s posted on question %s", answer.id, question.id)
        return to_record(AnswerRecord, answer)

    def add_question_attachment(
        self,
        question_id: str,
        caller: Caller,
        filename: str,
        data: bytes,
    ) -> QuestionAttachmentRecord:
        """Upload a file for a question the caller wrote."""
        user_id = _require_login(caller, "upload files")
        question = self.db.get(Question, question_id)
        if question is None:
            raise NotFoundError("question", question_id)
        if question.author_id != user_id:
            raise AuthorizationError("Only the author can attach files to this question.")
        validate_attachment(filename, data)

        path = question_file_path(question_id, filename)
        attachment = QuestionAttachment(question_id=question_id, file_path=path)
        self._store_then_insert(settings.question_files_bucket, path, data, attachment)
        return to_record(QuestionAttachmentRecord, attachment)

    def add_answer_attachment(
        self,
        answer_id: str,
        caller: Caller,
        filename: str,
        data: bytes,
    ) -> AnswerAttachmentRecord:
        """Upload a file for an answer the caller wrote."""
        user_id = _require_login(caller, "upload files")
        answer = self.db.get(Answer, answer_id)
        if answer is None:
            raise NotFoundError("answer", answer_id)
        if answer.author_id != user_id:
            raise AuthorizationError("Only the author can attach files to this answer.")
        validate_attachment(filename, data)

        path = answer_file_path(answer.question_id, answer_id, filename)
        attachment = AnswerAttachment(answer_id=answer_id, file_path=path)
        self._store_then_insert(settings.answer_files_bucket, path, data, attachment)
        return to_record(AnswerAttachmentRecord, attachment)

    def _store_then_insert(self, bucket: str, path: str, data: bytes, row: object) -> None:
        if self.store is None:
            raise QueryLoopError("Object storage is not configured")
        self.store.upload(bucket, path, data)
        self.db.add(row)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            # Row never landed; drop the blob so nothing points nowhere.
            self.store.remove(bucket, [path])
            raise

    # Admin state changes

    def approve(self, question_id: str) -> QuestionRecord:
        """Move a pending question to public; approving twice is a no-op."""
        question = self.db.get(Question, question_id)
        if question is None:
            raise NotFoundError("question", question_id)
        if not question.is_public:
            question.is_public = True
            self.db.commit()
            logger.info("Question %s approved", question_id)
        return to_record(QuestionRecord, question)

    def edit_title(self, question_id: str, new_title: str) -> QuestionRecord:
        title = (new_title or "").strip()
        if not title:
            raise ValidationError("Missing newTitle", field="newTitle")
        question = self.db.get(Question, question_id)
        if question is None:
            raise NotFoundError("question", question_id)
        question.title = title
        self.db.commit()
        return to_record(QuestionRecord, question)

    # Reads

    def get_viewable(self, question_id: str, caller: Caller) -> Question:
        """Return the question if the caller may see it.

        Raises:
            NotFoundError: If the question does not exist.
            PendingModerationError: If it exists but is pending and hidden.
        """
        question = self.db.get(Question, question_id)
        if question is None:
            raise NotFoundError("question", question_id)
        if not VisibilityGate.can_view(question, caller.id, caller.is_admin):
            raise PendingModerationError(question_id)
        return question

    def detail(self, question_id: str, caller: Caller) -> QuestionDetail:
        """Assemble the question page for ``caller``."""
        question = to_record(QuestionRecord, self.get_viewable(question_id, caller))

        tags = to_records(
            TagRecord,
            self.db.scalars(
                select(Tag)
                .join(QuestionTag, QuestionTag.tag_id == Tag.id)
                .where(QuestionTag.question_id == question.id)
                .order_by(Tag.name)
            ).all(),
        )
        attachments = to_records(
            QuestionAttachmentRecord,
            self.db.scalars(
                select(QuestionAttachment).where(QuestionAttachment.question_id == question.id)
            ).all(),
        )
        answers = to_records(
            AnswerRecord,
            self.db.scalars(
                select(Answer)
                .where(Answer.question_id == question.id)
                .order_by(Answer.created_at.asc(), Answer.id)
            ).all(),
        )
        answer_ids = [answer.id for answer in answers]
        answer_attachments: dict[str, list[AttachmentResponse]] = {}
        if answer_ids:
            rows = self.db.scalars(
                select(AnswerAttachment).where(AnswerAttachment.answer_id.in_(answer_ids))
            ).all()
            for record in to_records(AnswerAttachmentRecord, rows):
                answer_attachments.setdefault(record.answer_id, []).append(
                    AttachmentResponse(id=record.id, file_path=record.file_path)
                )

        authors = self._authors({question.author_id, *(answer.author_id for answer in answers)})
        answer_scores = self.votes.scores(TargetType.ANSWER, answer_ids)
        answer_votes = self.votes.user_votes(TargetType.ANSWER, answer_ids, caller.id)

        return QuestionDetail(
            id=question.id,
            title=question.title,
            body=question.body,
            author_id=question.author_id,
            is_public=question.is_public,
            created_at=question.created_at,
            updated_at=question.updated_at,
            author=authors.get(question.author_id),
            tags=[TagResponse(id=tag.id, name=tag.name) for tag in tags],
            attachments=[AttachmentResponse(id=a.id, file_path=a.file_path) for a in attachments],
            score=self.votes.score(TargetType.QUESTION, question.id),
            user_vote=self.votes.user_vote(TargetType.QUESTION, question.id, caller.id),
            favorite_count=self.favorites.count(question.id),
            is_favorite=self.favorites.is_favorite(question.id, caller.id),
            can_answer=VisibilityGate.can_answer(question, caller.is_admin),
            answers=[
                AnswerDetail(
                    id=answer.id,
                    question_id=answer.question_id,
                    author_id=answer.author_id,
                    body=answer.body,
                    created_at=answer.created_at,
                    author=authors.get(answer.author_id),
                    attachments=answer_attachments.get(answer.id, []),
                    score=answer_scores.get(answer.id, 0),
                    user_vote=answer_votes.get(answer.id, 0),
                )
                for answer in answers
            ],
        )

    def _authors(self, user_ids: set[str]) -> dict[str, AuthorSummary]:
        if not user_ids:
            return {}
        users = to_records(
            UserRecord,
            self.db.scalars(select(User).where(User.id.in_(user_ids))).all(),
        )
        return {
            user.id: AuthorSummary(id=user.id, username=user.username, display_name=user.display_name)
            for user in users
        }

    def list_public(
        self,
        *,
        tag: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[QuestionRecord]:
        """Return approved questions, newest first, optionally filtered by tag."""
        page_size = min(limit or settings.default_page_size, settings.max_page_size)
        stmt = select(Question).where(Question.is_public.is_(True))
        if tag:
            stmt = (
                stmt.join(QuestionTag, QuestionTag.question_id == Question.id)
                .join(Tag, Tag.id == QuestionTag.tag_id)
                .where(Tag.name == tag.strip().lower())
            )
        stmt = stmt.order_by(Question.created_at.desc(), Question.id).offset(max(offset, 0)).limit(page_size)
        return to_records(QuestionRecord, self.db.scalars(stmt).all())

    def list_by_author(self, author_id: str, *, include_pending: bool = False) -> list[QuestionRecord]:
        stmt = select(Question).where(Question.author_id == author_id)
        if not include_pending:
            stmt = stmt.where(Question.is_public.is_(True))
        return to_records(
            QuestionRecord,
            self.db.scalars(stmt.order_by(Question.created_at.desc())).all(),
        )

    def list_answers_by_author(self, author_id: str) -> list[AnswerRecord]:
        return to_records(
            AnswerRecord,
            self.db.scalars(
                select(Answer)
                .where(Answer.author_id == author_id)
                .order_by(Answer.created_at.desc(), Answer.id)
            ).all(),
        )

    def list_pending(self) -> list[PendingQuestion]:
        """Return the moderation queue, oldest first, with author names."""
        questions = to_records(
            QuestionRecord,
            self.db.scalars(
                select(Question)
                .where(Question.is_public.is_(False))
                .order_by(Question.created_at.asc(), Question.id)
            ).all(),
        )
        authors = self._authors({question.author_id for question in questions})
        queue: list[PendingQuestion] = []
        for question in questions:
            author = authors.get(question.author_id)
            queue.append(
                PendingQuestion(
                    id=question.id,
                    title=question.title,
                    author_id=question.author_id,
                    created_at=question.created_at,
                    author=PendingAuthor(
                        username=author.username if author else None,
                        display_name=author.display_name if author else None,
                    ),
                )
            )
        return queue

    def list_tags(self) -> list[TagRecord]:
        return to_records(TagRecord, self.db.scalars(select(Tag).order_by(Tag.name)).all())
