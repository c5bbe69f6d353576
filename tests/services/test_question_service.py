"""Tests for question, answer and attachment workflows."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from conftest import as_caller
from queryloop.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PendingModerationError,
    ValidationError,
)
from queryloop.models import Question, QuestionAttachment, Tag
from queryloop.services.questions import QuestionService, normalize_tags


def test_normalize_tags() -> None:
    assert normalize_tags([" Python", "python", "", "SQL "]) == ["python", "sql"]
    with pytest.raises(ValidationError):
        normalize_tags(["x" * 65])


def test_ask_creates_pending_question_with_tags(db_session, test_user) -> None:
    record = QuestionService(db_session).ask(
        as_caller(test_user), "  Why?  ", "Because.", ["Python", "python", "lists"]
    )

    assert record.title == "Why?"
    assert record.is_public is False
    names = db_session.scalars(select(Tag.name).order_by(Tag.name)).all()
    assert names == ["lists", "python"]


def test_ask_reuses_existing_tags(db_session, test_user, public_question) -> None:
    QuestionService(db_session).ask(as_caller(test_user), "Another", "Body", ["python"])
    assert len(db_session.scalars(select(Tag)).all()) == 1


def test_ask_requires_login(db_session) -> None:
    with pytest.raises(AuthorizationError):
        QuestionService(db_session).ask(as_caller(None), "Title", "Body")


def test_moderation_gate_scenario(db_session, pending_question, admin_user, other_user) -> None:
    """Pending questions are hidden and closed until an admin approves them."""
    service = QuestionService(db_session)
    anonymous = as_caller(None)

    with pytest.raises(PendingModerationError):
        service.detail(pending_question.id, anonymous)
    with pytest.raises(PendingModerationError):
        service.answer(pending_question.id, as_caller(other_user), "Early answer")

    service.approve(pending_question.id)

    detail = service.detail(pending_question.id, anonymous)
    assert detail.is_public is True
    assert detail.can_answer is True
    answer = service.answer(pending_question.id, as_caller(other_user), "Now it works")
    assert answer.question_id == pending_question.id


def test_author_and_admin_see_pending_but_cannot_answer(db_session, pending_question, test_user, admin_user) -> None:
    service = QuestionService(db_session)

    for caller in (as_caller(test_user), as_caller(admin_user)):
        detail = service.detail(pending_question.id, caller)
        assert detail.is_public is False
        assert detail.can_answer is False
        with pytest.raises(AuthorizationError):
            service.answer(pending_question.id, caller, "Answering my own pending question")


def test_approve_is_idempotent(db_session, public_question) -> None:
    record = QuestionService(db_session).approve(public_question.id)
    assert record.is_public is True


def test_approve_missing_question(db_session) -> None:
    with pytest.raises(NotFoundError):
        QuestionService(db_session).approve("missing")


def test_edit_title(db_session, public_question) -> None:
    service = QuestionService(db_session)
    assert service.edit_title(public_question.id, " Renamed ").title == "Renamed"
    with pytest.raises(ValidationError):
        service.edit_title(public_question.id, "   ")


def test_detail_aggregates_votes_and_favorites(
    db_session, public_question, make_answer, test_user, other_user
) -> None:
    answer = make_answer(public_question, other_user)
    service = QuestionService(db_session)
    service.votes.cast_vote("question", public_question.id, other_user.id, 1)
    service.votes.cast_vote("answer", answer.id, test_user.id, -1)
    service.favorites.toggle(public_question.id, as_caller(other_user))

    detail = service.detail(public_question.id, as_caller(other_user))

    assert detail.score == 1
    assert detail.user_vote == 1
    assert detail.favorite_count == 1
    assert detail.is_favorite is True
    assert detail.author.username == "alice"
    assert [tag.name for tag in detail.tags] == ["python"]
    assert detail.answers[0].score == -1
    assert detail.answers[0].user_vote == 0
    assert detail.answers[0].author.username == "bob"


def test_list_public_filters_pending_and_tags(db_session, make_question, test_user) -> None:
    base = datetime(2024, 1, 1, tzinfo=UTC)
    older = make_question(test_user, title="Older", tags=["sql"], created_at=base)
    newer = make_question(test_user, title="Newer", tags=["python"], created_at=base + timedelta(hours=1))
    make_question(test_user, title="Hidden", is_public=False, tags=["python"])
    service = QuestionService(db_session)

    assert [q.id for q in service.list_public()] == [newer.id, older.id]
    assert [q.id for q in service.list_public(tag="Python")] == [newer.id]
    assert [q.id for q in service.list_public(limit=1, offset=1)] == [older.id]


def test_list_pending_is_oldest_first(db_session, make_question, test_user) -> None:
    base = datetime(2024, 1, 1, tzinfo=UTC)
    first = make_question(test_user, is_public=False, title="First", created_at=base)
    second = make_question(test_user, is_public=False, title="Second", created_at=base + timedelta(minutes=5))

    queue = QuestionService(db_session).list_pending()

    assert [item.id for item in queue] == [first.id, second.id]
    assert queue[0].author.username == "alice"


def test_question_attachment_upload(db_session, store, public_question, test_user) -> None:
    record = QuestionService(db_session, store).add_question_attachment(
        public_question.id, as_caller(test_user), "my file.txt", b"content"
    )

    assert record.file_path == f"{public_question.id}/my_file.txt"
    assert store.exists("questions-files", record.file_path)


def test_attachment_requires_author(db_session, store, public_question, other_user) -> None:
    with pytest.raises(AuthorizationError):
        QuestionService(db_session, store).add_question_attachment(
            public_question.id, as_caller(other_user), "a.txt", b"x"
        )


def test_answer_attachment_path(db_session, store, public_question, make_answer, other_user) -> None:
    answer = make_answer(public_question, other_user)
    record = QuestionService(db_session, store).add_answer_attachment(
        answer.id, as_caller(other_user), "fix.py", b"print()"
    )

    assert record.file_path == f"{public_question.id}/answers/{answer.id}/fix.py"
    assert store.exists("answer-files", record.file_path)


def test_failed_insert_removes_uploaded_blob(db_session, store, public_question, test_user, monkeypatch) -> None:
    def failing_commit():
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(OperationalError):
        QuestionService(db_session, store).add_question_attachment(
            public_question.id, as_caller(test_user), "a.txt", b"x"
        )
    monkeypatch.undo()

    assert not store.exists("questions-files", f"{public_question.id}/a.txt")
    assert db_session.scalars(select(QuestionAttachment)).all() == []


def test_same_name_upload_keeps_first_blob(db_session, store, public_question, test_user) -> None:
    service = QuestionService(db_session, store)
    first = service.add_question_attachment(
        public_question.id, as_caller(test_user), "my file.txt", b"first"
    )

    # Both names sanitise to the same stored path.
    with pytest.raises(ConflictError):
        service.add_question_attachment(public_question.id, as_caller(test_user), "my_file.txt", b"second")

    rows = db_session.scalars(select(QuestionAttachment)).all()
    assert [row.id for row in rows] == [first.id]
    assert (store.root / "questions-files" / first.file_path).read_bytes() == b"first"


def test_failed_duplicate_upload_leaves_existing_blob(
    db_session, store, public_question, test_user, monkeypatch
) -> None:
    service = QuestionService(db_session, store)
    first = service.add_question_attachment(public_question.id, as_caller(test_user), "a.txt", b"first")

    def failing_commit():
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(ConflictError):
        service.add_question_attachment(public_question.id, as_caller(test_user), "a.txt", b"third")
    monkeypatch.undo()

    assert store.exists("questions-files", first.file_path)
    assert db_session.get(QuestionAttachment, first.id) is not None


def test_hidden_question_is_reported_as_pending_not_missing(db_session, pending_question, other_user) -> None:
    service = QuestionService(db_session)
    with pytest.raises(PendingModerationError) as excinfo:
        service.get_viewable(pending_question.id, as_caller(other_user))
    assert excinfo.value.status_code == 403
    with pytest.raises(NotFoundError):
        service.get_viewable("missing", as_caller(other_user))
    assert db_session.get(Question, pending_question.id).is_public is False
