"""Tests for cascade deletion of questions and users."""

import pytest
from sqlalchemy import func, or_, select, text

from queryloop.exceptions import CascadeDeletionError, NotFoundError, StorageError
from queryloop.models import (
    Answer,
    AnswerAttachment,
    Favorite,
    Identity,
    Question,
    QuestionAttachment,
    QuestionTag,
    Tag,
    User,
    Vote,
)
from queryloop.services.cascade import CascadeDeletionCoordinator


def _count(db_session, model, *criteria) -> int:
    return db_session.scalar(select(func.count()).select_from(model).where(*criteria))


class FlakyStore:
    """Wraps a store and fails the first removal from ``fail_bucket``."""

    def __init__(self, inner, fail_bucket: str) -> None:
        self.inner = inner
        self.fail_bucket = fail_bucket
        self.failures_left = 1

    def upload(self, bucket, path, data):
        return self.inner.upload(bucket, path, data)

    def remove(self, bucket, paths):
        if bucket == self.fail_bucket and self.failures_left:
            self.failures_left -= 1
            raise StorageError(context={"bucket": bucket})
        return self.inner.remove(bucket, paths)

    def exists(self, bucket, path):
        return self.inner.exists(bucket, path)


def _assert_question_gone(db_session, store, populated) -> None:
    question_id = populated["question_id"]
    answer_ids = populated["answer_ids"]

    assert _count(db_session, Question, Question.id == question_id) == 0
    assert _count(db_session, Answer, Answer.question_id == question_id) == 0
    assert _count(db_session, QuestionAttachment, QuestionAttachment.question_id == question_id) == 0
    assert _count(db_session, AnswerAttachment, AnswerAttachment.answer_id.in_(answer_ids)) == 0
    assert _count(db_session, Favorite, Favorite.question_id == question_id) == 0
    assert _count(db_session, QuestionTag, QuestionTag.question_id == question_id) == 0
    assert (
        _count(db_session, Vote, or_(Vote.target_id == question_id, Vote.target_id.in_(answer_ids)))
        == 0
    )
    assert not store.exists("questions-files", populated["question_path"])
    for path in populated["answer_paths"]:
        assert not store.exists("answer-files", path)


def test_delete_question_removes_every_dependent(db_session, store, populated_question) -> None:
    report = CascadeDeletionCoordinator(db_session, store).delete_question(
        populated_question["question_id"]
    )

    _assert_question_gone(db_session, store, populated_question)
    assert report.as_dict() == {
        "questions": 1,
        "answers": 2,
        "question_attachments": 1,
        "answer_attachments": 2,
        "blobs": 3,
        "votes": 3,
        "favorites": 1,
        "tag_links": 2,
        "identities": 0,
        "users": 0,
    }
    # Tags themselves are shared and stay.
    assert _count(db_session, Tag) == 2


def test_delete_question_leaves_other_questions(db_session, store, populated_question, make_question, other_user) -> None:
    survivor = make_question(other_user, title="Unrelated")

    CascadeDeletionCoordinator(db_session, store).delete_question(populated_question["question_id"])

    assert db_session.get(Question, survivor.id) is not None


def test_delete_missing_question(db_session, store) -> None:
    with pytest.raises(NotFoundError):
        CascadeDeletionCoordinator(db_session, store).delete_question("missing")


def test_missing_blob_does_not_block_delete(db_session, store, populated_question) -> None:
    store.remove("questions-files", [populated_question["question_path"]])

    report = CascadeDeletionCoordinator(db_session, store).delete_question(
        populated_question["question_id"]
    )

    assert report.question_attachments == 1
    assert report.blobs == 2
    _assert_question_gone(db_session, store, populated_question)


def test_failed_step_rolls_back_and_retry_completes(db_session, store, populated_question) -> None:
    question_id = populated_question["question_id"]
    flaky = FlakyStore(store, fail_bucket="answer-files")

    with pytest.raises(CascadeDeletionError) as excinfo:
        CascadeDeletionCoordinator(db_session, flaky).delete_question(question_id)

    assert excinfo.value.step.startswith("answer_attachments:")
    assert excinfo.value.status_code == 500
    # Every row survived, including the metadata of the blob removed before the failure.
    assert db_session.get(Question, question_id) is not None
    assert _count(db_session, Answer, Answer.question_id == question_id) == 2
    assert _count(db_session, QuestionAttachment, QuestionAttachment.question_id == question_id) == 1
    assert _count(db_session, Favorite, Favorite.question_id == question_id) == 1
    assert not store.exists("questions-files", populated_question["question_path"])

    CascadeDeletionCoordinator(db_session, flaky).delete_question(question_id)

    _assert_question_gone(db_session, store, populated_question)


def test_delete_user_removes_content_votes_and_identity(
    db_session, store, populated_question, make_question, other_user, test_user, admin_user
) -> None:
    own_question_id = make_question(other_user, title="Bob's question").id
    bob_id = other_user.id
    bob_answer_id, admin_answer_id = populated_question["answer_ids"]

    report = CascadeDeletionCoordinator(db_session, store).delete_user(bob_id)

    assert db_session.get(User, bob_id) is None
    assert db_session.get(Identity, bob_id) is None
    assert db_session.get(Question, own_question_id) is None
    assert _count(db_session, Answer, Answer.author_id == bob_id) == 0
    assert _count(db_session, Vote, Vote.user_id == bob_id) == 0
    assert _count(db_session, Favorite, Favorite.user_id == bob_id) == 0
    # The vote test_user cast on bob's answer went with the answer.
    assert _count(db_session, Vote, Vote.target_id == bob_answer_id) == 0
    assert not store.exists("answer-files", populated_question["answer_paths"][0])

    # Other people's content stays.
    assert db_session.get(Question, populated_question["question_id"]) is not None
    assert db_session.get(Answer, admin_answer_id) is not None
    assert store.exists("answer-files", populated_question["answer_paths"][1])
    assert db_session.get(User, test_user.id) is not None
    assert db_session.get(User, admin_user.id) is not None

    assert report.users == 1
    assert report.identities == 1
    assert report.questions == 1
    assert report.answers == 1


def test_delete_user_with_authored_question_removes_its_answers(
    db_session, store, populated_question, test_user
) -> None:
    alice_id = test_user.id
    CascadeDeletionCoordinator(db_session, store).delete_user(alice_id)

    _assert_question_gone(db_session, store, populated_question)
    assert db_session.get(User, alice_id) is None


def test_delete_missing_user(db_session, store) -> None:
    with pytest.raises(NotFoundError):
        CascadeDeletionCoordinator(db_session, store).delete_user("missing")


def test_foreign_keys_are_enforced(db_session) -> None:
    # The cascade tests above only prove child-before-parent ordering with this on.
    assert db_session.execute(text("PRAGMA foreign_keys")).scalar() == 1
