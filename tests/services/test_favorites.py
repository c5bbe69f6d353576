"""Tests for favorite toggling."""

import pytest

from conftest import as_caller
from queryloop.models import Favorite
from queryloop.exceptions import AuthorizationError, NotFoundError
from queryloop.services.favorites import FavoriteService


def test_toggle_adds_then_removes(db_session, public_question, other_user, admin_user) -> None:
    service = FavoriteService(db_session)

    assert service.toggle(public_question.id, as_caller(other_user)) == (True, 1)
    assert service.toggle(public_question.id, as_caller(admin_user)) == (True, 2)
    assert service.toggle(public_question.id, as_caller(other_user)) == (False, 1)
    assert service.is_favorite(public_question.id, other_user.id) is False
    assert service.is_favorite(public_question.id, admin_user.id) is True


def test_anonymous_cannot_favorite(db_session, public_question) -> None:
    with pytest.raises(AuthorizationError):
        FavoriteService(db_session).toggle(public_question.id, as_caller(None))


def test_hidden_question_cannot_be_favorited(db_session, pending_question, other_user, test_user) -> None:
    service = FavoriteService(db_session)
    with pytest.raises(NotFoundError):
        service.toggle(pending_question.id, as_caller(other_user))
    assert service.toggle(pending_question.id, as_caller(test_user)) == (True, 1)


def test_list_for_user_skips_hidden_questions(
    db_session, public_question, pending_question, other_user
) -> None:
    # A favorite row on a question the caller can no longer see.
    db_session.add_all(
        [
            Favorite(question_id=public_question.id, user_id=other_user.id),
            Favorite(question_id=pending_question.id, user_id=other_user.id),
        ]
    )
    db_session.commit()
    service = FavoriteService(db_session)

    assert [q.id for q in service.list_for_user(as_caller(other_user))] == [public_question.id]
    assert service.list_for_user(as_caller(None)) == []
