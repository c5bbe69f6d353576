"""Tests for the visibility rules."""

from types import SimpleNamespace

import pytest

from queryloop.services.visibility import VisibilityGate, VisibilityState

AUTHOR = "author-1"


def _question(is_public: bool) -> SimpleNamespace:
    return SimpleNamespace(author_id=AUTHOR, is_public=is_public)


@pytest.mark.parametrize(
    ("is_public", "caller_id", "is_admin", "expected"),
    [
        (True, None, False, True),
        (True, "someone", False, True),
        (False, None, False, False),
        (False, "someone", False, False),
        (False, AUTHOR, False, True),
        (False, "admin-1", True, True),
    ],
)
def test_can_view(is_public, caller_id, is_admin, expected) -> None:
    assert VisibilityGate.can_view(_question(is_public), caller_id, is_admin) is expected


@pytest.mark.parametrize("is_admin", [False, True])
def test_pending_questions_cannot_be_answered(is_admin) -> None:
    assert VisibilityGate.can_answer(_question(False), is_admin) is False
    assert VisibilityGate.can_answer(_question(True), is_admin) is True


def test_visibility_states() -> None:
    assert VisibilityGate.visibility(_question(True), None, False) is VisibilityState.PUBLIC
    assert VisibilityGate.visibility(_question(False), AUTHOR, False) is VisibilityState.PENDING_VISIBLE
    assert VisibilityGate.visibility(_question(False), "admin-1", True) is VisibilityState.PENDING_VISIBLE
    assert VisibilityGate.visibility(_question(False), "someone", False) is VisibilityState.PENDING_HIDDEN
    assert VisibilityGate.visibility(_question(False), None, False) is VisibilityState.PENDING_HIDDEN
