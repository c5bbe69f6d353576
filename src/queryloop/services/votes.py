"""Vote ledger for questions and answers."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from queryloop.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from queryloop.models import Answer, Question, TargetType, Vote
from queryloop.schemas.records import VoteRecord, to_record
from queryloop.services.visibility import VisibilityGate

logger = logging.getLogger(__name__)

VOTE_VALUES = (1, -1)


@dataclass(frozen=True)
class VoteOutcome:
    """Authoritative state of a target after a vote was applied."""

    score: int
    user_vote: int


def _parse_target_type(target_type: TargetType | str) -> TargetType:
    try:
        return TargetType(target_type)
    except ValueError as err:
        raise ValidationError(f"Unknown vote target '{target_type}'", field="target_type") from err


class VoteLedger:
    """Records at most one signed vote per (voter, target).

    Scores are always the sum of the current vote rows, read after every
    mutation; nothing is cached on the question or answer rows.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def cast_vote(
        self,
        target_type: TargetType | str,
        target_id: str,
        voter_id: str | None,
        value: int,
        *,
        voter_is_admin: bool = False,
    ) -> VoteOutcome:
        """Apply a vote and return the new aggregate score.

        Resubmitting the value already on record retracts the vote; the
        opposite value switches it in place.

        Raises:
            AuthorizationError: If there is no authenticated voter.
            ValidationError: If ``value`` or ``target_type`` is invalid.
            NotFoundError: If the target does not exist or is hidden from the voter.
        """
        if voter_id is None:
            raise AuthorizationError("You must be logged in to vote.", authenticated=False)
        if value not in VOTE_VALUES:
            raise ValidationError("Vote value must be 1 or -1", field="value")
        kind = _parse_target_type(target_type)
        self._ensure_target(kind, target_id, voter_id, voter_is_admin)

        # The primary key on (target_type, target_id, user_id) turns a racing
        # duplicate insert into an IntegrityError; retry once against the winner.
        for attempt in range(2):
            try:
                user_vote = self._apply(kind, target_id, voter_id, value)
                self.db.commit()
                break
            except IntegrityError as err:
                self.db.rollback()
                if attempt:
                    raise ConflictError(
                        "Vote could not be recorded, please retry",
                        {"target_id": target_id},
                    ) from err
                logger.info(
                    "Concurrent vote on %s %s by %s, retrying",
                    kind.value,
                    target_id,
                    voter_id,
                )

        return VoteOutcome(score=self.score(kind, target_id), user_vote=user_vote)

    def _apply(self, kind: TargetType, target_id: str, voter_id: str, value: int) -> int:
        existing = self.db.get(Vote, (kind.value, target_id, voter_id))
        if existing is None:
            self.db.add(
                Vote(
                    target_type=kind.value,
                    target_id=target_id,
                    user_id=voter_id,
                    value=value,
                )
            )
            self.db.flush()
            logger.debug("Vote %+d added on %s %s", value, kind.value, target_id)
            return value

        if existing.value == value:
            self.db.delete(existing)
            self.db.flush()
            logger.debug("Vote retracted on %s %s", kind.value, target_id)
            return 0

        existing.value = value
        self.db.flush()
        logger.debug("Vote switched to %+d on %s %s", value, kind.value, target_id)
        return value

    def _ensure_target(
        self,
        kind: TargetType,
        target_id: str,
        voter_id: str,
        voter_is_admin: bool,
    ) -> None:
        if kind is TargetType.QUESTION:
            question = self.db.get(Question, target_id)
        else:
            answer = self.db.get(Answer, target_id)
            if answer is None:
                raise NotFoundError("answer", target_id)
            question = self.db.get(Question, answer.question_id)

        if question is None or not VisibilityGate.can_view(question, voter_id, voter_is_admin):
            raise NotFoundError(kind.value, target_id)

    def score(self, target_type: TargetType | str, target_id: str) -> int:
        """Return the sum of vote values for one target."""
        kind = _parse_target_type(target_type)
        total = self.db.execute(
            select(func.coalesce(func.sum(Vote.value), 0)).where(
                Vote.target_type == kind.value,
                Vote.target_id == target_id,
            )
        ).scalar_one()
        return int(total)

    def scores(self, target_type: TargetType | str, target_ids: Iterable[str]) -> dict[str, int]:
        """Return scores for many targets; targets without votes map to 0."""
        kind = _parse_target_type(target_type)
        ids = list(target_ids)
        totals = {target_id: 0 for target_id in ids}
        if not ids:
            return totals
        rows = self.db.execute(
            select(Vote.target_id, func.sum(Vote.value))
            .where(Vote.target_type == kind.value, Vote.target_id.in_(ids))
            .group_by(Vote.target_id)
        ).all()
        for target_id, total in rows:
            totals[target_id] = int(total)
        return totals

    def user_vote(self, target_type: TargetType | str, target_id: str, voter_id: str | None) -> int:
        """Return the voter's current value on the target, or 0."""
        if voter_id is None:
            return 0
        kind = _parse_target_type(target_type)
        row = self.db.get(Vote, (kind.value, target_id, voter_id))
        if row is None:
            return 0
        return to_record(VoteRecord, row).value

    def user_votes(
        self,
        target_type: TargetType | str,
        target_ids: Iterable[str],
        voter_id: str | None,
    ) -> dict[str, int]:
        """Return the voter's values for many targets (missing -> absent)."""
        ids = list(target_ids)
        if voter_id is None or not ids:
            return {}
        kind = _parse_target_type(target_type)
        rows = self.db.scalars(
            select(Vote).where(
                Vote.target_type == kind.value,
                Vote.target_id.in_(ids),
                Vote.user_id == voter_id,
            )
        ).all()
        return {record.target_id: record.value for record in (to_record(VoteRecord, row) for row in rows)}
