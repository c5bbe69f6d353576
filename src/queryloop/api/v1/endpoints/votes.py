# src/queryloop/api/v1/endpoints/votes.py
"""Vote-related endpoints for the QueryLoop API."""

from fastapi import APIRouter

from queryloop.api.v1.dependencies import CallerDep, CurrentCallerDep, SessionDep
from queryloop.exceptions import NotFoundError
from queryloop.models import Answer, Question, TargetType
from queryloop.schemas.vote import VoteCreate, VoteState
from queryloop.services.visibility import VisibilityGate
from queryloop.services.votes import VoteLedger

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("/", response_model=VoteState)
async def cast_vote(vote_data: VoteCreate, caller: CurrentCallerDep, db: SessionDep) -> VoteState:
    """Cast, switch or retract a vote and return the new score."""
    outcome = VoteLedger(db).cast_vote(
        vote_data.target_type,
        vote_data.target_id,
        caller.id,
        vote_data.value,
        voter_is_admin=caller.is_admin,
    )
    return VoteState(score=outcome.score, user_vote=outcome.user_vote)


@router.get("/{target_type}/{target_id}", response_model=VoteState)
async def get_vote_state(
    target_type: TargetType,
    target_id: str,
    caller: CallerDep,
    db: SessionDep,
) -> VoteState:
    """Get the aggregate score of a target and the caller's vote on it."""
    if target_type is TargetType.QUESTION:
        question = db.get(Question, target_id)
    else:
        answer = db.get(Answer, target_id)
        question = db.get(Question, answer.question_id) if answer else None
    if question is None or not VisibilityGate.can_view(question, caller.id, caller.is_admin):
        raise NotFoundError(target_type.value, target_id)

    ledger = VoteLedger(db)
    return VoteState(
        score=ledger.score(target_type, target_id),
        user_vote=ledger.user_vote(target_type, target_id, caller.id),
    )
