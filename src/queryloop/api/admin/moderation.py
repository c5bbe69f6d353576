"""Moderation queue endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from queryloop.api.v1.dependencies import AdminDep, SessionDep, StoreDep
from queryloop.exceptions import QueryLoopError
from queryloop.schemas.admin import ModerationRequest
from queryloop.services.cascade import CascadeDeletionCoordinator
from queryloop.services.questions import QuestionService

from .responses import SUCCESS, error_response, failure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/moderation", tags=["admin"])


@router.get("")
async def get_moderation_queue(admin: AdminDep, db: SessionDep) -> dict[str, object]:
    """List pending questions, oldest first."""
    queue = QuestionService(db).list_pending()
    return {"data": [item.model_dump(mode="json") for item in queue]}


@router.post("", response_model=None)
async def moderate(
    payload: ModerationRequest,
    admin: AdminDep,
    db: SessionDep,
    store: StoreDep,
) -> dict[str, bool] | JSONResponse:
    """Approve a pending question or reject it (full cascade delete)."""
    if not payload.action or not payload.question_id:
        return error_response("Missing action or questionId")

    try:
        if payload.action == "approve":
            QuestionService(db).approve(payload.question_id)
        elif payload.action == "reject":
            CascadeDeletionCoordinator(db, store).delete_question(payload.question_id)
        else:
            return error_response("Invalid action")
    except QueryLoopError as err:
        return failure(err)

    logger.info("Admin %s: %s question %s", admin.id, payload.action, payload.question_id)
    return SUCCESS
