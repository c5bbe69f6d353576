"""Admin question management."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from queryloop.api.v1.dependencies import AdminDep, SessionDep, StoreDep
from queryloop.exceptions import QueryLoopError
from queryloop.schemas.admin import AdminQuestionRequest
from queryloop.services.cascade import CascadeDeletionCoordinator
from queryloop.services.questions import QuestionService

from .responses import SUCCESS, error_response, failure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/questions", tags=["admin"])


@router.post("", response_model=None)
async def manage_question(
    payload: AdminQuestionRequest,
    admin: AdminDep,
    db: SessionDep,
    store: StoreDep,
) -> dict[str, bool] | JSONResponse:
    """Delete a question (with dependents) or rename it."""
    if not payload.action or not payload.question_id:
        return error_response("Missing action or questionId")

    try:
        if payload.action == "delete":
            CascadeDeletionCoordinator(db, store).delete_question(payload.question_id)
        elif payload.action == "edit":
            if not payload.new_title:
                return error_response("Missing newTitle")
            QuestionService(db).edit_title(payload.question_id, payload.new_title)
        else:
            return error_response("Invalid action")
    except QueryLoopError as err:
        return failure(err)

    logger.info("Admin %s: %s question %s", admin.id, payload.action, payload.question_id)
    return SUCCESS
