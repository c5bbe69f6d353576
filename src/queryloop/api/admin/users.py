"""Admin user management."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from queryloop.api.v1.dependencies import AdminDep, SessionDep, StoreDep
from queryloop.exceptions import QueryLoopError
from queryloop.schemas.admin import AdminUserRequest
from queryloop.services.cascade import CascadeDeletionCoordinator
from queryloop.services.users import UserService

from .responses import SUCCESS, error_response, failure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["admin"])


@router.post("", response_model=None)
async def manage_user(
    payload: AdminUserRequest,
    admin: AdminDep,
    db: SessionDep,
    store: StoreDep,
) -> dict[str, bool] | JSONResponse:
    """Delete a user with all their content, or flip their admin flag."""
    if not payload.action or not payload.user_id:
        return error_response("Missing action or userId")

    try:
        if payload.action == "delete":
            if payload.user_id == admin.id:
                return error_response("You cannot delete your own account here")
            CascadeDeletionCoordinator(db, store).delete_user(payload.user_id)
        elif payload.action == "toggleAdmin":
            UserService(db).toggle_admin(payload.user_id, acting_admin_id=admin.id)
        else:
            return error_response("Invalid action")
    except QueryLoopError as err:
        return failure(err)

    logger.info("Admin %s: %s user %s", admin.id, payload.action, payload.user_id)
    return SUCCESS
