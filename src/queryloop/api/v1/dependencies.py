"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from queryloop.db.session import get_db
from queryloop.exceptions import AuthorizationError
from queryloop.models import Identity
from queryloop.services.identity import Caller, IdentityDirectory, identity_from_token, resolve_caller
from queryloop.services.storage import ObjectStore, get_object_store

# Anonymous callers are allowed on read endpoints, so missing headers are not an error here.
bearer_scheme = HTTPBearer(auto_error=False)

CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_object_store_dep() -> ObjectStore:
    """Return the configured object store."""
    return get_object_store()


def get_caller(credentials: CredentialsDep, db: SessionDep) -> Caller:
    """Resolve the optional bearer token to a caller (anonymous if absent).

    Raises:
        HTTPException: If a token was sent but is invalid or has no profile.
    """
    token = credentials.credentials if credentials else None
    try:
        return resolve_caller(db, token)
    except AuthorizationError as err:
        raise _unauthorized(err.message) from err


def require_caller(caller: Annotated[Caller, Depends(get_caller)]) -> Caller:
    """Reject anonymous callers."""
    if not caller.is_authenticated:
        raise _unauthorized("Not authenticated")
    return caller


def get_identity(credentials: CredentialsDep, db: SessionDep) -> Identity:
    """Return the identity named by the bearer token, profile or not."""
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        identity_id = identity_from_token(credentials.credentials)
    except AuthorizationError as err:
        raise _unauthorized(err.message) from err
    identity = IdentityDirectory(db).get(identity_id)
    if identity is None:
        raise _unauthorized("Identity not found")
    return identity


def require_admin(caller: Annotated[Caller, Depends(get_caller)]) -> Caller:
    """Reject callers without the admin flag."""
    if not caller.is_authenticated:
        raise AuthorizationError("You must be logged in.", authenticated=False)
    if not caller.is_admin:
        raise AuthorizationError("Admin privileges required")
    return caller


StoreDep = Annotated[ObjectStore, Depends(get_object_store_dep)]
CallerDep = Annotated[Caller, Depends(get_caller)]
CurrentCallerDep = Annotated[Caller, Depends(require_caller)]
IdentityDep = Annotated[Identity, Depends(get_identity)]
AdminDep = Annotated[Caller, Depends(require_admin)]
