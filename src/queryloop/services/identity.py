"""Identity records and caller resolution.

Credentials are managed by the identity provider. This service only mirrors
the identity id/email pairs that bearer tokens refer to and maps a token to
the caller's profile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from queryloop.core.security import InvalidTokenError, decode_subject
from queryloop.exceptions import AuthorizationError, ConflictError, ValidationError
from queryloop.models import Identity, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Caller:
    """Who is performing the current request."""

    id: str | None = None
    is_admin: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.id is not None


ANONYMOUS = Caller()


class IdentityDirectory:
    """Access to the ``identities`` table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def register(self, email: str) -> Identity:
        """Record a new identity for ``email`` (case-insensitive unique)."""
        normalized = email.strip().lower()
        if "@" not in normalized:
            raise ValidationError("A valid email is required", field="email")
        taken = self.db.scalar(
            select(func.count()).select_from(Identity).where(Identity.email == normalized)
        )
        if taken:
            raise ConflictError("Email is already registered", {"email": normalized})
        identity = Identity(email=normalized)
        self.db.add(identity)
        self.db.flush()
        return identity

    def get(self, identity_id: str) -> Identity | None:
        return self.db.get(Identity, identity_id)

    def remove(self, identity_id: str) -> int:
        """Delete the identity row without committing; returns rows removed."""
        result = self.db.execute(delete(Identity).where(Identity.id == identity_id))
        return result.rowcount or 0


def identity_from_token(token: str) -> str:
    """Return the identity id in ``token`` or raise a 401 ``AuthorizationError``."""
    try:
        return decode_subject(token)
    except InvalidTokenError as err:
        raise AuthorizationError(
            "Could not validate credentials", authenticated=False
        ) from err


def resolve_caller(db: Session, token: str | None) -> Caller:
    """Map an optional bearer token to a ``Caller``.

    A missing token yields the anonymous caller. An invalid token, or one
    whose identity has no profile, is rejected.
    """
    if not token:
        return ANONYMOUS
    identity_id = identity_from_token(token)
    user = db.get(User, identity_id)
    if user is None:
        raise AuthorizationError("User not found", authenticated=False)
    return Caller(id=user.id, is_admin=bool(user.is_admin))
