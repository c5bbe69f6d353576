"""User profile workflows."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from queryloop.exceptions import ConflictError, NotFoundError, ValidationError
from queryloop.models import User
from queryloop.schemas.records import UserRecord, to_record

logger = logging.getLogger(__name__)


class UserService:
    """Creates and edits profiles and applies admin role changes."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def create_profile(
        self,
        identity_id: str,
        email: str,
        username: str,
        display_name: str | None = None,
        bio: str | None = None,
    ) -> UserRecord:
        """Create the profile mirroring an identity.

        Raises:
            ConflictError: If the identity already has a profile or the
                username is taken.
        """
        if self.db.get(User, identity_id) is not None:
            raise ConflictError("Profile already exists", {"user_id": identity_id})
        taken = self.db.scalar(
            select(func.count())
            .select_from(User)
            .where(func.lower(User.username) == username.lower())
        )
        if taken:
            raise ConflictError("Username is already taken", {"username": username})

        user = User(
            id=identity_id,
            username=username,
            display_name=display_name or username,
            email=email,
            is_admin=False,
            reputation=0,
            bio=bio,
        )
        self.db.add(user)
        self.db.commit()
        logger.info("Profile %s created for identity %s", username, identity_id)
        return to_record(UserRecord, user)

    def get(self, user_id: str) -> UserRecord:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return to_record(UserRecord, user)

    def get_by_username(self, username: str) -> UserRecord:
        user = self.db.scalar(select(User).where(User.username == username))
        if user is None:
            raise NotFoundError("user", username)
        return to_record(UserRecord, user)

    def update_profile(
        self,
        user_id: str,
        *,
        display_name: str | None = None,
        bio: str | None = None,
    ) -> UserRecord:
        """Change display name and bio. ``None`` leaves a field as is; a blank
        string clears it, and a cleared display name falls back to the username.
        """
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        if display_name is not None:
            user.display_name = display_name.strip() or user.username
        if bio is not None:
            user.bio = bio.strip() or None
        self.db.commit()
        logger.info("Profile %s updated", user_id)
        return to_record(UserRecord, user)

    def toggle_admin(self, user_id: str, *, acting_admin_id: str | None = None) -> UserRecord:
        """Flip ``is_admin``; admins cannot demote themselves."""
        if acting_admin_id is not None and acting_admin_id == user_id:
            raise ValidationError("You cannot change your own admin role")
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        user.is_admin = not user.is_admin
        self.db.commit()
        logger.info("User %s admin flag set to %s", user_id, user.is_admin)
        return to_record(UserRecord, user)
