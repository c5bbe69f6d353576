"""Business logic services for the QueryLoop application."""

from .cascade import CascadeDeletionCoordinator, CascadeReport
from .favorites import FavoriteService
from .identity import Caller, IdentityDirectory
from .questions import QuestionService
from .storage import LocalObjectStore, ObjectStore
from .users import UserService
from .visibility import VisibilityGate, VisibilityState
from .votes import VoteLedger, VoteOutcome

__all__ = [
    "Caller",
    "CascadeDeletionCoordinator",
    "CascadeReport",
    "FavoriteService",
    "IdentityDirectory",
    "LocalObjectStore",
    "ObjectStore",
    "QuestionService",
    "UserService",
    "VisibilityGate",
    "VisibilityState",
    "VoteLedger",
    "VoteOutcome",
]
