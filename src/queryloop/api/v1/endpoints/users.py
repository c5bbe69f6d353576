"""User profile endpoints."""

from fastapi import APIRouter, status

from queryloop.api.v1.dependencies import CurrentCallerDep, IdentityDep, SessionDep
from queryloop.schemas.question import ActivityPage, AnswerResponse, ProfilePage, QuestionSummary
from queryloop.schemas.user import ProfileCreate, ProfileUpdate, UserResponse
from queryloop.services.favorites import FavoriteService
from queryloop.services.questions import QuestionService
from queryloop.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(payload: ProfileCreate, identity: IdentityDep, db: SessionDep) -> UserResponse:
    """Create the public profile for the caller's identity."""
    record = UserService(db).create_profile(
        identity.id,
        identity.email,
        payload.username,
        display_name=payload.display_name,
        bio=payload.bio,
    )
    return UserResponse.model_validate(record)


@router.get("/me", response_model=UserResponse)
async def get_me(caller: CurrentCallerDep, db: SessionDep) -> UserResponse:
    return UserResponse.model_validate(UserService(db).get(caller.id))


@router.patch("/me", response_model=UserResponse)
async def update_me(payload: ProfileUpdate, caller: CurrentCallerDep, db: SessionDep) -> UserResponse:
    """Edit the caller's display name and bio."""
    record = UserService(db).update_profile(
        caller.id,
        display_name=payload.display_name,
        bio=payload.bio,
    )
    return UserResponse.model_validate(record)


@router.get("/me/activity", response_model=ActivityPage)
async def get_my_activity(caller: CurrentCallerDep, db: SessionDep) -> ActivityPage:
    """The caller's questions (pending included), answers and favorites."""
    questions = QuestionService(db)
    return ActivityPage(
        questions=[
            QuestionSummary.model_validate(q)
            for q in questions.list_by_author(caller.id, include_pending=True)
        ],
        answers=[AnswerResponse.model_validate(a) for a in questions.list_answers_by_author(caller.id)],
        favorites=[
            QuestionSummary.model_validate(q) for q in FavoriteService(db).list_for_user(caller)
        ],
    )


@router.get("/{username}", response_model=ProfilePage)
async def get_profile(username: str, db: SessionDep) -> ProfilePage:
    """Public profile with the user's approved questions."""
    user = UserService(db).get_by_username(username)
    questions = QuestionService(db).list_by_author(user.id)
    return ProfilePage(
        user=UserResponse.model_validate(user),
        questions=[QuestionSummary.model_validate(question) for question in questions],
    )
