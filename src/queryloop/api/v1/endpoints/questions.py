"""Question-related endpoints for the QueryLoop API."""

from fastapi import APIRouter, File, Query, UploadFile, status

from queryloop.api.v1.dependencies import CallerDep, CurrentCallerDep, SessionDep, StoreDep
from queryloop.exceptions import AuthorizationError, NotFoundError
from queryloop.models import Question
from queryloop.schemas.question import (
    AnswerCreate,
    AnswerResponse,
    AttachmentResponse,
    FavoriteState,
    QuestionCreate,
    QuestionDetail,
    QuestionResponse,
    QuestionSummary,
)
from queryloop.services.cascade import CascadeDeletionCoordinator
from queryloop.services.favorites import FavoriteService
from queryloop.services.questions import QuestionService

router = APIRouter(prefix="/questions", tags=["questions"])


@router.get("/", response_model=list[QuestionSummary])
async def list_questions(
    db: SessionDep,
    tag: str | None = Query(None, description="Only questions with this tag"),
    limit: int | None = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> list[QuestionSummary]:
    """List approved questions, newest first."""
    records = QuestionService(db).list_public(tag=tag, limit=limit, offset=offset)
    return [QuestionSummary.model_validate(record) for record in records]


@router.post("/", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
async def ask_question(
    payload: QuestionCreate,
    caller: CurrentCallerDep,
    db: SessionDep,
) -> QuestionResponse:
    """Ask a question; it stays pending until an admin approves it."""
    record = QuestionService(db).ask(caller, payload.title, payload.body, payload.tags)
    return QuestionResponse.model_validate(record)


@router.get("/{question_id}", response_model=QuestionDetail)
async def get_question(question_id: str, caller: CallerDep, db: SessionDep) -> QuestionDetail:
    """Return the question page, or 403 while it awaits moderation."""
    return QuestionService(db).detail(question_id, caller)


@router.delete("/{question_id}")
async def delete_question(
    question_id: str,
    caller: CurrentCallerDep,
    db: SessionDep,
    store: StoreDep,
) -> dict[str, object]:
    """Delete a question and everything attached to it (author or admin)."""
    question = db.get(Question, question_id)
    if question is None:
        raise NotFoundError("question", question_id)
    if question.author_id != caller.id and not caller.is_admin:
        raise AuthorizationError("Only the author or an admin can delete this question.")

    report = CascadeDeletionCoordinator(db, store).delete_question(question_id)
    return {"success": True, "removed": report.as_dict()}


@router.post(
    "/{question_id}/answers",
    response_model=AnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_answer(
    question_id: str,
    payload: AnswerCreate,
    caller: CurrentCallerDep,
    db: SessionDep,
) -> AnswerResponse:
    """Answer an approved question."""
    record = QuestionService(db).answer(question_id, caller, payload.body)
    return AnswerResponse.model_validate(record)


@router.post(
    "/{question_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_question_attachment(
    question_id: str,
    caller: CurrentCallerDep,
    db: SessionDep,
    store: StoreDep,
    file: UploadFile = File(...),
) -> AttachmentResponse:
    """Attach a file to one of the caller's questions."""
    data = await file.read()
    record = QuestionService(db, store).add_question_attachment(
        question_id, caller, file.filename or "", data
    )
    return AttachmentResponse.model_validate(record)


@router.post("/{question_id}/favorite", response_model=FavoriteState)
async def toggle_favorite(question_id: str, caller: CurrentCallerDep, db: SessionDep) -> FavoriteState:
    """Favorite or un-favorite a question."""
    favorited, count = FavoriteService(db).toggle(question_id, caller)
    return FavoriteState(favorited=favorited, favorite_count=count)
