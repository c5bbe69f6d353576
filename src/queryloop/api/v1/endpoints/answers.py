"""Answer-related endpoints for the QueryLoop API."""

from fastapi import APIRouter, File, UploadFile, status

from queryloop.api.v1.dependencies import CurrentCallerDep, SessionDep, StoreDep
from queryloop.schemas.question import AttachmentResponse
from queryloop.services.questions import QuestionService

router = APIRouter(prefix="/answers", tags=["answers"])


@router.post(
    "/{answer_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_answer_attachment(
    answer_id: str,
    caller: CurrentCallerDep,
    db: SessionDep,
    store: StoreDep,
    file: UploadFile = File(...),
) -> AttachmentResponse:
    """Attach a file to one of the caller's answers."""
    data = await file.read()
    record = QuestionService(db, store).add_answer_attachment(
        answer_id, caller, file.filename or "", data
    )
    return AttachmentResponse.model_validate(record)
