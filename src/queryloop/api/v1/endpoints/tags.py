"""Tag listing endpoint."""

from fastapi import APIRouter

from queryloop.api.v1.dependencies import SessionDep
from queryloop.schemas.question import TagResponse
from queryloop.services.questions import QuestionService

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("/", response_model=list[TagResponse])
async def list_tags(db: SessionDep) -> list[TagResponse]:
    return [TagResponse.model_validate(tag) for tag in QuestionService(db).list_tags()]
