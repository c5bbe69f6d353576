"""Typed records produced from store rows.

Rows leave the service layer only as these immutable records. ``to_record``
validates each row and raises ``MalformedRecordError`` instead of trusting it.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from queryloop.exceptions import MalformedRecordError


class Record(BaseModel):
    """Base for immutable row records."""

    model_config = ConfigDict(from_attributes=True, frozen=True)


class UserRecord(Record):
    id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    display_name: str | None = None
    email: str
    is_admin: bool
    reputation: int = 0
    bio: str | None = None
    created_at: datetime


class QuestionRecord(Record):
    id: str = Field(min_length=1)
    title: str
    body: str
    author_id: str = Field(min_length=1)
    is_public: bool
    created_at: datetime
    updated_at: datetime


class AnswerRecord(Record):
    id: str = Field(min_length=1)
    question_id: str = Field(min_length=1)
    author_id: str = Field(min_length=1)
    body: str
    created_at: datetime


class TagRecord(Record):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)


class VoteRecord(Record):
    target_type: Literal["question", "answer"]
    target_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    value: Literal[-1, 1]


class QuestionAttachmentRecord(Record):
    id: str = Field(min_length=1)
    question_id: str = Field(min_length=1)
    file_path: str = Field(min_length=1)


class AnswerAttachmentRecord(Record):
    id: str = Field(min_length=1)
    answer_id: str = Field(min_length=1)
    file_path: str = Field(min_length=1)


RecordT = TypeVar("RecordT", bound=Record)


def to_record(record_type: type[RecordT], row: object) -> RecordT:
    """Validate an ORM row (or mapping) into ``record_type``."""
    try:
        return record_type.model_validate(row)
    except PydanticValidationError as err:
        raise MalformedRecordError(record_type.__name__, str(err)) from err


def to_records(record_type: type[RecordT], rows: Iterable[object]) -> list[RecordT]:
    """Validate a list of rows, failing on the first malformed one."""
    return [to_record(record_type, row) for row in rows]
