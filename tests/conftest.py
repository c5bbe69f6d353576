# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Generator, Iterator
from datetime import datetime
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from queryloop.api.v1.dependencies import get_object_store_dep
from queryloop.core.security import create_access_token
from queryloop.db.session import Base
from queryloop.db.session import get_db as app_get_session
from queryloop.main import app as fastapi_app
from queryloop.models import (
    Answer,
    AnswerAttachment,
    Favorite,
    Identity,
    Question,
    QuestionAttachment,
    QuestionTag,
    Tag,
    User,
    Vote,
)
from queryloop.services.identity import Caller
from queryloop.services.storage import LocalObjectStore

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
        # SQLite ignores FOREIGN KEY clauses unless asked per connection.
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # Services commit and roll back on their own, so each test gets a plain
    # session and the tables are emptied afterwards.
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def store(tmp_path: Path) -> LocalObjectStore:
    """Object store rooted in the test's temporary directory."""
    return LocalObjectStore(tmp_path / "storage")


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(app: FastAPI, db_session: Session, store: LocalObjectStore) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_object_store_dep] = lambda: store
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_object_store_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def create_user(db: Session, username: str, *, is_admin: bool = False) -> User:
    """Persist an identity and its profile."""
    identity = Identity(email=f"{username}@example.com")
    db.add(identity)
    db.flush()
    user = User(
        id=identity.id,
        username=username,
        display_name=username.title(),
        email=identity.email,
        is_admin=is_admin,
        reputation=0,
    )
    db.add(user)
    db.commit()
    return user


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return the primary test user."""
    return create_user(db_session, "alice")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second regular user."""
    return create_user(db_session, "bob")


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    """Create and return an admin."""
    return create_user(db_session, "root", is_admin=True)


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return bearer(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the second test user."""
    return bearer(other_user)


@pytest.fixture()
def admin_auth_token(admin_user: User) -> dict[str, str]:
    """Return authorization headers for the admin."""
    return bearer(admin_user)


def as_caller(user: User | None) -> Caller:
    if user is None:
        return Caller()
    return Caller(id=user.id, is_admin=user.is_admin)


@pytest.fixture()
def make_question(db_session: Session) -> Callable[..., Question]:
    """Factory persisting a question; public unless told otherwise."""

    def _make(
        author: User,
        *,
        is_public: bool = True,
        title: str = "How do I reverse a list?",
        body: str = "I tried slicing but want to understand the options.",
        tags: list[str] | None = None,
        created_at: datetime | None = None,
    ) -> Question:
        question = Question(title=title, body=body, author_id=author.id, is_public=is_public)
        if created_at is not None:
            question.created_at = created_at
            question.updated_at = created_at
        db_session.add(question)
        db_session.flush()
        for name in tags or []:
            tag = db_session.query(Tag).filter_by(name=name).one_or_none()
            if tag is None:
                tag = Tag(name=name)
                db_session.add(tag)
                db_session.flush()
            db_session.add(QuestionTag(question_id=question.id, tag_id=tag.id))
        db_session.commit()
        return question

    return _make


@pytest.fixture()
def make_answer(db_session: Session) -> Callable[..., Answer]:
    """Factory persisting an answer."""

    def _make(question: Question, author: User, body: str = "Use reversed().") -> Answer:
        answer = Answer(question_id=question.id, author_id=author.id, body=body)
        db_session.add(answer)
        db_session.commit()
        return answer

    return _make


@pytest.fixture()
def public_question(make_question: Callable[..., Question], test_user: User) -> Question:
    return make_question(test_user, tags=["python"])


@pytest.fixture()
def pending_question(make_question: Callable[..., Question], test_user: User) -> Question:
    return make_question(test_user, is_public=False, title="Pending question")


@pytest.fixture()
def populated_question(
    db_session: Session,
    store: LocalObjectStore,
    make_question: Callable[..., Question],
    make_answer: Callable[..., Answer],
    test_user: User,
    other_user: User,
    admin_user: User,
) -> dict[str, object]:
    """A question with two answers, one attachment each, three votes and a favorite."""
    question = make_question(test_user, tags=["python", "lists"])

    question_path = f"{question.id}/diagram.png"
    store.upload("questions-files", question_path, b"question-bytes")
    db_session.add(QuestionAttachment(question_id=question.id, file_path=question_path))

    answers = [make_answer(question, other_user), make_answer(question, admin_user, "Slice with [::-1].")]
    answer_paths = []
    for answer in answers:
        path = f"{question.id}/answers/{answer.id}/snippet.txt"
        store.upload("answer-files", path, b"answer-bytes")
        db_session.add(AnswerAttachment(answer_id=answer.id, file_path=path))
        answer_paths.append(path)

    db_session.add_all(
        [
            Vote(target_type="question", target_id=question.id, user_id=other_user.id, value=1),
            Vote(target_type="answer", target_id=answers[0].id, user_id=test_user.id, value=1),
            Vote(target_type="answer", target_id=answers[1].id, user_id=other_user.id, value=-1),
            Favorite(question_id=question.id, user_id=other_user.id),
        ]
    )
    db_session.commit()
    return {
        "question_id": question.id,
        "answer_ids": [answer.id for answer in answers],
        "question_path": question_path,
        "answer_paths": answer_paths,
    }
