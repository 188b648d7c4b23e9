# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# 32 ASCII bytes, base64 encoded
TEST_ENCRYPTION_KEY = "MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY="

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from secure_whisper.api.dependencies import get_session_tokens
from secure_whisper.core.settings import settings
from secure_whisper.db.session import Base, enable_sqlite_foreign_keys
from secure_whisper.db.session import get_db as app_get_session
from secure_whisper.main import app as fastapi_app
from secure_whisper.repositories.storage import SqlAlchemyStorage
from secure_whisper.services.codec import MessageCodec
from secure_whisper.services.hub import FanoutHub
from secure_whisper.services.identity import IdentityService, SessionTokens

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Services commit, so each test wipes the tables it may have touched.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def fresh_hub(app: FastAPI) -> Iterator[FanoutHub]:
    """Give every test its own fan-out hub."""
    hub = FanoutHub(queue_size=settings.hub_queue_size)
    app.state.hub = hub
    yield hub
    hub.shutdown()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def storage(db_session: Session) -> SqlAlchemyStorage:
    return SqlAlchemyStorage(db_session)


@pytest.fixture()
def codec() -> MessageCodec:
    return MessageCodec(os.urandom(32))


@pytest.fixture()
def session_tokens() -> SessionTokens:
    """Return the token issuer the running application verifies with."""
    return get_session_tokens()


@pytest.fixture()
def identity_service(storage: SqlAlchemyStorage, session_tokens: SessionTokens) -> IdentityService:
    return IdentityService(storage, session_tokens, bcrypt_rounds=settings.bcrypt_rounds)


@pytest.fixture()
def make_user(identity_service: IdentityService) -> Callable[..., dict[str, Any]]:
    """Return a factory registering a user and returning its id, token and headers."""

    def _make(username: str, email: str | None = None, password: str = "pw") -> dict[str, Any]:
        user, token = identity_service.register(username, email, password)
        return {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "password": password,
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _make


@pytest.fixture()
def alice(make_user: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    return make_user("alice", "alice@example.com", "pw-alice")


@pytest.fixture()
def bob(make_user: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    return make_user("bob", "bob@example.com", "pw-bob")


@pytest.fixture()
def carol(make_user: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    return make_user("carol")
