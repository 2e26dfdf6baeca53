# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from afterclasses.api.v1.dependencies import get_chat_relay, get_otp_service
from afterclasses.db.session import Base
from afterclasses.db.session import get_db as app_get_session
from afterclasses.main import app as fastapi_app
from afterclasses.models import User
from afterclasses.services.chat import ChatRelay
from afterclasses.services.notifier import NotificationDispatcher
from afterclasses.services.otp import AllowAllPolicy, OtpService
from afterclasses.services.presence import PresenceService

TEST_DB_URL = "sqlite://"

_EMAIL_COUNTER = count(1)


class RecordingSender:
    """Notification sender that remembers every code instead of emailing it."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    async def send_code(self, email: str, code: str) -> str:
        if self.fail:
            raise ConnectionRefusedError("relay unavailable")
        self.sent.append((email, code))
        return f"<{len(self.sent)}@test>"


class FakeConnection:
    """Connection double collecting the frames the relay sends to it."""

    def __init__(self, broken: bool = False) -> None:
        self.broken = broken
        self.frames: list[dict[str, Any]] = []

    async def send_json(self, data: Any) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.frames.append(data)

    def events(self, name: str) -> list[Any]:
        return [frame["data"] for frame in self.frames if frame["event"] == name]


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
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
        session.close()
        # Ensure each test sees a clean database even if commits occurred.
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


@pytest.fixture()
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture(autouse=True)
def override_otp_service(app: FastAPI, sender: RecordingSender) -> Iterator[None]:
    """Route OTP delivery to the recording sender with no domain restriction."""

    def _otp_service_override() -> OtpService:
        return OtpService(NotificationDispatcher(sender), AllowAllPolicy())

    app.dependency_overrides[get_otp_service] = _otp_service_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_otp_service, None)


@pytest.fixture()
def relay(app: FastAPI) -> Iterator[ChatRelay]:
    """Give each test its own relay so presence never leaks between tests."""
    relay = ChatRelay(PresenceService())
    app.dependency_overrides[get_chat_relay] = lambda: relay
    try:
        yield relay
    finally:
        app.dependency_overrides.pop(get_chat_relay, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting users with sensible defaults."""

    def _make_user(**overrides: Any) -> User:
        values: dict[str, Any] = {
            "email": f"student{next(_EMAIL_COUNTER)}@ljku.edu.in",
            "name": "Student",
            "gender": "female",
            "coins": 400,
        }
        values.update(overrides)
        user = User(**values)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Primary persisted user."""
    return make_user(name="Asha", gender="female")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Secondary persisted user."""
    return make_user(name="Rohan", gender="male")
