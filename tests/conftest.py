# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta

import pytest
from argon2 import PasswordHasher
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("REAPER_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

from securechat.client import KeyPair, KeyPairManager
from securechat.core.security import Argon2CredentialVerifier, create_access_token
from securechat.db.session import Base
from securechat.db.session import get_db as app_get_session
from securechat.db.time import utcnow
from securechat.main import app as fastapi_app
from securechat.models import User
from securechat.services import ConversationDirectory, MessageLifecycleStore, UserDirectory

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct horse battery"


class FakeClock:
    """Manually advanced clock for lifecycle tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@dataclass
class Account:
    """A persisted user together with the key pair only its device knows."""

    user: User
    key_pair: KeyPair

    @property
    def id(self) -> int:
        return self.user.id

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(self.user.id)}"}


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


@pytest.fixture(scope="session")
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(engine: Engine, session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()

        # Services commit, so every test cleans the tables it touched.
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
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def fast_verifier() -> Argon2CredentialVerifier:
    """Argon2 verifier with minimal cost so tests stay quick."""
    return Argon2CredentialVerifier(
        PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)
    )


@pytest.fixture()
def user_directory(db_session: Session, fast_verifier: Argon2CredentialVerifier) -> UserDirectory:
    return UserDirectory(db_session, verifier=fast_verifier)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def directory(db_session: Session, clock: FakeClock) -> ConversationDirectory:
    return ConversationDirectory(db_session, clock=clock)


@pytest.fixture()
def store(db_session: Session, directory: ConversationDirectory, clock: FakeClock) -> MessageLifecycleStore:
    return MessageLifecycleStore(db_session, directory=directory, clock=clock)


@pytest.fixture()
def make_account(user_directory: UserDirectory) -> Callable[[str], Account]:
    """Register a user whose public key comes from a real key pair."""

    def _make(username: str) -> Account:
        key_pair = KeyPairManager.generate()
        user = user_directory.register(username, TEST_PASSWORD, key_pair.public_key_b64)
        return Account(user=user, key_pair=key_pair)

    return _make


@pytest.fixture()
def alice(make_account: Callable[[str], Account]) -> Account:
    return make_account("alice")


@pytest.fixture()
def bob(make_account: Callable[[str], Account]) -> Account:
    return make_account("bob")


@pytest.fixture()
def carol(make_account: Callable[[str], Account]) -> Account:
    return make_account("carol")
