# tests/conftest.py
from __future__ import annotations

from collections.abc import Generator, Iterator
from typing import Any

import boto3
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from moto import mock_aws
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import clipgate.models  # noqa: F401
from clipgate.core.settings import Settings
from clipgate.db.session import Base
from clipgate.db.session import get_db as app_get_session
from clipgate.main import create_app
from clipgate.services.container import GateServices, build_services
from clipgate.services.moderation import ModerationVerdict
from clipgate.utils.hash import keyed_hexdigest

TEST_DB_URL = "sqlite://"
TEST_SALT = "test-captcha-salt"
TEST_BUCKET = "clipgate-test"
TEST_REGION = "us-east-1"
START_TIME = 1_700_000_000.0
CHALLENGE_ANSWER = "KMN347"


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = START_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubClassifier:
    """Moderation classifier that records its inputs."""

    def __init__(self) -> None:
        self.flagged = False
        self.error: Exception | None = None
        self.calls: list[str] = []

    async def classify(self, text: str) -> ModerationVerdict:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        if self.flagged:
            return ModerationVerdict(flagged=True, categories=frozenset({"harassment"}))
        return ModerationVerdict(flagged=False)


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "captcha_salt": TEST_SALT,
        "openai_api_key": "sk-test",
        "aws_region": TEST_REGION,
        "s3_bucket": TEST_BUCKET,
        "database_url": TEST_DB_URL,
        "create_tables_on_startup": False,
        "rate_limit_backend": "memory",
    }
    values.update(overrides)
    return Settings(**values)


def solved_challenge(answer: str = CHALLENGE_ANSWER) -> dict[str, str]:
    """Return a captcha answer/token pair as a client would submit it."""
    return {"captchaText": answer, "captchaToken": keyed_hexdigest(answer, TEST_SALT)}


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def classifier() -> StubClassifier:
    return StubClassifier()


@pytest.fixture()
def test_settings() -> Settings:
    """Provide a fully configured Settings instance."""
    return make_settings()


@pytest.fixture()
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)


@pytest.fixture()
def s3_client(aws_credentials: None) -> Iterator[Any]:
    with mock_aws():
        client = boto3.client("s3", region_name=TEST_REGION)
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture()
def services(
    test_settings: Settings,
    classifier: StubClassifier,
    s3_client: Any,
    clock: FakeClock,
) -> GateServices:
    return build_services(test_settings, classifier=classifier, s3_client=s3_client, clock=clock)


@pytest.fixture()
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


@pytest.fixture()
def app(test_settings: Settings, services: GateServices, db_session: Session) -> Iterator[FastAPI]:
    application = create_app(test_settings, services=services)

    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    application.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield application
    finally:
        application.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
