from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from victry.api.app import create_app
from victry.config import Settings
from victry.db.base import Base
from victry.db.session import build_engine, build_session_factory, open_owner_session
from victry.errors import LLMUnavailableError
from victry.llm.router import LLMRouter
from victry.types import LLMRequest, ModelResponse

ALICE = "user-alice"
BOB = "user-bob"


class FakeProvider:
    """Stands in for the network: replays queued responses and records requests."""

    def __init__(self) -> None:
        self.responses: list[ModelResponse | Exception] = []
        self.requests: list[LLMRequest] = []

    def queue(self, response: ModelResponse | Exception) -> None:
        self.responses.append(response)

    def complete(self, request: LLMRequest) -> ModelResponse:
        self.requests.append(request)
        if not self.responses:
            raise LLMUnavailableError("no fake response queued")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        app_env="test",
        database_url="sqlite://",
        data_dir=tmp_path / "data",
        secret_key="test-secret",
        anthropic_api_key="",
        openai_api_key="",
    )


@pytest.fixture
def engine(settings: Settings) -> Iterator[Engine]:
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(engine)


@pytest.fixture
def owner_session(session_factory: sessionmaker[Session]) -> Iterator[Callable[[str], Session]]:
    opened: list[Session] = []

    def _open(user_id: str) -> Session:
        session = open_owner_session(session_factory, user_id)
        opened.append(session)
        return session

    yield _open
    for session in opened:
        session.close()


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def llm(settings: Settings, fake_provider: FakeProvider) -> LLMRouter:
    return LLMRouter(settings, provider=fake_provider)


@pytest.fixture
def app(settings: Settings, llm: LLMRouter) -> FastAPI:
    return create_app(settings, llm=llm)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


def make_token(user_id: str, secret: str = "test-secret") -> str:
    return jwt.encode({"sub": user_id}, secret, algorithm="HS256")


@pytest.fixture
def alice_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(ALICE)}"}


@pytest.fixture
def bob_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(BOB)}"}
