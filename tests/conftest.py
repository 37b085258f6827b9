import json
import sys
from pathlib import Path

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from common.clients.llm.router import build_default_router
from common.persistence import models

TEST_ENCRYPTION_KEY = "0123456789abcdef" * 4

AI_ENV_VARS = (
    "COMMON_AI_PROVIDER",
    "COMMON_AI_API_KEY",
    "COMMON_AI_API_ENDPOINT",
    "AI_REQUEST_TIMEOUT",
    "ENCRYPTION_KEY",
)


@pytest.fixture(autouse=True)
def isolated_ai_env(monkeypatch):
    for name in AI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENCRYPTION_KEY", TEST_ENCRYPTION_KEY)
    yield


@pytest.fixture
def common_ai_env(monkeypatch):
    monkeypatch.setenv("COMMON_AI_PROVIDER", "deepseek")
    monkeypatch.setenv("COMMON_AI_API_KEY", "sk-common")
    monkeypatch.setenv("COMMON_AI_API_ENDPOINT", "https://llm-proxy.example.com/v1")


@pytest.fixture
def engine(tmp_path):
    url = f"sqlite+pysqlite:///{tmp_path / 'test.db'}"
    engine = create_engine(url, future=True)
    models.Base.metadata.create_all(engine)
    yield engine
    models.Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False, future=True)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class RecordedCalls(list):
    """MockTransport 收到的请求。"""

    @property
    def last(self) -> httpx.Request:
        return self[-1]

    def last_json(self) -> dict:
        return json.loads(self[-1].content)


@pytest.fixture
def make_router():
    """构造使用 MockTransport 的路由器，返回 (router, calls)。"""

    def _make(status_code=200, json_body=None, text=None, handler=None):
        calls = RecordedCalls()

        def _handle(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if handler is not None:
                return handler(request)
            if text is not None:
                return httpx.Response(status_code, text=text)
            return httpx.Response(status_code, json=json_body)

        router = build_default_router(transport=httpx.MockTransport(_handle), timeout=5)
        return router, calls

    return _make
