"""
Shared test fixtures and configuration.
"""

import os
import tempfile
from typing import List, Optional, Sequence

import pytest

# Set test environment variables before importing app modules
_TEST_ROOT = tempfile.mkdtemp(prefix="tgnsite_test_")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_ROOT}/tgn.db")
os.environ.setdefault("LOCAL_STORAGE_PATH", f"{_TEST_ROOT}/uploads")
os.environ.setdefault("NEWS_CONTENT_DIR", f"{_TEST_ROOT}/news")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("ADMIN_PASSWORD", "test-admin-password")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")

from fastapi.testclient import TestClient  # noqa: E402

from tgnsite.llm.base import LLMProvider, LLMResponse  # noqa: E402
from tgnsite.models.chat import ConversationTurn  # noqa: E402


class FakeLLMProvider(LLMProvider):
    """Returns a canned reply (or raises) and records every call."""

    def __init__(self, reply: str = "TGNは筑波大学の大学院生による異分野交流団体だよ！",
                 error: Optional[Exception] = None):
        super().__init__(api_key="fake", model="fake-model")
        self.reply = reply
        self.error = error
        self.calls: List[dict] = []

    async def generate(self, system_instruction: str, turns: Sequence[ConversationTurn],
                       temperature=None, max_tokens=None) -> LLMResponse:
        self.calls.append({"system_instruction": system_instruction, "turns": list(turns)})
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.reply, model=self.model)


class RecordingSessionStore:
    """SessionStore stand-in that keeps rows in memory."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.rows: List[dict] = []

    async def append_message(self, **kwargs):
        if self.fail:
            raise RuntimeError("database is locked")
        self.rows.append(kwargs)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def app():
    from tgnsite.main import app as fastapi_app
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_cookies():
    from tgnsite.utils.auth import create_admin_token
    return {"auth_token": create_admin_token()}
