"""Test fixtures for LT-AI-mixer."""

import logging

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from lt_ai_mixer.config import Settings
from lt_ai_mixer.logging_config import LOGGER_NAME
from lt_ai_mixer.main import create_app
from tests.helpers import (
    COMPLETION_URL,
    UPSTREAM_URL,
    StubServer,
    completion_reply,
    upstream_json,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        languagetool_url=UPSTREAM_URL,
        openai_url=COMPLETION_URL,
        openai_model="gpt-test",
        openai_token="sk-test",
        openai_prompt="",
    )


@pytest.fixture
def upstream() -> StubServer:
    """LanguageTool stub answering every request with an empty report."""
    return StubServer(
        lambda request: upstream_json(
            {"software": {"name": "LanguageTool"}, "matches": []},
            headers=[("X-Upstream", "languagetool")],
        )
    )


@pytest.fixture
def completion() -> StubServer:
    return StubServer(completion_reply("Hi there"))


@pytest.fixture
def app(settings, upstream, completion):
    return create_app(
        settings,
        upstream_transport=upstream.transport,
        completion_transport=completion.transport,
    )


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def restore_loggers():
    """Undo ``setup_logging`` so later tests still propagate to caplog."""
    names = (LOGGER_NAME, "uvicorn", "uvicorn.error", "uvicorn.access")
    saved = {}
    for name in names:
        target = logging.getLogger(name)
        saved[name] = (list(target.handlers), target.level, target.propagate)
    yield
    for name, (handlers, level, propagate) in saved.items():
        target = logging.getLogger(name)
        for handler in target.handlers:
            if handler not in handlers:
                handler.close()
        target.handlers[:] = handlers
        target.setLevel(level)
        target.propagate = propagate
