"""
Shared fixtures for Bookgen backend tests.

The metadata store is a throwaway SQLite file (aiosqlite); working and output
directories live in a temp directory.  The completion endpoint is never
contacted: tests inject an ``httpx.MockTransport`` into the CompletionClient.
Tables are created before and dropped after every test that uses them.
"""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import AsyncGenerator, Callable, List, Optional

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Override settings *before* any app module is imported, so that
# settings and the global engine point at the test locations.
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="bookgen-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT / 'bookgen_test.db'}"
os.environ["WORK_DIR"] = str(_TEST_ROOT / "work")
os.environ["OUTPUT_DIR"] = str(_TEST_ROOT / "out")
os.environ["COMPLETION_API_KEY"] = "test-key"
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("SUPABASE_SERVICE_ROLE_KEY", None)

from app import database  # noqa: E402
from app.database import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.services.completion import CompletionClient  # noqa: E402
from app.services.job_queue import GenerationQueue  # noqa: E402
from app.services.pipeline import DocumentPipeline  # noqa: E402
from app.services.renderer import Renderer  # noqa: E402


# ---------------------------------------------------------------------------
# Fake completion endpoint
# ---------------------------------------------------------------------------

def completion_body(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class FakeCompletionAPI:
    """
    Scripted ``/chat/completions`` endpoint.

    The first request of a conversation (no system message yet) gets a table
    of contents; every later request gets a short Markdown section.  Each
    request's JSON payload is kept in ``requests``.
    """

    def __init__(self, topic: str, reply: Optional[Callable[[dict], str]] = None) -> None:
        self.topic = topic
        self.requests: List[dict] = []
        self._reply = reply or self.default_reply

    def default_reply(self, payload: dict) -> str:
        messages = payload["messages"]
        if not any(m["role"] == "system" for m in messages):
            return (
                "<think>planning the outline</think>"
                f"Table of Contents\n\n1. Chapter 1: What are {self.topic}\n"
                f"2. Chapter 2: Living with {self.topic}"
            )
        n = len(self.requests)
        return (
            f"## Part {n}: {self.topic}\n\n"
            f"All about **{self.topic}** in part {n}.\n\n"
            "```python\nprint('hello')\n```"
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append(payload)
        return httpx.Response(200, json=completion_body(self._reply(payload)))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> CompletionClient:
        return CompletionClient(
            api_key="test-key",
            base_url="https://llm.test/v1",
            model="test-model",
            timeout=5,
            transport=self.transport(),
        )


def make_pipeline(api: FakeCompletionAPI, tmp_path: Path) -> DocumentPipeline:
    return DocumentPipeline(
        completion=api.client(),
        renderer=Renderer(),
        work_dir=tmp_path / "work",
        output_dir=tmp_path / "out",
    )


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_tables() -> AsyncGenerator[None, None]:
    """Create all tables before the test and drop them afterwards."""
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def fake_api() -> FakeCompletionAPI:
    return FakeCompletionAPI(topic="cats")


@pytest_asyncio.fixture
async def generation_queue(
    fake_api: FakeCompletionAPI, tmp_path: Path
) -> AsyncGenerator[GenerationQueue, None]:
    queue = GenerationQueue(make_pipeline(fake_api, tmp_path).run)
    yield queue
    await queue.close()


@pytest_asyncio.fixture
async def client(
    db_tables: None, generation_queue: GenerationQueue
) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app.  The lifespan does not run
    under ASGITransport, so the queue is attached to ``app.state`` here.
    """
    app.state.generation_queue = generation_queue

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    del app.state.generation_queue
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

AUTH_HEADERS = {"X-User-Id": "test-user-1"}

AUTH_HEADERS_USER2 = {"X-User-Id": "test-user-2"}
