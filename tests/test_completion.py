"""Tests for the completion client: request shape, reply cleanup, relevance gate."""
import json

import httpx
import pytest

from app.services.completion import (
    CompletionClient,
    clean_reply,
    strip_reasoning,
    strip_self_intro,
)
from app.services.conversation import ASSISTANT, USER, ConversationStore
from app.services.errors import IrrelevantReplyError, UpstreamError
from app.services.profiles import BOOK_SMALL
from app.services.relevance import KeywordRelevanceCheck
from tests.conftest import completion_body


def _client(handler) -> CompletionClient:
    return CompletionClient(
        api_key="secret",
        base_url="https://llm.test/v1/",
        model="test-model",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


def _replying(content: str, captured: list = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if captured is not None:
            captured.append(request)
        return httpx.Response(200, json=completion_body(content))
    return handler


# ---------------------------------------------------------------------------
# Cleanup helpers
# ---------------------------------------------------------------------------

def test_strip_reasoning_removes_all_blocks():
    text = "<THINK>a\nb</think>Hello <think>x</think>world"
    assert strip_reasoning(text) == "Hello world"


def test_strip_reasoning_is_idempotent():
    for text in [
        "<think>plan</think>Body",
        "<thi<think>inner</think>nk>outer</think>Body",
        "No tags at all",
        "<think>unterminated",
    ]:
        once = strip_reasoning(text)
        assert strip_reasoning(once) == once


def test_nested_block_exposed_by_removal_is_removed():
    assert strip_reasoning("<thi<think>x</think>nk>y</think>Body") == "Body"


def test_strip_self_intro():
    text = "I'm DeepSeek-R1, an AI assistant. How can I help you. Cats are great."
    assert strip_self_intro(text) == "Cats are great."
    assert strip_self_intro("Cats are great.") == "Cats are great."


def test_clean_reply_order():
    text = "<think>hmm</think>I'm DeepSeek-R1 and I am here to help you. Cats purr."
    assert clean_reply(text) == "Cats purr."


# ---------------------------------------------------------------------------
# Relevance
# ---------------------------------------------------------------------------

def test_keyword_relevance():
    check = KeywordRelevanceCheck()
    assert check.is_relevant("Quantum Computing", "an intro to QUANTUM things")
    assert check.is_relevant("cats", "concatenate")  # substring match
    assert not check.is_relevant("cats", "dogs and birds")


# ---------------------------------------------------------------------------
# complete()
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_complete_sends_trimmed_history_and_records_exchange(tmp_path):
    captured = []
    client = _client(_replying("<think>x</think>Chapter about cats.", captured))
    store = ConversationStore("Persona", path=tmp_path / "h.json")
    store.append(USER, "toc please")
    store.append(ASSISTANT, "Table of Contents\n1. Cats")

    reply = await client.complete("Write chapter 1", store, "cats", BOOK_SMALL.sampling)

    assert reply == "Chapter about cats."
    request = captured[0]
    assert str(request.url) == "https://llm.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer secret"
    payload = json.loads(request.content)
    assert payload["model"] == "test-model"
    assert payload["temperature"] == BOOK_SMALL.sampling.temperature
    assert payload["max_tokens"] == BOOK_SMALL.sampling.max_tokens
    assert [m["role"] for m in payload["messages"]] == ["system", "user"]
    assert payload["messages"][1]["content"] == "Write chapter 1"

    assert len(store) == 4
    assert store.entries[-1].content == "Chapter about cats."
    assert (tmp_path / "h.json").exists()


@pytest.mark.asyncio
async def test_irrelevant_reply_raises_and_leaves_store_untouched():
    client = _client(_replying("Dogs are loyal companions."))
    store = ConversationStore("Persona")

    with pytest.raises(IrrelevantReplyError) as exc_info:
        await client.complete("Write about cats", store, "cats", BOOK_SMALL.sampling)

    assert 'topic: "cats"' in str(exc_info.value)
    assert len(store) == 0


@pytest.mark.asyncio
async def test_relevant_reply_accepted():
    client = _client(_replying("Some words about Cats."))
    store = ConversationStore("Persona")
    reply = await client.complete("Write", store, "cats", BOOK_SMALL.sampling)
    assert reply == "Some words about Cats."


@pytest.mark.asyncio
async def test_custom_relevance_check_is_used():
    class AcceptAll:
        def is_relevant(self, topic, reply):
            return True

    client = CompletionClient(
        api_key="k",
        base_url="https://llm.test/v1",
        relevance=AcceptAll(),
        transport=httpx.MockTransport(_replying("Nothing related.")),
    )
    reply = await client.complete("x", ConversationStore("P"), "cats", BOOK_SMALL.sampling)
    assert reply == "Nothing related."


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(429, json={"error": "rate limited"}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json=completion_body("<think>only reasoning</think>")),
    ],
)
async def test_upstream_failures(response):
    client = _client(lambda request: response)
    with pytest.raises(UpstreamError):
        await client.complete("x", ConversationStore("P"), "cats", BOOK_SMALL.sampling)


@pytest.mark.asyncio
async def test_timeout_maps_to_upstream_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = _client(handler)
    with pytest.raises(UpstreamError, match="timed out"):
        await client.complete("x", ConversationStore("P"), "cats", BOOK_SMALL.sampling)


@pytest.mark.asyncio
async def test_connect_error_maps_to_upstream_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = _client(handler)
    with pytest.raises(UpstreamError):
        await client.complete("x", ConversationStore("P"), "cats", BOOK_SMALL.sampling)
