"""
Completion client for an OpenAI-compatible ``/chat/completions`` endpoint.

Public API
----------
CompletionClient.complete(prompt_text, conversation, topic, sampling) -> str
    Sends the trimmed history plus the new prompt, cleans the reply, checks
    topical relevance, and records the exchange in the conversation store.

strip_reasoning(text) / strip_self_intro(text)
    Reply cleanup helpers; both are idempotent.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from app.config import settings
from app.services.conversation import ASSISTANT, USER, ConversationStore
from app.services.errors import IrrelevantReplyError, UpstreamError
from app.services.profiles import SamplingParams
from app.services.relevance import KeywordRelevanceCheck, RelevanceCheck
from app.utils.helpers import truncate_text

logger = logging.getLogger(__name__)

_REASONING_BLOCK = re.compile(r"<think>.*?</think>", re.IGNORECASE | re.DOTALL)
_SELF_INTRO = re.compile(r"^I'm DeepSeek-R1.*?help you\.\s*", re.IGNORECASE)


def strip_reasoning(text: str) -> str:
    """Remove every ``<think>…</think>`` block, including ones exposed by a removal."""
    previous = None
    while previous != text:
        previous = text
        text = _REASONING_BLOCK.sub("", text)
    return text.strip()


def strip_self_intro(text: str) -> str:
    previous = None
    while previous != text:
        previous = text
        text = _SELF_INTRO.sub("", text)
    return text.strip()


def clean_reply(text: str) -> str:
    return strip_self_intro(strip_reasoning(text))


class CompletionClient:
    """
    Chat-completion caller with reply cleanup and a relevance gate.

    Failures are never retried here: any error aborts the whole document job.
    A custom ``transport`` can be injected (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        relevance: Optional[RelevanceCheck] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.COMPLETION_API_KEY
        self.base_url = (base_url or settings.COMPLETION_BASE_URL).rstrip("/")
        self.model = model or settings.COMPLETION_MODEL
        self.timeout = httpx.Timeout(
            float(timeout or settings.COMPLETION_TIMEOUT), connect=10.0
        )
        self.relevance = relevance or KeywordRelevanceCheck()
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def complete(
        self,
        prompt_text: str,
        conversation: ConversationStore,
        topic: str,
        sampling: SamplingParams,
    ) -> str:
        messages = conversation.trim() + [{"role": USER, "content": prompt_text}]
        raw = await self._call_api(messages, sampling)

        reply = clean_reply(raw)
        if not reply:
            raise UpstreamError("Completion API returned an empty reply")

        if not self.relevance.is_relevant(topic, reply):
            logger.warning(
                'Irrelevant output for topic "%s": %s', topic, truncate_text(reply, 80)
            )
            raise IrrelevantReplyError(topic, reply)

        conversation.append(USER, prompt_text)
        conversation.append(ASSISTANT, reply)
        await conversation.save()

        logger.info('Accepted reply for topic "%s" (%d chars)', topic, len(reply))
        return reply

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _call_api(
        self, messages: List[Dict[str, str]], sampling: SamplingParams
    ) -> str:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            **sampling.as_payload(),
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                )
        except httpx.TimeoutException as exc:
            logger.error("Completion request timed out: %s", exc)
            raise UpstreamError("Completion request timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("Completion request failed: %s", exc)
            raise UpstreamError(f"Completion request failed: {exc}") from exc

        if resp.status_code != 200:
            logger.error(
                "Completion API returned HTTP %d: %s",
                resp.status_code,
                resp.text[:300],
            )
            raise UpstreamError(
                f"Completion API returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            return resp.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("Malformed completion response: %s", resp.text[:300])
            raise UpstreamError("Malformed completion response") from exc
