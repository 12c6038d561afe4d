"""
Topic-relevance checks applied to every completion reply.

The default keyword check is deliberately weak: any single topic word found
anywhere in the reply accepts it.  Callers can inject a stricter check.
"""
from __future__ import annotations

from typing import List, Protocol


class RelevanceCheck(Protocol):
    def is_relevant(self, topic: str, reply: str) -> bool:
        ...


def topic_words(topic: str) -> List[str]:
    return [w for w in topic.lower().split() if w]


class KeywordRelevanceCheck:
    """Accept the reply iff at least one whitespace-separated topic word occurs in it."""

    def is_relevant(self, topic: str, reply: str) -> bool:
        lowered = reply.lower()
        return any(word in lowered for word in topic_words(topic))

