"""
Error taxonomy for the document generation pipeline.

Every error aborts the whole job: there is no partial document and no retry.
"""
from __future__ import annotations

from typing import Optional


class GenerationError(Exception):
    """Base class for every failure inside a generation job."""


class UpstreamError(GenerationError):
    """Transport, HTTP or payload failure talking to the completion API."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class IrrelevantReplyError(GenerationError):
    """The relevance check rejected a completion reply."""

    def __init__(self, topic: str, reply: str) -> None:
        super().__init__(f'Output does not appear relevant to topic: "{topic}"')
        self.topic = topic
        self.reply_preview = reply[:80]


class RenderError(GenerationError):
    """Headless-browser or document-builder failure."""


class MissingArtifactError(GenerationError):
    """The assembler could not find an expected section artifact."""


class GenerationCancelledError(GenerationError):
    """A cancellation token was observed before the next section started."""
