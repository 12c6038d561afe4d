"""
Section writer: one prompt in, one section artifact out.
"""
from __future__ import annotations

import logging

from app.services.artifacts import ArtifactHandle, ArtifactStore
from app.services.completion import CompletionClient
from app.services.conversation import ConversationStore
from app.services.profiles import GenerationProfile
from app.services.prompts import SectionPrompt

logger = logging.getLogger(__name__)

TOC_REFERENCE = "\n\nRefer to this Table of Contents:\n\n"


class SectionWriter:
    def __init__(
        self,
        completion: CompletionClient,
        conversation: ConversationStore,
        artifacts: ArtifactStore,
        topic: str,
        profile: GenerationProfile,
    ) -> None:
        self.completion = completion
        self.conversation = conversation
        self.artifacts = artifacts
        self.topic = topic
        self.profile = profile

    def prompt_text(self, prompt: SectionPrompt) -> str:
        """Prompt text with the stored table of contents appended when one exists."""
        toc = self.conversation.table_of_contents()
        if toc is None or not prompt.references_toc:
            return prompt.text
        return f"{prompt.text}{TOC_REFERENCE}{toc.content}"

    async def write_section(self, prompt: SectionPrompt) -> ArtifactHandle:
        logger.info(
            'Writing section %d (%s) for topic "%s"',
            prompt.index,
            prompt.name,
            self.topic,
        )
        reply = await self.completion.complete(
            self.prompt_text(prompt),
            self.conversation,
            self.topic,
            self.profile.sampling,
        )
        return await self.artifacts.write_section(prompt.index, prompt.name, reply)
