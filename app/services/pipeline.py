"""
Document generation pipeline.

Public API
----------
DocumentPipeline.run(job)
    → Path
    Prompt sequence → sections (strictly in order) → combined text → rendered
    file in the output directory.  The job's working directory is always
    removed afterwards; a partial output file is removed on failure.
"""
from __future__ import annotations

import dataclasses
import logging
import time
from pathlib import Path
from typing import List, Optional

from app.config import settings
from app.services.artifacts import ArtifactHandle, ArtifactStore
from app.services.completion import CompletionClient
from app.services.conversation import ConversationStore
from app.services.job_queue import GenerationJob, JobPhase
from app.services.prompts import build_prompts
from app.services.renderer import Renderer
from app.services.section_writer import SectionWriter
from app.utils.helpers import session_key

logger = logging.getLogger(__name__)

HISTORY_FILENAME = "history.json"


# ---------------------------------------------------------------------------
# Per-job context
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class JobContext:
    """Everything one job owns; nothing here is shared between jobs."""

    job: GenerationJob
    session_key: str
    conversation: ConversationStore
    artifacts: ArtifactStore
    output_path: Path

    def discard(self) -> None:
        self.conversation.discard()
        self.artifacts.discard()


# ---------------------------------------------------------------------------
# DocumentPipeline
# ---------------------------------------------------------------------------

class DocumentPipeline:
    def __init__(
        self,
        completion: Optional[CompletionClient] = None,
        renderer: Optional[Renderer] = None,
        work_dir: Optional[Path] = None,
        output_dir: Optional[Path] = None,
    ) -> None:
        self.completion = completion or CompletionClient()
        self.renderer = renderer or Renderer()
        self.work_dir = Path(work_dir or settings.WORK_DIR)
        self.output_dir = Path(output_dir or settings.OUTPUT_DIR)

    def create_context(self, job: GenerationJob) -> JobContext:
        key = session_key(job.user_id, job.topic)
        short_id = job.job_id[:8]
        directory = self.work_dir / f"{key}-{short_id}"
        directory.mkdir(parents=True, exist_ok=True)
        output_path = (
            self.output_dir
            / f"{job.profile.key}_{key}_{short_id}.{job.output_format.value}"
        )
        return JobContext(
            job=job,
            session_key=key,
            conversation=ConversationStore(
                job.profile.persona, path=directory / HISTORY_FILENAME
            ),
            artifacts=ArtifactStore(directory),
            output_path=output_path,
        )

    async def run(self, job: GenerationJob) -> Path:
        t0 = time.monotonic()
        ctx = self.create_context(job)
        status = job.status
        prompts = build_prompts(job.topic, job.profile)
        status.sections_total = len(prompts)

        writer = SectionWriter(
            self.completion, ctx.conversation, ctx.artifacts, job.topic, job.profile
        )

        logger.info(
            "Pipeline.run: job=%s profile=%s session=%s (%d prompts)",
            job.job_id,
            job.profile.key,
            ctx.session_key,
            len(prompts),
        )

        try:
            handles: List[ArtifactHandle] = []
            status.phase = JobPhase.GENERATING
            for prompt in prompts:
                job.token.raise_if_cancelled()
                status.current_section = prompt.name
                handles.append(await writer.write_section(prompt))
                status.sections_completed += 1

            job.token.raise_if_cancelled()
            status.phase = JobPhase.ASSEMBLING
            status.current_section = None
            combined = await ctx.artifacts.combine(handles)

            status.phase = JobPhase.RENDERING
            await self.renderer.render(
                combined, ctx.output_path, job.output_format, title=job.topic
            )
        except Exception as exc:
            logger.error("Pipeline.run: job=%s failed: %s", job.job_id, exc)
            if ctx.output_path.exists():
                ctx.output_path.unlink()
            raise
        finally:
            ctx.discard()

        logger.info(
            "Pipeline.run: job=%s finished in %.2fs → %s",
            job.job_id,
            time.monotonic() - t0,
            ctx.output_path,
        )
        return ctx.output_path
