"""
In-process FIFO queue that runs document generation jobs one at a time.

Usage
-----
    queue = GenerationQueue(pipeline.run)
    future = queue.enqueue(job)
    output_path = await future
    # ... from another request ...
    queue.statuses_for(user_id)
    queue.cancel_user(user_id)
"""
from __future__ import annotations

import asyncio
import collections
import dataclasses
import enum
import logging
import time
import uuid
from pathlib import Path
from typing import Awaitable, Callable, Deque, Dict, List, Optional

from app.models.database_models import DocumentFormat
from app.services.errors import GenerationCancelledError
from app.services.profiles import GenerationProfile
from app.utils.helpers import truncate_text

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Job phase enum
# ---------------------------------------------------------------------------

class JobPhase(str, enum.Enum):
    QUEUED = "queued"
    GENERATING = "generating"
    ASSEMBLING = "assembling"
    RENDERING = "rendering"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


FINISHED_PHASES = (JobPhase.COMPLETED, JobPhase.FAILED, JobPhase.CANCELLED)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

class CancellationToken:
    """Cooperative cancellation flag, checked by the pipeline between sections."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise GenerationCancelledError("Generation cancelled by user")


# ---------------------------------------------------------------------------
# Job status (mutable dataclass shared between worker and poller)
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class JobStatus:
    job_id: str
    user_id: str
    topic: str
    profile: str
    output_format: str
    phase: JobPhase = JobPhase.QUEUED
    sections_total: int = 0
    sections_completed: int = 0
    current_section: Optional[str] = None
    error: Optional[str] = None
    queued_at: float = dataclasses.field(default_factory=time.monotonic)
    started_at: Optional[float] = None
    completed_at: Optional[float] = None

    @property
    def elapsed_seconds(self) -> float:
        start = self.started_at if self.started_at else self.queued_at
        end = self.completed_at if self.completed_at else time.monotonic()
        return round(end - start, 2)

    @property
    def finished(self) -> bool:
        return self.phase in FINISHED_PHASES


JobHook = Callable[["GenerationJob"], Awaitable[None]]


@dataclasses.dataclass
class GenerationJob:
    topic: str
    user_id: str
    profile: GenerationProfile
    output_format: DocumentFormat
    job_id: str = dataclasses.field(default_factory=lambda: uuid.uuid4().hex)
    token: CancellationToken = dataclasses.field(default_factory=CancellationToken)
    # Awaited by the worker right before the job runs.
    on_start: Optional[JobHook] = None
    # Awaited once the caller has gone away; any output is already deleted.
    on_abandoned: Optional[JobHook] = None
    status: JobStatus = dataclasses.field(init=False)

    def __post_init__(self) -> None:
        self.status = JobStatus(
            job_id=self.job_id,
            user_id=self.user_id,
            topic=self.topic,
            profile=self.profile.key,
            output_format=self.output_format.value,
            sections_total=self.profile.prompt_count,
        )


JobRunner = Callable[[GenerationJob], Awaitable[Path]]


# ---------------------------------------------------------------------------
# Generation queue
# ---------------------------------------------------------------------------

class GenerationQueue:
    """FIFO job queue with exactly one worker task, started lazily."""

    def __init__(self, runner: JobRunner, max_tracked: int = 200) -> None:
        self._runner = runner
        self._max_tracked = max_tracked
        self._pending: Deque[tuple[GenerationJob, asyncio.Future]] = collections.deque()
        self._jobs: "collections.OrderedDict[str, GenerationJob]" = collections.OrderedDict()
        self._wakeup = asyncio.Event()
        self._worker: Optional[asyncio.Task] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def enqueue(self, job: GenerationJob) -> "asyncio.Future[Path]":
        """Add *job* to the tail of the queue; the future resolves to the output path."""
        if self._closed:
            raise RuntimeError("Generation queue is closed")

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending.append((job, future))
        self._track(job)
        self._wakeup.set()

        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._drain())

        logger.info(
            "Queued job %s (%s) for user %s, position %d",
            job.job_id,
            job.profile.key,
            job.user_id,
            len(self._pending),
        )
        return future

    def _track(self, job: GenerationJob) -> None:
        self._jobs[job.job_id] = job
        # Drop the oldest finished jobs once the history is full.
        while len(self._jobs) > self._max_tracked:
            oldest_id = next(
                (jid for jid, j in self._jobs.items() if j.status.finished), None
            )
            if oldest_id is None:
                break
            self._jobs.pop(oldest_id)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    async def _drain(self) -> None:
        while not self._closed:
            if not self._pending:
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            job, future = self._pending.popleft()
            if future.cancelled():
                job.status.phase = JobPhase.CANCELLED
                job.status.completed_at = time.monotonic()
                logger.info("Skipping job %s: caller went away", job.job_id)
                await self._abandon(job)
                continue

            await self._run_one(job, future)

    async def _run_one(self, job: GenerationJob, future: asyncio.Future) -> None:
        status = job.status
        status.started_at = time.monotonic()
        status.phase = JobPhase.GENERATING
        logger.info("Job %s started (%s, topic=%r)", job.job_id, job.profile.key, job.topic)

        try:
            if job.on_start is not None:
                await job.on_start(job)
            output = await self._runner(job)
        except asyncio.CancelledError:
            # Worker cancelled by close() in the middle of the job.
            status.phase = JobPhase.CANCELLED
            status.error = "Generation queue closed"
            future.cancel()
            raise
        except GenerationCancelledError as exc:
            status.phase = JobPhase.CANCELLED
            status.error = str(exc)
            logger.info("Job %s cancelled", job.job_id)
            if not future.done():
                future.set_exception(exc)
        except Exception as exc:
            status.phase = JobPhase.FAILED
            status.error = truncate_text(str(exc), 300)
            logger.error("Job %s failed: %s", job.job_id, exc, exc_info=True)
            if not future.done():
                future.set_exception(exc)
        else:
            if future.cancelled():
                output.unlink(missing_ok=True)
                status.phase = JobPhase.CANCELLED
                status.error = "Caller went away"
                logger.info("Job %s finished after its caller left; output removed", job.job_id)
            else:
                status.phase = JobPhase.COMPLETED
                logger.info("Job %s completed in %.2fs", job.job_id, status.elapsed_seconds)
                future.set_result(output)
        finally:
            status.completed_at = time.monotonic()

        if future.cancelled():
            await self._abandon(job)

    async def _abandon(self, job: GenerationJob) -> None:
        if job.on_abandoned is None:
            return
        try:
            await job.on_abandoned(job)
        except Exception as exc:
            logger.error("Abandon hook for job %s failed: %s", job.job_id, exc, exc_info=True)

    # ------------------------------------------------------------------
    # Introspection & control
    # ------------------------------------------------------------------

    @property
    def queued_count(self) -> int:
        return len(self._pending)

    def queue_position(self, job_id: str) -> Optional[int]:
        for position, (job, _future) in enumerate(self._pending, start=1):
            if job.job_id == job_id:
                return position
        return None

    def statuses_for(self, user_id: str) -> List[JobStatus]:
        return [j.status for j in self._jobs.values() if j.user_id == user_id]

    def cancel_user(self, user_id: str) -> int:
        """Set the cancellation token of every unfinished job of *user_id*."""
        count = 0
        for job in self._jobs.values():
            if job.user_id == user_id and not job.status.finished and not job.token.cancelled:
                job.token.cancel()
                count += 1
        if count:
            logger.info("Cancellation requested for %d job(s) of user %s", count, user_id)
        return count

    async def close(self) -> None:
        self._closed = True
        self._wakeup.set()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        while self._pending:
            _job, future = self._pending.popleft()
            if not future.done():
                future.cancel()
        logger.info("Generation queue closed")
