"""
Poll-until-terminal orchestration.

Turns the agent service's fire-and-forget job submission into a single
awaitable call bounded by an attempt cap and a wall-clock deadline.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, TypeVar

from ..clients.bases import JobStatusFetcher, JobSubmitter
from ..schemas.bases import Job, PollConfig, PromptHints
from .classifier import classified_errors
from .exceptions import JobTimeoutError, PollCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Async predicate reporting whether the caller has gone away.
DisconnectCheck = Callable[[], Awaitable[bool]]


class PollOrchestrator:
    """
    Drive one submission and its status checks to a terminal job.

    Guarantees, per call:
        - the prompt is submitted exactly once, never resubmitted
        - at most ``config.max_attempts`` status checks
        - no status check after a terminal status was seen
        - every downstream call is cut off at the deadline, so a timed-out
          call returns within ``config.timeout`` plus at most one interval
        - polling stops once the caller disconnects

    Instances hold no per-request state and may be shared across requests.

    Example:
        orchestrator = PollOrchestrator(client, client)
        job = await orchestrator.submit_and_await("what's my balance")
    """

    def __init__(
        self,
        submitter: JobSubmitter,
        fetcher: JobStatusFetcher,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            submitter: Sends prompts downstream
            fetcher: Reads job status downstream
            clock: Monotonic clock in seconds
            sleep: Cancelable suspend used between status checks
        """
        self._submitter = submitter
        self._fetcher = fetcher
        self._clock = clock
        self._sleep = sleep

    async def submit_and_await(
        self,
        prompt: str,
        hints: Optional[PromptHints] = None,
        config: Optional[PollConfig] = None,
        is_disconnected: Optional[DisconnectCheck] = None,
    ) -> Job:
        """
        Submit a prompt and wait for the job to finish.

        Args:
            prompt: Natural-language request
            hints: Optional wallet/channel hints
            config: Poll bounds; defaults to ``PollConfig()``
            is_disconnected: Checked before every status check; polling stops once it returns True

        Returns:
            Job: The job in a terminal status (completed or failed).

        Raises:
            JobTimeoutError: Attempts or deadline exhausted before a terminal status.
            PollCancelledError: The caller disconnected.
            GatewayError: Submission or a status check failed (already classified).
        """
        config = config or PollConfig()
        started = self._clock()
        deadline = started + config.timeout_seconds

        job = await self._call(
            lambda: self._submitter.submit_prompt(prompt, hints), deadline, None, 0
        )
        logger.info("Job submitted: job_id=%s status=%s", job.job_id, job.status.value)
        if job.is_terminal:
            return job

        job_id = job.job_id
        attempts = 0
        while attempts < config.max_attempts:
            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            await self._sleep(min(config.interval_seconds, remaining))

            if is_disconnected is not None and await is_disconnected():
                logger.info("Caller disconnected, polling stopped: job_id=%s attempts=%d", job_id, attempts)
                raise PollCancelledError(f"Caller disconnected while waiting for job {job_id}")

            attempts += 1
            job = await self._call(lambda: self._fetcher.get_job(job_id), deadline, job_id, attempts)
            logger.debug("Job polled: job_id=%s attempt=%d status=%s", job_id, attempts, job.status.value)

            if job.is_terminal:
                logger.info(
                    "Job finished: job_id=%s status=%s attempts=%d elapsed=%.2fs",
                    job_id, job.status.value, attempts, self._clock() - started,
                )
                return job

        logger.warning("Job still %s after %d status checks: job_id=%s", job.status.value, attempts, job_id)
        raise self._timeout(job_id, attempts, config)

    async def _call(
        self,
        factory: Callable[[], Awaitable[T]],
        deadline: float,
        job_id: Optional[str],
        attempts: int,
    ) -> T:
        """Run one downstream call, cut off at ``deadline`` and classified on failure."""
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise self._timeout(job_id, attempts)

        with classified_errors():
            try:
                return await asyncio.wait_for(factory(), timeout=remaining)
            except asyncio.TimeoutError as e:
                raise self._timeout(job_id, attempts) from e

    @staticmethod
    def _timeout(job_id: Optional[str], attempts: int, config: Optional[PollConfig] = None) -> JobTimeoutError:
        if config is not None and attempts >= config.max_attempts:
            reason = f"after {attempts} status checks"
        else:
            reason = "before the deadline"
        target = f"Job {job_id}" if job_id else "Prompt submission"
        return JobTimeoutError(
            f"{target} did not reach a terminal status {reason}",
            details={"jobId": job_id, "attempts": attempts},
            job_id=job_id,
            attempts=attempts,
        )
