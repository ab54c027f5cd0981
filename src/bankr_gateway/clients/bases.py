"""
Abstract Base Classes for agent-service clients

The poll orchestrator only depends on these two contracts, so the HTTP client
can be swapped for in-memory fakes in tests.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..schemas.bases import Job, PromptHints


class JobSubmitter(ABC):
    """Submits prompts to the agent service."""

    @abstractmethod
    async def submit_prompt(self, prompt: str, hints: Optional[PromptHints] = None) -> Job:
        """
        Submit a prompt and return the freshly created job.

        Args:
            prompt: Natural-language request
            hints: Optional wallet/channel hints

        Returns:
            Job: Job identifier with its initial status (may already be terminal).

        Raises:
            DownstreamError: If the agent service rejects or cannot be reached.
        """
        pass


class JobStatusFetcher(ABC):
    """Reads job status from the agent service."""

    @abstractmethod
    async def get_job(self, job_id: str) -> Job:
        """
        Fetch the current snapshot of a job.

        Args:
            job_id: Identifier returned on submission

        Returns:
            Job: Current status, with the result payload once terminal.

        Raises:
            DownstreamError: If the agent service rejects (404 for unknown jobs) or cannot be reached.
        """
        pass


class AgentClientBase(JobSubmitter, JobStatusFetcher):
    """Both halves of the agent-service contract, as held by the gateway."""

    async def aclose(self) -> None:
        """Release network resources; no-op by default."""
        return None
