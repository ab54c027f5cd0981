"""
Base Schema Models for the Bankr Gateway

This module defines the core data model shared by the agent client, the poll
orchestrator and the HTTP layer.

Core Classes:
    - GatewayModel: Pydantic base model with camelCase wire aliases
    - JobStatus: Lifecycle status of a downstream job
    - Job: Snapshot of a downstream job as observed by the gateway
    - PollConfig: Bounds for the poll-until-terminal loop

Dependencies:
    - pydantic: For data validation and serialization
"""

from typing import Any, Dict, List, Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class GatewayModel(BaseModel):
    """
    Pydantic base model for everything that crosses the wire.

    Field names are snake_case in Python and camelCase in JSON; both spellings
    are accepted on input.
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert model to its JSON-ready wire representation.

        Returns:
            Dict[str, Any]: Dictionary keyed by wire (camelCase) names.
        """
        return self.model_dump(mode="json", by_alias=True)


class JobStatus(str, Enum):
    """
    Enumeration of downstream job statuses.

    Attributes:
        PENDING: Accepted, not started
        PROCESSING: Agent is working on it
        COMPLETED: Finished with a response (terminal)
        FAILED: Finished with an error (terminal)
    """
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class Job(GatewayModel):
    """
    Snapshot of a downstream job.

    Jobs are created by the agent service on submission and only ever change
    there; the gateway observes them. A job is frozen once built, and once its
    status is terminal no later snapshot may differ.

    Attributes:
        job_id: Opaque job identifier
        status: Current job status
        response: Agent's answer, once completed
        transactions: On-chain transaction references produced by the job
        rich_data: Rich-content attachments (charts, token cards, ...)
        prompt: Prompt as echoed back by the agent service
        created_at: Creation timestamp reported downstream
        completed_at: Completion timestamp reported downstream
        processing_time: Processing time in milliseconds
        error: Downstream error message for failed jobs
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, frozen=True)

    job_id: str = Field(..., min_length=1, description="Opaque job identifier")
    status: JobStatus = Field(..., description="Current job status")
    response: Optional[str] = Field(None, description="Agent response text")
    transactions: List[Any] = Field(default_factory=list, description="On-chain transaction references")
    rich_data: List[Any] = Field(default_factory=list, description="Rich-content attachments")
    prompt: Optional[str] = Field(None, description="Echoed prompt")
    created_at: Optional[str] = Field(None, description="Creation timestamp")
    completed_at: Optional[str] = Field(None, description="Completion timestamp")
    processing_time: Optional[float] = Field(None, ge=0, description="Processing time (ms)")
    error: Optional[str] = Field(None, description="Downstream error for failed jobs")

    @property
    def is_terminal(self) -> bool:
        """True once the job can no longer change."""
        return self.status.is_terminal

    def to_dict(self) -> Dict[str, Any]:
        """
        Render the job for callers.

        ``jobId``, ``status``, ``response``, ``transactions`` and ``richData``
        are always present; the remaining downstream fields only when set.
        """
        data = super().to_dict()
        for key in ("prompt", "createdAt", "completedAt", "processingTime", "error"):
            if data.get(key) is None:
                data.pop(key, None)
        return data


class PromptHints(GatewayModel):
    """
    Optional routing hints forwarded with a prompt.

    Attributes:
        wallet_address: Wallet the agent should act for (defaults downstream to the API key's wallet)
        xmtp: Deliver the answer over the XMTP messaging channel as well
    """
    wallet_address: Optional[str] = Field(None, description="Wallet the agent acts for")
    xmtp: bool = Field(False, description="XMTP channel flag")


#: Default milliseconds between status checks.
DEFAULT_POLL_INTERVAL_MS = 2000

#: Default wall-clock deadline in milliseconds (5 minutes).
DEFAULT_POLL_TIMEOUT_MS = 300000


class PollConfig(GatewayModel):
    """
    Bounds for the poll-until-terminal loop, all in milliseconds.

    ``max_attempts`` and ``timeout`` are enforced independently and the loop
    stops at whichever is hit first. When ``max_attempts`` is omitted it is
    derived as ``timeout // interval`` (at least 1).

    Attributes:
        interval: Delay between status checks (1000..10000 ms)
        max_attempts: Hard cap on status checks (1..1000)
        timeout: Wall-clock deadline (1000..300000 ms)
    """

    model_config = ConfigDict(
        populate_by_name=True, alias_generator=to_camel, extra="forbid"
    )

    interval: int = Field(DEFAULT_POLL_INTERVAL_MS, ge=1000, le=10000, strict=True)
    max_attempts: Optional[int] = Field(None, ge=1, le=1000, strict=True)
    timeout: int = Field(DEFAULT_POLL_TIMEOUT_MS, ge=1000, le=300000, strict=True)

    @model_validator(mode="after")
    def _derive_max_attempts(self) -> "PollConfig":
        if self.max_attempts is None:
            self.max_attempts = max(1, self.timeout // self.interval)
        return self

    @property
    def interval_seconds(self) -> float:
        return self.interval / 1000

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000
