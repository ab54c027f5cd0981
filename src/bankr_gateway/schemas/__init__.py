from .bases import GatewayModel, JobStatus, Job, PromptHints, PollConfig
from .https import (
    PromptRequest,
    ApprovalRequest,
    ErrorDetail,
    ErrorResponse,
    AllowanceResponse,
    ApprovalResponse,
    HealthResponse,
)

__all__ = [
    "GatewayModel",
    "JobStatus",
    "Job",
    "PromptHints",
    "PollConfig",
    "PromptRequest",
    "ApprovalRequest",
    "ErrorDetail",
    "ErrorResponse",
    "AllowanceResponse",
    "ApprovalResponse",
    "HealthResponse",
]
