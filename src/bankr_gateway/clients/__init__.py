"""
Client module for the Bankr agent service.

Provides the job submission / status contracts and their httpx implementation.
"""

from .bases import JobSubmitter, JobStatusFetcher, AgentClientBase
from .http_client import AgentClient, DEFAULT_API_URL

__all__ = [
    "JobSubmitter",
    "JobStatusFetcher",
    "AgentClientBase",
    "AgentClient",
    "DEFAULT_API_URL",
]
