"""
Bankr Agent API Client

An ``httpx.AsyncClient`` extension speaking the agent service's job API:
submitting prompts and reading job status. Every failure is raised as a
``DownstreamError`` carrying the HTTP status, so callers classify on
structured data instead of message text.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from ..adapters.evm.constants import truncate_address
from ..engine.exceptions import DownstreamError
from ..schemas.bases import Job, PromptHints
from .bases import AgentClientBase

logger = logging.getLogger(__name__)

#: Public agent API.
DEFAULT_API_URL = "https://api.bankr.bot"


class AgentClient(httpx.AsyncClient, AgentClientBase):
    """
    Extended httpx.AsyncClient for the Bankr agent job API.

    Fully compatible with httpx.AsyncClient and usable as an async context
    manager. One instance is built at startup and shared by all requests;
    it holds no per-request state.

    Usage:
        ```python
        async with AgentClient(api_key="bk_...") as client:
            job = await client.submit_prompt("what's my balance")
            job = await client.get_job(job.job_id)
        ```
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        **kwargs
    ):
        """
        Initialize client.

        Args:
            api_key: Agent API key, sent as ``x-api-key``
            base_url: Agent API root
            timeout: Per-request timeout in seconds
            **kwargs: All standard httpx.AsyncClient arguments (transport, headers, etc.)
        """
        headers = {
            "x-api-key": api_key,
            "Content-Type": "application/json",
            **(kwargs.pop("headers", None) or {}),
        }
        super().__init__(base_url=base_url, timeout=timeout, headers=headers, **kwargs)

    # =========================================================================
    # Job API
    # =========================================================================

    async def submit_prompt(self, prompt: str, hints: Optional[PromptHints] = None) -> Job:
        hints = hints or PromptHints()
        body: Dict[str, Any] = {"prompt": prompt, "xmtp": hints.xmtp}
        if hints.wallet_address:
            body["walletAddress"] = hints.wallet_address

        logger.debug(
            "Submitting prompt: length=%d wallet=%s xmtp=%s",
            len(prompt), truncate_address(hints.wallet_address), hints.xmtp,
        )
        payload = await self._send("POST", "/agent/prompt", json=body)
        return self._parse_job(payload)

    async def get_job(self, job_id: str) -> Job:
        payload = await self._send("GET", f"/agent/job/{quote(job_id, safe='')}")
        return self._parse_job(payload)

    # =========================================================================
    # Transport
    # =========================================================================

    async def _send(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """
        Execute a request and return the decoded JSON body.

        Raises:
            DownstreamError: On transport failure, timeout, or non-2xx status.
        """
        try:
            response = await self.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise DownstreamError(f"Agent service request timed out: {e}", timed_out=True) from e
        except httpx.HTTPError as e:
            raise DownstreamError(f"Agent service unreachable: {e}") from e

        payload = self._decode(response)

        if response.is_error:
            raise DownstreamError(
                f"Agent service returned {response.status_code}: {self._error_message(response, payload)}",
                http_status=response.status_code,
                payload=payload or None,
            )
        return payload

    @staticmethod
    def _decode(response: httpx.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {"data": payload}

    @staticmethod
    def _error_message(response: httpx.Response, payload: Dict[str, Any]) -> str:
        error = payload.get("error")
        if isinstance(error, dict):
            error = error.get("message")
        return str(payload.get("message") or error or response.reason_phrase or "request failed")

    @staticmethod
    def _parse_job(payload: Dict[str, Any]) -> Job:
        try:
            return Job.model_validate(payload)
        except ValidationError as e:
            raise DownstreamError(f"Malformed job payload from agent service: {e}", payload=payload) from e
