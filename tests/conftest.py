"""
Shared fakes for the gateway test suite.

The gateway takes its collaborators by injection, so every test builds the
same in-memory stand-ins: an agent client replaying scripted job snapshots,
an allowance gate with a settable allowance, and a clock whose ``sleep``
advances time instantly.
"""

from typing import List, Optional, Union

import pytest

from bankr_gateway.adapters.bases import AllowanceAdapter
from bankr_gateway.adapters.evm.constants import FACILITATOR_ADDRESS, MAX_UINT256
from bankr_gateway.clients.bases import AgentClientBase
from bankr_gateway.schemas.bases import Job, JobStatus, PromptHints

MOCK_WALLET_ADDRESS = "0x1111111111111111111111111111111111111111"
MOCK_TOKEN_ADDRESS = "0x22aF33FE49fD1Fa80c7149773dDe5890D3c76F3b"
MOCK_TX_HASH = "0x" + "ab" * 32


def make_job(job_id: str = "job_1", status: str = "pending", **fields) -> Job:
    return Job(job_id=job_id, status=JobStatus(status), **fields)


class FakeAgentClient(AgentClientBase):
    """Agent client returning scripted results; exceptions in the script are raised."""

    def __init__(
        self,
        submit: Union[Job, BaseException, None] = None,
        statuses: Optional[List[Union[Job, BaseException]]] = None,
    ):
        self.submit_result = submit if submit is not None else make_job()
        self.statuses = list(statuses or [])
        self.submitted: List[tuple] = []
        self.polled: List[str] = []
        self.closed = False

    async def submit_prompt(self, prompt: str, hints: Optional[PromptHints] = None) -> Job:
        self.submitted.append((prompt, hints))
        if isinstance(self.submit_result, BaseException):
            raise self.submit_result
        return self.submit_result

    async def get_job(self, job_id: str) -> Job:
        self.polled.append(job_id)
        # Repeat the last snapshot once the script runs out
        result = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(result, BaseException):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed = True


class FakeAllowanceGate(AllowanceAdapter):
    """Allowance gate with an in-memory allowance; ``error`` makes every call fail."""

    def __init__(self, allowance: int = 0, error: Optional[BaseException] = None):
        self.wallet_address = MOCK_WALLET_ADDRESS
        self.token_address = MOCK_TOKEN_ADDRESS
        self.allowance = allowance
        self.error = error
        self.approvals: List[tuple] = []

    async def check_allowance(self, owner=None, facilitator=FACILITATOR_ADDRESS) -> int:
        if self.error is not None:
            raise self.error
        return self.allowance

    async def approve(self, facilitator=FACILITATOR_ADDRESS, amount=None) -> str:
        if self.error is not None:
            raise self.error
        self.approvals.append((facilitator, MAX_UINT256 if amount is None else amount))
        return MOCK_TX_HASH


class FakeClock:
    """Monotonic clock in seconds; ``sleep`` advances it without waiting."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def allowance_gate():
    return FakeAllowanceGate()
