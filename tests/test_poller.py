"""
Test suite for PollOrchestrator.
Tests: 1) Terminal detection 2) Attempt and deadline bounds 3) Error propagation 4) Cancellation
"""
import asyncio

import pytest

from conftest import FakeAgentClient, make_job
from bankr_gateway.engine.exceptions import (
    DownstreamError,
    JobNotFoundError,
    JobTimeoutError,
    PaymentRequiredError,
    PollCancelledError,
)
from bankr_gateway.engine.poller import PollOrchestrator
from bankr_gateway.schemas.bases import JobStatus, PollConfig, PromptHints


def make_orchestrator(client, clock):
    return PollOrchestrator(client, client, clock=clock, sleep=clock.sleep)


@pytest.mark.asyncio
async def test_pending_processing_completed(clock):
    """Scenario: job_1 goes pending -> processing -> completed."""
    client = FakeAgentClient(
        submit=make_job("job_1", "pending"),
        statuses=[
            make_job("job_1", "processing"),
            make_job("job_1", "completed", response="Your balance is 42 BNKR"),
        ],
    )
    orchestrator = make_orchestrator(client, clock)

    job = await orchestrator.submit_and_await("what's my balance")

    assert job.status == JobStatus.COMPLETED
    assert job.to_dict() == {
        "jobId": "job_1",
        "status": "completed",
        "response": "Your balance is 42 BNKR",
        "transactions": [],
        "richData": [],
    }
    assert client.polled == ["job_1", "job_1"]
    assert clock.sleeps == [2.0, 2.0]


@pytest.mark.asyncio
async def test_hints_forwarded_and_submitted_once(clock):
    client = FakeAgentClient(statuses=[make_job("job_1", "failed", error="reverted")])
    hints = PromptHints(wallet_address="0x1111111111111111111111111111111111111111", xmtp=True)

    job = await make_orchestrator(client, clock).submit_and_await("swap", hints)

    assert job.status == JobStatus.FAILED
    assert client.submitted == [("swap", hints)]


@pytest.mark.asyncio
async def test_terminal_on_submission_skips_polling(clock):
    client = FakeAgentClient(submit=make_job("job_1", "completed", response="done"))

    job = await make_orchestrator(client, clock).submit_and_await("hi")

    assert job.response == "done"
    assert client.polled == []
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_no_status_check_after_terminal(clock):
    client = FakeAgentClient(statuses=[
        make_job("job_1", "completed"),
        make_job("job_1", "pending"),
    ])

    await make_orchestrator(client, clock).submit_and_await("hi")

    assert client.polled == ["job_1"]


@pytest.mark.asyncio
async def test_max_attempts_one_times_out(clock):
    """Scenario: maxAttempts=1, interval=1000, job never terminal."""
    client = FakeAgentClient(statuses=[make_job("job_1", "processing")])
    config = PollConfig(interval=1000, max_attempts=1)

    with pytest.raises(JobTimeoutError) as exc_info:
        await make_orchestrator(client, clock).submit_and_await("hi", config=config)

    error = exc_info.value
    assert error.status_code == 408
    assert error.attempts == 1
    assert error.job_id == "job_1"
    assert error.details == {"jobId": "job_1", "attempts": 1}
    assert len(client.polled) == 1


@pytest.mark.asyncio
async def test_never_more_than_max_attempts(clock):
    client = FakeAgentClient(statuses=[make_job("job_1", "pending")])
    config = PollConfig(interval=1000, max_attempts=5, timeout=300000)

    with pytest.raises(JobTimeoutError):
        await make_orchestrator(client, clock).submit_and_await("hi", config=config)

    assert len(client.polled) == 5


@pytest.mark.asyncio
async def test_deadline_bounds_polling(clock):
    # Deadline is the tighter bound: 5s fits two checks at a 2s interval
    client = FakeAgentClient(statuses=[make_job("job_1", "pending")])
    config = PollConfig(interval=2000, max_attempts=1000, timeout=5000)
    started = clock.now

    with pytest.raises(JobTimeoutError):
        await make_orchestrator(client, clock).submit_and_await("hi", config=config)

    assert len(client.polled) == 2
    assert clock.sleeps == [2.0, 2.0, 1.0]
    assert clock.now - started <= config.timeout_seconds + config.interval_seconds


def test_max_attempts_derived_from_timeout():
    assert PollConfig().max_attempts == 150
    assert PollConfig(interval=10000, timeout=5000).max_attempts == 1


@pytest.mark.asyncio
async def test_submission_error_is_classified_and_not_retried(clock):
    client = FakeAgentClient(submit=DownstreamError("Agent service returned 402", http_status=402))

    with pytest.raises(PaymentRequiredError):
        await make_orchestrator(client, clock).submit_and_await("hi")

    assert len(client.submitted) == 1
    assert client.polled == []


@pytest.mark.asyncio
async def test_poll_error_aborts(clock):
    client = FakeAgentClient(statuses=[
        make_job("job_1", "processing"),
        DownstreamError("Agent service returned 404", http_status=404),
    ])

    with pytest.raises(JobNotFoundError):
        await make_orchestrator(client, clock).submit_and_await("hi")

    assert client.polled == ["job_1", "job_1"]


@pytest.mark.asyncio
async def test_slow_status_call_cut_at_deadline():
    """A hanging downstream call must not outlive the deadline."""

    class HangingClient(FakeAgentClient):
        async def get_job(self, job_id):
            self.polled.append(job_id)
            await asyncio.sleep(60)

    client = HangingClient()
    orchestrator = PollOrchestrator(client, client)
    config = PollConfig(interval=1000, timeout=1500)

    loop = asyncio.get_running_loop()
    started = loop.time()
    with pytest.raises(JobTimeoutError):
        await orchestrator.submit_and_await("hi", config=config)

    assert loop.time() - started < 2.5
    assert client.polled == ["job_1"]


@pytest.mark.asyncio
async def test_disconnect_stops_polling(clock):
    client = FakeAgentClient(statuses=[make_job("job_1", "pending")])
    checks = []

    async def is_disconnected():
        checks.append(True)
        return len(checks) >= 3

    with pytest.raises(PollCancelledError):
        await make_orchestrator(client, clock).submit_and_await("hi", is_disconnected=is_disconnected)

    assert len(client.polled) == 2


@pytest.mark.asyncio
async def test_task_cancellation_propagates():
    client = FakeAgentClient(statuses=[make_job("job_1", "pending")])
    orchestrator = PollOrchestrator(client, client)

    task = asyncio.create_task(orchestrator.submit_and_await("hi"))
    await asyncio.sleep(0.05)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert client.polled == []
