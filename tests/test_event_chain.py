"""
Test suite for EventBus and EventChain.
Tests: 1) Chain order and final event 2) Hooks 3) Handler contract checks
"""
import pytest

from conftest import FakeAgentClient, make_job
from bankr_gateway.engine.events import (
    EventBus,
    Dependencies,
    PromptRequestEvent,
    JobCompletedEvent,
    RequestFailedEvent,
)
from bankr_gateway.engine.exceptions import InternalError
from bankr_gateway.engine.executors import EventChain
from bankr_gateway.schemas.https import PromptRequest


def prompt_event(text: str = "what's my balance") -> PromptRequestEvent:
    return PromptRequestEvent(request=PromptRequest(prompt=text))


async def handle_prompt(event: PromptRequestEvent, deps: Dependencies):
    job = await deps.agent_client.submit_prompt(event.request.prompt)
    return JobCompletedEvent(job=job)


async def handle_completed(event: JobCompletedEvent, deps: Dependencies):
    if event.job.response is None:
        return RequestFailedEvent(error=InternalError("empty response"))
    return None


@pytest.fixture
def deps():
    return Dependencies(agent_client=FakeAgentClient(submit=make_job("job_1", "completed", response="42")))


@pytest.mark.asyncio
async def test_chain_yields_events_in_order(deps):
    event_bus = EventBus()
    event_bus.subscribe(PromptRequestEvent, handle_prompt)
    event_bus.subscribe(JobCompletedEvent, handle_completed)

    events = [e async for e in EventChain(event_bus, deps).execute(prompt_event())]

    assert [type(e) for e in events] == [JobCompletedEvent]
    assert events[0].job.response == "42"


@pytest.mark.asyncio
async def test_run_returns_last_event():
    deps = Dependencies(agent_client=FakeAgentClient(submit=make_job("job_1", "completed")))
    event_bus = EventBus()
    event_bus.subscribe(PromptRequestEvent, handle_prompt)
    event_bus.subscribe(JobCompletedEvent, handle_completed)

    final = await EventChain(event_bus, deps).run(prompt_event())

    assert isinstance(final, RequestFailedEvent)
    assert final.error.message == "empty response"


@pytest.mark.asyncio
async def test_run_without_subscribers_returns_initial_event(deps):
    initial = prompt_event()
    final = await EventChain(EventBus(), deps).run(initial)
    assert final is initial


@pytest.mark.asyncio
async def test_hooks_run_for_every_dispatched_event(deps):
    seen = []

    async def record(event, deps):
        seen.append(type(event).__name__)

    event_bus = EventBus()
    event_bus.subscribe(PromptRequestEvent, handle_prompt)
    event_bus.hook(PromptRequestEvent, record)
    event_bus.hook(JobCompletedEvent, record)

    await EventChain(event_bus, deps).run(prompt_event())

    assert seen == ["PromptRequestEvent", "JobCompletedEvent"]


def test_sync_handlers_rejected():
    event_bus = EventBus()

    def not_async(event, deps):
        return None

    with pytest.raises(TypeError):
        event_bus.subscribe(PromptRequestEvent, not_async)
    with pytest.raises(TypeError):
        event_bus.hook(PromptRequestEvent, not_async)
    assert not event_bus.has_subscribers(PromptRequestEvent)


@pytest.mark.asyncio
async def test_handler_returning_non_event_raises(deps):
    async def bad_handler(event, deps):
        return {"not": "an event"}

    event_bus = EventBus()
    event_bus.subscribe(PromptRequestEvent, bad_handler)

    with pytest.raises(TypeError):
        await EventChain(event_bus, deps).run(prompt_event())
