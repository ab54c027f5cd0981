"""
Event-driven prompt workflow with typed events and clear data flow.

Events carry their own data, handlers return next events, and dependencies
(agent client, allowance gate, orchestrator) are injected separately from
business data so tests can substitute fakes.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict

from ..adapters.bases import AllowanceAdapter
from ..adapters.evm.constants import DEFAULT_APPROVAL_THRESHOLD
from ..adapters.evm.schemas import AllowanceState
from ..clients.bases import AgentClientBase
from ..schemas.bases import Job
from ..schemas.https import PromptRequest
from .exceptions import GatewayError, PaymentRequiredError
from .poller import DisconnectCheck, PollOrchestrator

# ==================== Base Event ====================

class BaseEvent(ABC):
    """Marker base of workflow events; concrete events are pydantic models."""

    @abstractmethod
    def __repr__(self) -> str:
        """Short summary for logs; must not include secrets or full prompts."""


# ==================== Trigger Events (External) ====================

class PromptRequestEvent(BaseModel, BaseEvent):
    """External trigger: a validated prompt request from a caller."""
    request: PromptRequest
    is_disconnected: Optional[DisconnectCheck] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __repr__(self) -> str:
        return f"PromptRequestEvent(prompt_length={len(self.request.prompt)})"


# ==================== Result Events ====================

class JobCompletedEvent(BaseModel, BaseEvent):
    """Result: the job reached a terminal status (completed or failed)."""
    job: Job

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __repr__(self) -> str:
        return f"JobCompletedEvent(job_id={self.job.job_id}, status={self.job.status.value})"


class RequestFailedEvent(BaseModel, BaseEvent):
    """Result: the request failed with a classified error."""
    error: GatewayError

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __repr__(self) -> str:
        return f"RequestFailedEvent(kind={self.error.kind.value})"


class PaymentRequiredEvent(BaseModel, BaseEvent):
    """Result: the agent service reported an unmet payment precondition."""
    error: PaymentRequiredError

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __repr__(self) -> str:
        return "PaymentRequiredEvent()"


class AllowanceApprovedEvent(BaseModel, BaseEvent):
    """Result: remediation submitted an approval; the caller should retry once it is mined."""
    error: PaymentRequiredError
    state: AllowanceState
    transaction_hash: str

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __repr__(self) -> str:
        return f"AllowanceApprovedEvent(tx={self.transaction_hash})"


class RemediationFailedEvent(BaseModel, BaseEvent):
    """Result: remediation could not read or raise the allowance."""
    error: PaymentRequiredError
    reason: str

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __repr__(self) -> str:
        return f"RemediationFailedEvent(reason={self.reason})"


# ==================== Dependencies Container ====================

@dataclass(frozen=True)
class Dependencies:
    """Long-lived collaborators shared read-only by every request."""
    agent_client: Optional[AgentClientBase] = None
    allowance_gate: Optional[AllowanceAdapter] = None
    orchestrator: Optional[PollOrchestrator] = None
    approval_threshold: int = DEFAULT_APPROVAL_THRESHOLD


# ==================== Event Bus ====================

EventHandlerFunc = Callable[[BaseEvent, Dependencies], Awaitable[Optional[BaseEvent]]]
EventHookFunc = Callable[[BaseEvent, Dependencies], Awaitable[None]]


class EventBus:
    """
    Routes workflow events to handlers (which may answer with a next event)
    and hooks (side effects only, e.g. metrics or operator alerts).

    One bus is built per server and shared by all requests; registration
    happens at startup, dispatch is read-only.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[type, list[EventHandlerFunc]] = {}
        self._hooks: Dict[type, list[EventHookFunc]] = {}

    @staticmethod
    def _require_coroutine(func: Callable, role: str) -> None:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"{role} must be a coroutine function, got {type(func).__name__}")

    def subscribe(self, event_class: type[BaseEvent], handler: EventHandlerFunc) -> None:
        """
        Route ``event_class`` to ``handler``.

        Args:
            event_class: Exact event type (subclasses are not matched).
            handler: ``async (event, deps) -> Optional[BaseEvent]``.

        Raises:
            TypeError: If handler is not a coroutine function.
        """
        self._require_coroutine(handler, "Handler")
        self._subscribers.setdefault(event_class, []).append(handler)

    def hook(self, event_class: type[BaseEvent], hook_func: EventHookFunc) -> None:
        """Attach a side-effect hook; hooks run before the handlers of the same event."""
        self._require_coroutine(hook_func, "Hook")
        self._hooks.setdefault(event_class, []).append(hook_func)

    def has_subscribers(self, event_class: type[BaseEvent]) -> bool:
        return bool(self._subscribers.get(event_class))

    async def dispatch(self, event: BaseEvent, deps: Dependencies) -> AsyncGenerator[Optional[BaseEvent], None]:
        """
        Run the hooks of ``event`` concurrently, then its handlers.

        Yields:
            Each handler's result in completion order; nothing for an event no
            handler is subscribed to (a terminal event).
        """
        await asyncio.gather(*(hook(event, deps) for hook in self._hooks.get(type(event), [])))

        pending = [handler(event, deps) for handler in self._subscribers.get(type(event), [])]
        for next_result in asyncio.as_completed(pending):
            yield await next_result
