"""
Runs a workflow as a chain of events.

Each handler answers an event with the next one (or None); the chain follows
those answers depth first until nothing is left to dispatch.
"""

import logging
from typing import AsyncGenerator

from .events import BaseEvent, EventBus, Dependencies

logger = logging.getLogger(__name__)


class EventChain:
    """One workflow run over a shared ``EventBus``.

    The chain runs inside the caller's task: when the consumer stops iterating
    or its task is cancelled (caller disconnect), in-flight handlers are
    cancelled with it and no further downstream calls are made.
    """

    def __init__(self, event_bus: EventBus, deps: Dependencies) -> None:
        self.event_bus = event_bus
        self.deps = deps

    async def execute(self, initial_event: BaseEvent) -> AsyncGenerator[BaseEvent, None]:
        """
        Follow the chain from ``initial_event``.

        Yields:
            Every event produced along the chain, depth first. The initial
            event itself is not yielded.

        Raises:
            TypeError: If a handler answers with something that is not an event.
        """
        async for produced in self._follow(initial_event):
            yield produced

    async def run(self, initial_event: BaseEvent) -> BaseEvent:
        """
        Drive the chain to its end.

        Returns:
            The last event produced, or ``initial_event`` when no handler answered.
        """
        final = initial_event
        async for produced in self.execute(initial_event):
            final = produced
        logger.debug("Chain %r ended with %r", initial_event, final)
        return final

    async def _follow(self, event: BaseEvent) -> AsyncGenerator[BaseEvent, None]:
        async for answer in self.event_bus.dispatch(event, self.deps):
            if answer is None:
                continue
            if not isinstance(answer, BaseEvent):
                raise TypeError(f"Handler for {type(event).__name__} returned {type(answer).__name__}, not an event")
            yield answer
            async for produced in self._follow(answer):
                yield produced
