"""
Built-in event handlers for the prompt workflow.

Implements the core flow: submit and poll → result or classified error, with
optional allowance remediation when the agent service reports 402.
"""

import logging

from ..engine.classifier import ErrorClassifier
from ..engine.events import (
    EventBus,
    Dependencies,
    PromptRequestEvent,
    JobCompletedEvent,
    RequestFailedEvent,
    PaymentRequiredEvent,
    AllowanceApprovedEvent,
    RemediationFailedEvent,
)
from ..engine.exceptions import ChainInteractionError, ErrorKind, GatewayError

logger = logging.getLogger(__name__)


# ==================== Event Handlers ====================

async def handle_prompt_request(
    event: PromptRequestEvent,
    deps: Dependencies
) -> JobCompletedEvent | PaymentRequiredEvent | RequestFailedEvent:
    """Submit the prompt and poll until the job is terminal."""
    request = event.request
    try:
        job = await deps.orchestrator.submit_and_await(
            request.prompt,
            request.hints(),
            request.poll_config(),
            event.is_disconnected,
        )
    except GatewayError as e:
        error = ErrorClassifier.to_error(e)
        logger.warning("Prompt failed: kind=%s message=%s", error.kind.value, error.message)
        if error.kind == ErrorKind.PAYMENT_REQUIRED:
            return PaymentRequiredEvent(error=error)
        return RequestFailedEvent(error=error)

    return JobCompletedEvent(job=job)


async def handle_payment_required(
    event: PaymentRequiredEvent,
    deps: Dependencies
) -> AllowanceApprovedEvent | RemediationFailedEvent | None:
    """Raise the facilitator allowance when it is below the configured threshold.

    Returns None when the allowance already covers the threshold: the 402 is
    then about the token balance, which an approval cannot fix.
    """
    gate = deps.allowance_gate
    try:
        state = await gate.allowance_state()
        if state.is_sufficient(deps.approval_threshold):
            logger.info("Allowance %s already covers threshold; not approving", state.allowance)
            return None

        tx_hash = await gate.approve(state.facilitator_address)

    except ChainInteractionError as e:
        logger.error("Allowance remediation failed: %s", e.message)
        return RemediationFailedEvent(error=event.error, reason=e.message)

    return AllowanceApprovedEvent(error=event.error, state=state, transaction_hash=tx_hash)


# ==================== Event Bus Setup ====================

def setup_event_bus(auto_approve: bool = False) -> EventBus:
    """Initialize event bus with built-in handlers.

    Args:
        auto_approve: If True, a 402 from the agent service triggers an approval
            of the facilitator when the allowance is below the threshold.
    """
    event_bus = EventBus()

    event_bus.subscribe(PromptRequestEvent, handle_prompt_request)

    if auto_approve:
        event_bus.subscribe(PaymentRequiredEvent, handle_payment_required)

    return event_bus
