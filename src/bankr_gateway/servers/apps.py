"""
Bankr Agent Gateway Server - Event-driven FastAPI wrapper.

Exposes the agent service's job API as a request/response contract: a prompt
goes in, the terminal job (or one classified error) comes out.
"""

import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Callable, Optional, Type, TypeVar

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Receive, Scope, Send

from ..adapters.bases import AllowanceAdapter
from ..adapters.evm.allowance import AllowanceGate
from ..adapters.evm.constants import DEFAULT_APPROVAL_THRESHOLD, FACILITATOR_ADDRESS, MAX_UINT256
from ..clients.bases import AgentClientBase
from ..clients.http_client import AgentClient
from ..config import GatewaySettings
from ..engine.classifier import ErrorClassifier, classified_errors
from ..engine.events import (
    EventBus,
    Dependencies,
    BaseEvent,
    PromptRequestEvent,
    JobCompletedEvent,
    RequestFailedEvent,
    PaymentRequiredEvent,
    AllowanceApprovedEvent,
    RemediationFailedEvent,
)
from ..engine.exceptions import (
    ErrorKind,
    GatewayError,
    InternalError,
    InvalidRequestError,
    JobNotFoundError,
    PaymentRequiredError,
)
from ..engine.executors import EventChain
from ..engine.poller import PollOrchestrator
from ..schemas.https import (
    AllowanceResponse,
    ApprovalRequest,
    ApprovalResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    PromptRequest,
)
from .flows import setup_event_bus
from .security import PROXY_TOKEN_HEADER, verify_proxy_token

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

MAX_JOB_ID_LENGTH = 100

_STATUS_KINDS = {
    400: ErrorKind.VALIDATION_ERROR,
    401: ErrorKind.UNAUTHORIZED,
    402: ErrorKind.PAYMENT_REQUIRED,
    404: ErrorKind.NOT_FOUND,
    405: ErrorKind.NOT_FOUND,
    408: ErrorKind.TIMEOUT,
    422: ErrorKind.VALIDATION_ERROR,
    429: ErrorKind.RATE_LIMITED,
}


def error_response(error: GatewayError) -> JSONResponse:
    """Render a classified error into the shared envelope."""
    body = ErrorResponse(
        error=ErrorDetail(code=error.kind, message=error.message, details=error.details)
    )
    return JSONResponse(status_code=error.status_code, content=body.to_dict())


class RequestLogMiddleware:
    """
    Log one line per incoming HTTP request.

    Plain ASGI middleware: ``receive`` is passed through untouched, so handlers
    still observe ``http.disconnect`` from the caller.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            client = scope.get("client")
            logger.info("%s %s from %s", scope["method"], scope["path"], client[0] if client else "-")
        await self.app(scope, receive, send)


class GatewayServer(FastAPI):
    """FastAPI server fronting the Bankr agent job API."""

    def __init__(
        self,
        agent_client: AgentClientBase,
        allowance_gate: AllowanceAdapter,
        proxy_token: Optional[str] = None,
        auto_approve: bool = False,
        approval_threshold: int = DEFAULT_APPROVAL_THRESHOLD,
        api_prefix: str = "/api",
        expose_errors: bool = False,
        orchestrator: Optional[PollOrchestrator] = None,
        **fastapi_kwargs
    ):
        """Initialize the gateway.

        Args:
            agent_client: Agent API client (submits prompts and reads job status)
            allowance_gate: Token allowance adapter of the gateway wallet
            proxy_token: Shared secret required in ``x-proxy-token`` (None disables the check)
            auto_approve: Approve the facilitator when a prompt fails with 402 (default: False)
            approval_threshold: Allowance below which auto-approval fires (default: 1)
            api_prefix: Path prefix of every route (default: /api)
            expose_errors: Include unexpected error messages in 500 responses (default: False)
            orchestrator: Poll orchestrator (default: one built on ``agent_client``)
            **fastapi_kwargs: FastAPI arguments (title, version, lifespan, etc.)
        """
        # Setup dependencies and event bus before FastAPI init
        self.depends = Dependencies(
            agent_client=agent_client,
            allowance_gate=allowance_gate,
            orchestrator=orchestrator or PollOrchestrator(agent_client, agent_client),
            approval_threshold=approval_threshold,
        )
        self.event_bus: EventBus = setup_event_bus(auto_approve=auto_approve)

        super().__init__(**fastapi_kwargs)

        self.proxy_token = proxy_token
        self.api_prefix = "/" + api_prefix.strip("/") if api_prefix.strip("/") else ""
        self.expose_errors = expose_errors
        self.started_at = time.monotonic()

        self._setup_exception_handlers()
        self._setup_middleware()
        self._setup_routes()

    # =========================================================================
    # Event hooks
    # =========================================================================

    def add_hook(self, event_class: type[BaseEvent], hook: Callable) -> None:
        """Register event hook for side effects.

        Args:
            event_class: Event type to hook into
            hook: Async function(event, deps) -> None

        Example:
            ```python
            async def log_event(event, deps):
                print(f"Event: {event}")

            app.add_hook(JobCompletedEvent, log_event)
            ```
        """
        self.event_bus.hook(event_class, hook)

    def hook(self, event_class: type[BaseEvent]) -> Callable:
        """Decorator for registering event hooks.

        Args:
            event_class: Event type to hook into

        Example:
            @app.hook(AllowanceApprovedEvent)
            async def on_approval(event, deps):
                await notify_operator(event.transaction_hash)
        """
        def decorator(hook_func: Callable) -> Callable:
            self.event_bus.hook(event_class, hook_func)
            return hook_func
        return decorator

    # =========================================================================
    # Error rendering
    # =========================================================================

    def _setup_exception_handlers(self) -> None:
        @self.exception_handler(GatewayError)
        async def gateway_error_handler(request: Request, exc: GatewayError):
            return error_response(exc)

        @self.exception_handler(StarletteHTTPException)
        async def http_error_handler(request: Request, exc: StarletteHTTPException):
            kind = _STATUS_KINDS.get(exc.status_code, ErrorKind.INTERNAL)
            if kind == ErrorKind.NOT_FOUND:
                return error_response(JobNotFoundError(
                    "Endpoint not found",
                    details=f"The requested endpoint {request.method} {request.url.path} does not exist",
                ))
            return error_response(ErrorClassifier.ERROR_TYPES[kind](str(exc.detail)))

        @self.exception_handler(RequestValidationError)
        async def validation_error_handler(request: Request, exc: RequestValidationError):
            return error_response(InvalidRequestError("Invalid request data", details=_jsonable(exc.errors())))

        @self.exception_handler(Exception)
        async def unexpected_error_handler(request: Request, exc: Exception):
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            message = str(exc) if self.expose_errors else "An unexpected error occurred"
            return error_response(InternalError(message))

    # =========================================================================
    # Middleware and access control
    # =========================================================================

    def _setup_middleware(self) -> None:
        self.add_middleware(RequestLogMiddleware)

    async def require_proxy_token(self, request: Request) -> None:
        """Route dependency enforcing ``x-proxy-token``; runs before the body is read."""
        try:
            verify_proxy_token(
                provided=request.headers.get(PROXY_TOKEN_HEADER),
                expected=self.proxy_token,
            )
        except GatewayError as e:
            logger.warning("Rejected %s %s: %s", request.method, request.url.path, e.message)
            raise

    # =========================================================================
    # Routes
    # =========================================================================

    def _setup_routes(self) -> None:
        prefix = self.api_prefix
        gated = [Depends(self.require_proxy_token)]

        @self.post(f"{prefix}/prompt", dependencies=gated)
        async def prompt(request: Request):
            """Submit a prompt and wait for the job to finish."""
            prompt_request = await self._read_model(request, PromptRequest)
            event_chain = EventChain(self.event_bus, self.depends)
            final_event = await event_chain.run(
                PromptRequestEvent(request=prompt_request, is_disconnected=request.is_disconnected)
            )
            return self._render_prompt_result(final_event)

        @self.post(f"{prefix}/prompt/submit", dependencies=gated)
        async def submit_prompt(request: Request):
            """Submit a prompt and return the job without waiting."""
            prompt_request = await self._read_model(request, PromptRequest)
            with classified_errors():
                job = await self.depends.agent_client.submit_prompt(
                    prompt_request.prompt, prompt_request.hints()
                )
            return JSONResponse(status_code=202, content=job.to_dict())

        @self.get(f"{prefix}/job/{{job_id}}", dependencies=gated)
        async def get_job(job_id: str):
            """Read the current status of a job."""
            if not job_id or len(job_id) > MAX_JOB_ID_LENGTH:
                raise InvalidRequestError(f"jobId must be 1 to {MAX_JOB_ID_LENGTH} characters")
            with classified_errors():
                job = await self.depends.agent_client.get_job(job_id)
            return JSONResponse(status_code=200, content=job.to_dict())

        @self.get(f"{prefix}/allowance", dependencies=gated)
        async def get_allowance():
            """Report the gateway wallet's allowance to the facilitator."""
            state = await self.depends.allowance_gate.allowance_state()
            body = AllowanceResponse(
                allowance=str(state.allowance),
                facilitator_address=state.facilitator_address,
                owner_address=state.owner_address,
                token_address=state.token_address,
            )
            return JSONResponse(status_code=200, content=body.to_dict())

        @self.post(f"{prefix}/approve", dependencies=gated)
        async def approve(request: Request):
            """Approve the facilitator to spend the payment token."""
            approval = await self._read_model(request, ApprovalRequest)
            amount = approval.value if approval.value is not None else MAX_UINT256
            tx_hash = await self.depends.allowance_gate.approve(FACILITATOR_ADDRESS, amount)
            body = ApprovalResponse(transaction_hash=tx_hash, amount=str(amount))
            return JSONResponse(status_code=200, content=body.to_dict())

        @self.get(f"{prefix}/health")
        async def health():
            """Liveness plus a probe of the payment chain."""
            uptime = time.monotonic() - self.started_at
            try:
                state = await self.depends.allowance_gate.allowance_state()
            except GatewayError as e:
                logger.error("Health check failed: %s", e.message)
                body = HealthResponse(
                    status="unhealthy",
                    uptime=uptime,
                    bankr_connection="disconnected",
                    error=e.message,
                )
                return JSONResponse(status_code=503, content=body.to_dict())

            body = HealthResponse(
                status="healthy",
                uptime=uptime,
                bankr_connection="connected",
                allowance=str(state.allowance),
            )
            return JSONResponse(status_code=200, content=body.to_dict())

    @staticmethod
    async def _read_model(request: Request, model: Type[ModelT]) -> ModelT:
        """Parse and validate a JSON body; an empty body counts as ``{}``."""
        raw = await request.body()
        try:
            payload = json.loads(raw) if raw.strip() else {}
        except ValueError as e:
            raise InvalidRequestError("Request body is not valid JSON") from e

        if not isinstance(payload, dict):
            raise InvalidRequestError("Request body must be a JSON object")

        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise InvalidRequestError("Invalid request data", details=_jsonable(e.errors())) from e

    @staticmethod
    def _render_prompt_result(event: BaseEvent) -> JSONResponse:
        if isinstance(event, JobCompletedEvent):
            return JSONResponse(status_code=200, content=event.job.to_dict())

        if isinstance(event, (RequestFailedEvent, PaymentRequiredEvent)):
            raise event.error

        if isinstance(event, AllowanceApprovedEvent):
            raise PaymentRequiredError(
                event.error.message,
                details={
                    "reason": event.error.details,
                    "approvalTransactionHash": event.transaction_hash,
                    "facilitatorAddress": event.state.facilitator_address,
                    "previousAllowance": str(event.state.allowance),
                    "hint": "Approval submitted; retry once the transaction is confirmed",
                },
            )

        if isinstance(event, RemediationFailedEvent):
            raise PaymentRequiredError(
                event.error.message,
                details={"reason": event.error.details, "remediationError": event.reason},
            )

        raise InternalError(f"Prompt workflow ended without a result ({event!r})")


def _jsonable(errors: list) -> list:
    """Drop validation error fields that are not JSON serializable (``ctx`` holds exceptions)."""
    return [
        {key: value for key, value in error.items() if key in ("type", "loc", "msg")}
        for error in errors
    ]


def create_app(settings: GatewaySettings) -> GatewayServer:
    """
    Build the gateway and its long-lived collaborators from settings.

    The agent client and the allowance gate are created once here and shared
    by all requests; the agent client is closed on shutdown.

    Args:
        settings: Validated gateway settings

    Returns:
        GatewayServer: Ready-to-serve ASGI application.

    Raises:
        ConfigurationError: If the wallet key is invalid or does not match WALLET_ADDRESS.
    """
    agent_client = AgentClient(
        api_key=settings.bankr_api_key,
        base_url=settings.bankr_api_url,
        timeout=settings.request_timeout,
    )
    allowance_gate = AllowanceGate(
        private_key=settings.private_key,
        token_address=settings.payment_token_address,
        rpc_url=settings.rpc_url,
        wallet_address=settings.wallet_address,
        request_timeout=settings.request_timeout,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Gateway ready on prefix %s", settings.api_prefix)
        yield
        await agent_client.aclose()
        logger.info("Gateway stopped")

    app = GatewayServer(
        agent_client=agent_client,
        allowance_gate=allowance_gate,
        proxy_token=settings.proxy_token,
        auto_approve=settings.auto_approve,
        approval_threshold=settings.approval_threshold,
        api_prefix=settings.api_prefix,
        expose_errors=settings.debug,
        title="Bankr Agent Gateway",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization", PROXY_TOKEN_HEADER],
    )
    return app
