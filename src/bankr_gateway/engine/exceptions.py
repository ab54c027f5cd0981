"""
Exception and Error Definitions Module

Defines the error taxonomy shared by the gateway, the agent client and the
allowance gate. Every error the gateway renders is a ``GatewayError`` carrying
one ``ErrorKind``; the kind, not the message, selects the HTTP status.

Exception Hierarchy:
    GatewayError (root)
    ├── PaymentRequiredError      PAYMENT_REQUIRED
    ├── UnauthorizedError         UNAUTHORIZED
    ├── JobNotFoundError          NOT_FOUND
    ├── JobTimeoutError           TIMEOUT
    ├── RateLimitedError          RATE_LIMITED
    ├── InvalidRequestError       VALIDATION_ERROR
    └── InternalError             INTERNAL
        ├── PollCancelledError
        ├── DownstreamError
        ├── ChainInteractionError
        │   └── TransactionExecutionError
        └── ConfigurationError
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """
    Closed set of error kinds exposed to callers as ``error.code``.

    Attributes:
        PAYMENT_REQUIRED: Downstream requires a token allowance or payment
        UNAUTHORIZED: Proxy token mismatch, or the gateway's own API key was rejected
        NOT_FOUND: Job identifier (or route) unknown
        TIMEOUT: Poll bounds exhausted before the job reached a terminal status
        RATE_LIMITED: Downstream asked us to slow down
        VALIDATION_ERROR: Request body or parameters malformed
        INTERNAL: Anything else
    """
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    TIMEOUT = "TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL = "INTERNAL"


#: HTTP status rendered for each error kind.
HTTP_STATUS_BY_KIND = {
    ErrorKind.PAYMENT_REQUIRED: 402,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.TIMEOUT: 408,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.INTERNAL: 500,
}


class GatewayError(Exception):
    """
    Root exception class for all gateway errors.

    Subclasses pin ``kind``; instances carry the original message and optional
    structured ``details`` for diagnostics.

    Attributes:
        kind: ErrorKind driving the HTTP status mapping
        message: Original (human-readable) message
        details: Optional extra data rendered under ``error.details``
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str = "", details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        """HTTP status code for this error's kind."""
        return HTTP_STATUS_BY_KIND[self.kind]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value}, message={self.message!r})"


class PaymentRequiredError(GatewayError):
    """
    Raised when the agent service answers 402.

    The gateway wallet has not granted enough allowance to the facilitator,
    or does not hold enough of the payment token.
    """
    kind = ErrorKind.PAYMENT_REQUIRED


class UnauthorizedError(GatewayError):
    """
    Raised on authentication failure.

    This includes scenarios such as:
    - Missing or wrong ``x-proxy-token`` header from the caller
    - The agent service rejecting the gateway's API key (operator-actionable)
    """
    kind = ErrorKind.UNAUTHORIZED


class JobNotFoundError(GatewayError):
    """Raised when a job identifier is unknown or expired downstream."""
    kind = ErrorKind.NOT_FOUND


class JobTimeoutError(GatewayError):
    """
    Raised when polling stops before a terminal status was observed.

    Either the attempt cap or the wall-clock deadline was reached, whichever
    came first.

    Attributes:
        job_id: Job that was still running, if submission got that far
        attempts: Number of status checks performed
    """
    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        message: str = "",
        details: Any = None,
        job_id: Optional[str] = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message, details)
        self.job_id = job_id
        self.attempts = attempts


class RateLimitedError(GatewayError):
    """Raised when the agent service answers 429."""
    kind = ErrorKind.RATE_LIMITED


class InvalidRequestError(GatewayError):
    """
    Raised when caller input fails validation.

    Always raised before any downstream call is made.
    """
    kind = ErrorKind.VALIDATION_ERROR


class InternalError(GatewayError):
    """Raised for failures with no more specific kind."""
    kind = ErrorKind.INTERNAL


class PollCancelledError(InternalError):
    """Raised when the caller disconnects while a job is being polled."""
    pass


class DownstreamError(InternalError):
    """
    Raw failure from the agent service, before classification.

    Produced directly by the agent client so the classifier works on
    structured data instead of message text.

    Attributes:
        http_status: HTTP status returned by the agent service, None on transport failure
        timed_out: True when the transport gave up waiting
        payload: Decoded response body, if any
    """

    def __init__(
        self,
        message: str = "",
        http_status: Optional[int] = None,
        timed_out: bool = False,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.timed_out = timed_out
        self.payload = payload

    def __repr__(self) -> str:
        return (
            f"DownstreamError(http_status={self.http_status}, "
            f"timed_out={self.timed_out}, message={self.message!r})"
        )


class ChainInteractionError(InternalError):
    """
    Raised when blockchain interaction (RPC call) fails.

    This includes scenarios such as:
    - RPC call timeout or connectivity issues
    - Invalid contract address
    - Contract call revert
    """
    pass


class TransactionExecutionError(ChainInteractionError):
    """
    Raised when building, signing or broadcasting a transaction fails.

    Attributes:
        tx_hash: Transaction hash if the node accepted it
    """

    def __init__(self, message: str = "", tx_hash: Optional[str] = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class ConfigurationError(InternalError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - Missing required environment variables
    - Private key not matching the configured wallet address
    - Invalid numeric settings
    """
    pass
