"""
Error classification for agent-service and chain failures.

Maps any raw failure into exactly one ``ErrorKind``. Structured signals
(``DownstreamError.http_status``, timeout exception types) are consulted first;
message inspection only applies to errors that carry no structure.
"""

import asyncio
import re
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Type

import httpx

from .exceptions import (
    DownstreamError,
    ErrorKind,
    GatewayError,
    InternalError,
    InvalidRequestError,
    JobNotFoundError,
    JobTimeoutError,
    PaymentRequiredError,
    RateLimitedError,
    UnauthorizedError,
)


class ErrorClassifier:
    """
    Classify raw errors into the gateway's closed error taxonomy.

    The mapping is total: every input yields exactly one kind and anything
    unmatched falls through to ``INTERNAL``.
    """

    STATUS_KINDS: Dict[int, ErrorKind] = {
        402: ErrorKind.PAYMENT_REQUIRED,
        401: ErrorKind.UNAUTHORIZED,
        404: ErrorKind.NOT_FOUND,
        408: ErrorKind.TIMEOUT,
        429: ErrorKind.RATE_LIMITED,
        504: ErrorKind.TIMEOUT,
    }

    TIMEOUT_PATTERNS = ("timeout", "timed out")

    ERROR_TYPES: Dict[ErrorKind, Type[GatewayError]] = {
        ErrorKind.PAYMENT_REQUIRED: PaymentRequiredError,
        ErrorKind.UNAUTHORIZED: UnauthorizedError,
        ErrorKind.NOT_FOUND: JobNotFoundError,
        ErrorKind.TIMEOUT: JobTimeoutError,
        ErrorKind.RATE_LIMITED: RateLimitedError,
        ErrorKind.VALIDATION_ERROR: InvalidRequestError,
        ErrorKind.INTERNAL: InternalError,
    }

    # Bare three-digit status embedded in a message, e.g. "Request failed with status 402"
    _STATUS_IN_MESSAGE = re.compile(r"(?<!\d)(402|401|404|429)(?!\d)")

    @classmethod
    def classify(cls, error: BaseException) -> ErrorKind:
        """
        Classify a raw error.

        Args:
            error: Any exception raised by a downstream call

        Returns:
            ErrorKind: The single kind this error maps to.
        """
        if isinstance(error, DownstreamError):
            if error.http_status in cls.STATUS_KINDS:
                return cls.STATUS_KINDS[error.http_status]
            if error.timed_out:
                return ErrorKind.TIMEOUT
            # The client's own errors are never classified by message text
            return ErrorKind.INTERNAL

        if isinstance(error, GatewayError):
            return error.kind

        if isinstance(error, (asyncio.TimeoutError, httpx.TimeoutException)):
            return ErrorKind.TIMEOUT

        if isinstance(error, httpx.HTTPStatusError):
            return cls.STATUS_KINDS.get(error.response.status_code, ErrorKind.INTERNAL)

        return cls._classify_message(str(error))

    @classmethod
    def _classify_message(cls, message: Optional[str]) -> ErrorKind:
        if not message:
            return ErrorKind.INTERNAL

        match = cls._STATUS_IN_MESSAGE.search(message)
        if match:
            return cls.STATUS_KINDS[int(match.group(1))]

        lowered = message.lower()
        if any(pattern in lowered for pattern in cls.TIMEOUT_PATTERNS):
            return ErrorKind.TIMEOUT

        return ErrorKind.INTERNAL

    @classmethod
    def to_error(cls, error: BaseException) -> GatewayError:
        """
        Wrap a raw error into the ``GatewayError`` subclass of its kind.

        Errors that are already of the right kind are returned unchanged, so
        this is safe to call on anything caught at the boundary.

        Args:
            error: Any exception

        Returns:
            GatewayError: Classified error keeping the original message.
        """
        kind = cls.classify(error)
        if isinstance(error, GatewayError) and error.kind == kind:
            return error

        message = error.message if isinstance(error, GatewayError) else str(error)
        details = getattr(error, "payload", None) or getattr(error, "details", None)
        wrapped = cls.ERROR_TYPES[kind](message or type(error).__name__, details)
        wrapped.__cause__ = error
        return wrapped


@contextmanager
def classified_errors() -> Iterator[None]:
    """
    Re-raise any exception from the block as its classified ``GatewayError``.

    Example:
        with classified_errors():
            job = await client.get_job(job_id)
    """
    try:
        yield
    except Exception as e:
        error = ErrorClassifier.to_error(e)
        if error is e:
            raise
        raise error from e
