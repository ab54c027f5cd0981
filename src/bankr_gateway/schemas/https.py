"""
HTTP Request/Response Schema Models for the Bankr Gateway

This module defines all Pydantic models used at the gateway's HTTP boundary.
Request models validate caller input before any downstream call is made;
response models fix the JSON shape callers branch on.

The main flow consists of:
1. Caller posts a prompt (optionally with poll bounds)
2. Gateway submits it downstream and polls until the job is terminal
3. Gateway returns the job, or an error envelope with a stable ``code``
4. On ``PAYMENT_REQUIRED`` the caller approves the facilitator and retries

All models inherit from GatewayModel for camelCase wire names.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import Field, field_validator

from ..adapters.evm.constants import FACILITATOR_ADDRESS, is_evm_address, parse_uint256
from ..engine.exceptions import ErrorKind
from .bases import GatewayModel, PollConfig, PromptHints


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Requests
# ============================================================================

class PromptRequest(GatewayModel):
    """Caller request to run a prompt.

    Attributes:
        prompt: Natural-language request, 1..10000 characters.
        wallet_address: Optional wallet the agent should act for.
        xmtp: Optional channel flag, strict boolean.
        poll: Optional poll bounds (interval, maxAttempts, timeout in ms).
    """
    prompt: str = Field(..., min_length=1, max_length=10000, strict=True)
    wallet_address: Optional[str] = Field(None, strict=True)
    xmtp: bool = Field(False, strict=True)
    poll: Optional[PollConfig] = Field(None)

    @field_validator("wallet_address")
    @classmethod
    def _check_wallet_address(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_evm_address(value):
            raise ValueError("Invalid Ethereum address format")
        return value

    def hints(self) -> PromptHints:
        return PromptHints(wallet_address=self.wallet_address, xmtp=self.xmtp)

    def poll_config(self) -> PollConfig:
        return self.poll or PollConfig()


class ApprovalRequest(GatewayModel):
    """Caller request to approve the facilitator.

    Attributes:
        amount: Decimal string in token base units; max uint256 when omitted.
    """
    amount: Optional[str] = Field(None, strict=True)

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return str(parse_uint256(value))

    @property
    def value(self) -> Optional[int]:
        return None if self.amount is None else int(self.amount)


# ============================================================================
# Responses
# ============================================================================

class ErrorDetail(GatewayModel):
    """Error body: a stable ``code`` callers branch on, plus diagnostics."""
    code: ErrorKind = Field(..., description="Error kind")
    message: str = Field(..., description="Human-readable message")
    details: Any = Field(None, description="Optional diagnostics")


class ErrorResponse(GatewayModel):
    """Envelope shared by every error response."""
    success: bool = False
    error: ErrorDetail
    timestamp: datetime = Field(default_factory=utc_now)


class AllowanceResponse(GatewayModel):
    """Current allowance from the gateway wallet to the facilitator."""
    success: bool = True
    allowance: str = Field(..., description="Allowance in token base units (decimal string)")
    facilitator_address: str = FACILITATOR_ADDRESS
    owner_address: str
    token_address: str
    timestamp: datetime = Field(default_factory=utc_now)


class ApprovalResponse(GatewayModel):
    """Submitted (unconfirmed) approval transaction."""
    success: bool = True
    transaction_hash: str
    facilitator_address: str = FACILITATOR_ADDRESS
    amount: str = Field(..., description="Approved amount (decimal string)")
    message: str = "Approval transaction submitted successfully"
    timestamp: datetime = Field(default_factory=utc_now)


class HealthResponse(GatewayModel):
    """Liveness plus a best-effort probe of the payment chain."""
    status: str
    timestamp: datetime = Field(default_factory=utc_now)
    uptime: float = Field(..., ge=0, description="Seconds since startup")
    bankr_connection: str
    allowance: Optional[str] = None
    error: Optional[str] = None
