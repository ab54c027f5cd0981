"""
EVM allowance schema models.

Snapshot types returned by the allowance gate. Nothing here is persisted; the
chain is the only source of truth and every snapshot is read fresh.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from .constants import FACILITATOR_ADDRESS, MAX_UINT256


class AllowanceState(BaseModel):
    """
    ERC20 allowance from the gateway wallet to the facilitator.

    Attributes:
        owner_address: Gateway wallet granting the allowance
        facilitator_address: Spender allowed to pull payment
        token_address: Payment token contract
        allowance: Current on-chain allowance in base units
        requested_amount: Amount an approval would set (max uint256 unless overridden)
        checked_at: When the allowance was read
    """
    owner_address: str = Field(..., description="Gateway wallet address")
    facilitator_address: str = Field(FACILITATOR_ADDRESS, description="Spender address")
    token_address: str = Field(..., description="Payment token contract")
    allowance: int = Field(..., ge=0, le=MAX_UINT256, description="Current allowance (base units)")
    requested_amount: int = Field(MAX_UINT256, ge=0, le=MAX_UINT256, description="Approval amount")
    checked_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Read timestamp (UTC)"
    )

    def is_sufficient(self, required: int) -> bool:
        """Check whether the allowance covers ``required`` base units."""
        return self.allowance >= required
