from .bases import AllowanceAdapter
from .evm.allowance import AllowanceGate
from .evm import (
    AllowanceState,
    FACILITATOR_ADDRESS,
    MAX_UINT256,
)

__all__ = [
    "AllowanceAdapter",
    "AllowanceGate",
    "AllowanceState",
    "FACILITATOR_ADDRESS",
    "MAX_UINT256",
]
