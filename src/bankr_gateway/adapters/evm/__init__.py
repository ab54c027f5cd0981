from .constants import (
    FACILITATOR_ADDRESS,
    MAX_UINT256,
    DEFAULT_RPC_URL,
    DEFAULT_PAYMENT_TOKEN_ADDRESS,
    DEFAULT_APPROVAL_THRESHOLD,
    parse_uint256,
    is_evm_address,
    truncate_address,
)
from .schemas import AllowanceState

__all__ = [
    "FACILITATOR_ADDRESS",
    "MAX_UINT256",
    "DEFAULT_RPC_URL",
    "DEFAULT_PAYMENT_TOKEN_ADDRESS",
    "DEFAULT_APPROVAL_THRESHOLD",
    "parse_uint256",
    "is_evm_address",
    "truncate_address",
    "AllowanceState",
]
