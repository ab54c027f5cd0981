"""
EVM Chain Constants

Fixed on-chain addresses and numeric limits used by the allowance gate, plus
small helpers for uint256 amounts and address display.
"""

from typing import Optional, Union

from eth_utils import is_address

#: Facilitator that pulls payment for agent jobs once an allowance is granted.
FACILITATOR_ADDRESS: str = "0x4a15fc613c713FC52E907a77071Ec2d0a392a584"

#: Maximum uint256, the "approve once, never again" amount.
MAX_UINT256: int = 2**256 - 1

#: Public Base RPC, used when no RPC_URL is configured.
DEFAULT_RPC_URL: str = "https://mainnet.base.org"

#: BNKR token on Base, the agent service's payment token.
DEFAULT_PAYMENT_TOKEN_ADDRESS: str = "0x22aF33FE49fD1Fa80c7149773dDe5890D3c76F3b"

#: Gas limit used when estimation fails (common when the wallet holds no ETH yet).
FALLBACK_APPROVE_GAS: int = 100000

#: Allowance (base units) below which automatic approval fires.
DEFAULT_APPROVAL_THRESHOLD: int = 1


def parse_uint256(value: Union[str, int]) -> int:
    """Parse a non-negative decimal amount that must fit in uint256.

    Args:
        value: Decimal string (``"1000"``) or int.

    Returns:
        int: Parsed amount.

    Raises:
        ValueError: If the value is not a plain decimal integer or is out of range.
    """
    if isinstance(value, bool):
        raise ValueError("amount must be a decimal integer")
    if isinstance(value, str):
        text = value.strip()
        if not text.isdigit() or not text.isascii():
            raise ValueError(f"amount must be a decimal integer string, got {value!r}")
        amount = int(text)
    elif isinstance(value, int):
        amount = value
    else:
        raise ValueError(f"amount must be a decimal integer, got {type(value).__name__}")

    if amount < 0 or amount > MAX_UINT256:
        raise ValueError("amount must be between 0 and 2**256 - 1")
    return amount


def is_evm_address(value: str) -> bool:
    """True for a 20-byte hex address (checksummed or all one case)."""
    return isinstance(value, str) and is_address(value)


def truncate_address(address: Optional[str]) -> Optional[str]:
    """Shorten an address for log output: ``0x1234...abcd``."""
    if not address:
        return None
    return f"{address[:6]}...{address[-4:]}"
