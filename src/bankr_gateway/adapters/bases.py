"""
Abstract Base Class for Allowance Adapters

Defines the interface the gateway uses to read and raise the on-chain spending
allowance from its wallet to the payment facilitator. The concrete EVM
implementation talks to a JSON-RPC node; tests substitute in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .evm.constants import FACILITATOR_ADDRESS
from .evm.schemas import AllowanceState


class AllowanceAdapter(ABC):
    """
    Abstract Base Class for allowance gates.

    Key Responsibilities:
    1. check_allowance: Read the current allowance (chain is the source of truth, no caching)
    2. approve: Submit an approval transaction and return its hash without waiting
    3. allowance_state: Snapshot of owner, facilitator, token and allowance

    Implementations hold the signing wallet. They must not retry internally;
    resilience belongs to the caller.
    """

    #: Address of the wallet that grants the allowance.
    wallet_address: str

    #: Payment token contract.
    token_address: str

    @abstractmethod
    async def check_allowance(
        self,
        owner: Optional[str] = None,
        facilitator: str = FACILITATOR_ADDRESS,
    ) -> int:
        """
        Read the ERC20 allowance ``owner`` has granted ``facilitator``.

        Args:
            owner: Token holder; defaults to the gateway wallet
            facilitator: Spender address

        Returns:
            int: Allowance in token base units.

        Raises:
            ChainInteractionError: If the RPC call fails.
        """
        pass

    @abstractmethod
    async def approve(
        self,
        facilitator: str = FACILITATOR_ADDRESS,
        amount: Optional[int] = None,
    ) -> str:
        """
        Submit an ERC20 ``approve(facilitator, amount)`` transaction.

        Fire-and-forget: returns as soon as the node accepted the signed
        transaction. Every call submits an independent transaction and costs
        gas; callers are responsible for not calling redundantly.

        Args:
            facilitator: Spender address
            amount: Base units to approve; max uint256 when omitted

        Returns:
            str: 0x-prefixed transaction hash.

        Raises:
            ValueError: If ``amount`` is outside uint256.
            TransactionExecutionError: If building, signing or broadcasting fails.
        """
        pass

    async def allowance_state(self, facilitator: str = FACILITATOR_ADDRESS) -> AllowanceState:
        """Read a fresh allowance snapshot for the gateway wallet."""
        allowance = await self.check_allowance(self.wallet_address, facilitator)
        return AllowanceState(
            owner_address=self.wallet_address,
            facilitator_address=facilitator,
            token_address=self.token_address,
            allowance=allowance,
        )
