"""
EVM Allowance Gate

Reads and raises the ERC20 allowance from the gateway wallet to the payment
facilitator on an EVM chain (Base by default).

Key Features:
    - ``allowance(owner, spender)`` queries against the payment token
    - EIP-1559 ``approve`` transactions signed in-process, legacy gas fallback
    - Fire-and-forget submission: the transaction hash is returned unconfirmed

Dependencies:
    - web3.py: For blockchain RPC interaction
    - eth_account: For transaction signing
"""

import logging
from typing import Any, Dict, Optional

from eth_account import Account
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception

from ..bases import AllowanceAdapter
from ...engine.exceptions import ChainInteractionError, ConfigurationError, TransactionExecutionError
from .ERC20_ABI import get_allowance_abi, get_approve_abi
from .constants import (
    DEFAULT_PAYMENT_TOKEN_ADDRESS,
    DEFAULT_RPC_URL,
    FACILITATOR_ADDRESS,
    FALLBACK_APPROVE_GAS,
    MAX_UINT256,
    parse_uint256,
    truncate_address,
)

logger = logging.getLogger(__name__)


class AllowanceGate(AllowanceAdapter):
    """
    EVM implementation of the allowance gate.

    The web3 instance and signing account are built once and shared read-only
    by all requests. Nonce sequencing is left to the node (``pending`` nonce).

    Attributes:
        account: Signing account derived from the private key
        wallet_address: Checksum address of the signing account
        token_address: Checksum address of the payment token

    Example:
        gate = AllowanceGate(private_key="0x...")
        allowance = await gate.check_allowance()
        if allowance == 0:
            tx_hash = await gate.approve()
    """

    def __init__(
        self,
        private_key: str,
        token_address: str = DEFAULT_PAYMENT_TOKEN_ADDRESS,
        rpc_url: str = DEFAULT_RPC_URL,
        wallet_address: Optional[str] = None,
        request_timeout: int = 60,
        web3: Optional[AsyncWeb3] = None,
    ):
        """
        Initialize the gate.

        Args:
            private_key: 0x-prefixed hex key of the gateway wallet
            token_address: Payment token contract
            rpc_url: JSON-RPC endpoint
            wallet_address: Expected wallet address; must match the key when given
            request_timeout: RPC timeout in seconds
            web3: Pre-built AsyncWeb3 instance (tests)

        Raises:
            ConfigurationError: If the key is missing/invalid or does not match ``wallet_address``.
        """
        if not private_key:
            raise ConfigurationError("Private key not provided.")

        try:
            self.account = Account.from_key(private_key)
        except Exception as e:
            raise ConfigurationError(f"Invalid private key: {e}") from e

        self.wallet_address = AsyncWeb3.to_checksum_address(self.account.address)
        if wallet_address and AsyncWeb3.to_checksum_address(wallet_address) != self.wallet_address:
            raise ConfigurationError(
                f"WALLET_ADDRESS {truncate_address(wallet_address)} does not match the "
                f"private key's address {truncate_address(self.wallet_address)}"
            )

        self.token_address = AsyncWeb3.to_checksum_address(token_address)
        self._web3 = web3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(
            rpc_url,
            request_kwargs={"timeout": request_timeout}
        ))

    # =========================================================================
    # Allowance queries
    # =========================================================================

    async def check_allowance(
        self,
        owner: Optional[str] = None,
        facilitator: str = FACILITATOR_ADDRESS,
    ) -> int:
        owner = owner or self.wallet_address
        try:
            contract = self._web3.eth.contract(address=self.token_address, abi=get_allowance_abi())
            allowance = await contract.functions.allowance(
                AsyncWeb3.to_checksum_address(owner),
                AsyncWeb3.to_checksum_address(facilitator),
            ).call()
            return int(allowance)

        except Web3Exception as e:
            raise ChainInteractionError(
                f"Failed to query allowance for token {self.token_address}. "
                f"Owner: {owner}, Spender: {facilitator}. Error: {e}"
            ) from e
        except Exception as e:
            # aiohttp/connection errors surface as plain exceptions
            raise ChainInteractionError(f"Allowance query failed: {e}") from e

    # =========================================================================
    # Approval
    # =========================================================================

    async def approve(
        self,
        facilitator: str = FACILITATOR_ADDRESS,
        amount: Optional[int] = None,
    ) -> str:
        value = MAX_UINT256 if amount is None else parse_uint256(amount)
        spender = AsyncWeb3.to_checksum_address(facilitator)

        try:
            contract = self._web3.eth.contract(address=self.token_address, abi=get_approve_abi())
            tx_params = await self._base_tx_params()
            tx_params["gas"] = await self._estimate_gas(contract, spender, value)
            tx_params.update(await self._fee_params())

            transaction = await contract.functions.approve(spender, value).build_transaction(tx_params)
            signed_tx = self.account.sign_transaction(transaction)
            tx_hash = await self._web3.eth.send_raw_transaction(signed_tx.raw_transaction)

        except Exception as e:
            raise TransactionExecutionError(f"Approval transaction failed: {e}") from e

        tx_hex = AsyncWeb3.to_hex(tx_hash)
        logger.info(
            "Approval submitted: owner=%s spender=%s amount=%s tx=%s",
            truncate_address(self.wallet_address),
            truncate_address(spender),
            "max" if value == MAX_UINT256 else value,
            tx_hex,
        )
        return tx_hex

    async def _base_tx_params(self) -> Dict[str, Any]:
        nonce = await self._web3.eth.get_transaction_count(self.wallet_address, "pending")
        chain_id = await self._web3.eth.chain_id
        return {
            "chainId": chain_id,
            "from": self.wallet_address,
            "nonce": nonce,
        }

    async def _estimate_gas(self, contract, spender: str, value: int) -> int:
        # 10% buffer over the estimate
        try:
            gas_estimate = await contract.functions.approve(spender, value).estimate_gas(
                {"from": self.wallet_address}
            )
            return int(gas_estimate * 1.1)
        except (Web3Exception, ValueError) as e:
            logger.warning("Gas estimation failed, using fallback limit: %s", e)
            return FALLBACK_APPROVE_GAS

    async def _fee_params(self) -> Dict[str, int]:
        # EIP-1559 first; max fee leaves room for base fee volatility (2x base + priority)
        try:
            fee_history = await self._web3.eth.fee_history(1, "latest", [25.0])
            base_fee = fee_history["baseFeePerGas"][-1]
            priority_fee = fee_history["reward"][0][0]
            return {
                "maxPriorityFeePerGas": priority_fee,
                "maxFeePerGas": (base_fee * 2) + priority_fee,
            }
        except (Web3Exception, KeyError, IndexError, TypeError):
            return {"gasPrice": await self._web3.eth.gas_price}
