"""
ERC20 Allowance Smart Contract ABI Module

Minimal ABI fragments for the two ERC20 calls the gateway makes against the
payment token: reading ``allowance(owner, spender)`` and sending
``approve(spender, amount)``.

Usage:
    from ERC20_ABI import get_allowance_abi, get_approve_abi

    contract = web3.eth.contract(address=token_address, abi=get_allowance_abi())
    allowance = await contract.functions.allowance(owner, spender).call()
"""

from typing import Dict, Any, List


def get_allowance_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for ERC20 `allowance(owner, spender)`.

    Returns:
        List[Dict[str, Any]]: ABI for ERC20 `allowance` function.
    """
    return [
        {
            "name": "allowance",
            "type": "function",
            "stateMutability": "view",
            "inputs": [
                {"name": "owner", "type": "address"},
                {"name": "spender", "type": "address"},
            ],
            "outputs": [{"name": "", "type": "uint256"}],
        }
    ]


def get_approve_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for ERC20 `approve(spender, amount)`.

    Returns:
        List[Dict[str, Any]]: ABI for ERC20 `approve` function.

    Example:
        abi = get_approve_abi()
        contract = web3.eth.contract(address=token_address, abi=abi)
        tx = await contract.functions.approve(spender, amount).build_transaction({...})
    """
    return [
        {
            "name": "approve",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "spender", "type": "address"},
                {"name": "amount", "type": "uint256"},
            ],
            "outputs": [{"name": "", "type": "bool"}],
        }
    ]
