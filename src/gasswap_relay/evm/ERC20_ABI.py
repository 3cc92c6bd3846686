"""
ERC-20 + ERC-2612 Permit Token ABI Module

Minimal ABI fragments for the permit tokens swapped through GasSwap.

Usage:
    from .ERC20_ABI import get_permit_token_abi

    contract = w3.eth.contract(address=token_address, abi=get_permit_token_abi())
    nonce = await contract.functions.nonces(owner).call()
"""

from typing import Dict, Any, List


def get_balance_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for ERC20 ``balanceOf(account)``.

    Returns:
        List[Dict[str, Any]]: ABI for balanceOf function
    """
    return [
        {
            "name": "balanceOf",
            "type": "function",
            "stateMutability": "view",
            "inputs": [{"name": "account", "type": "address"}],
            "outputs": [{"name": "", "type": "uint256"}],
        }
    ]


def get_permit_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for the ERC-2612 ``nonces(owner)`` read.

    ``nonces(owner)`` is the value a fresh permit must be signed with.
    """
    return [
        {
            "name": "nonces",
            "type": "function",
            "stateMutability": "view",
            "inputs": [{"name": "owner", "type": "address"}],
            "outputs": [{"name": "", "type": "uint256"}],
        }
    ]


def get_permit_token_abi() -> List[Dict[str, Any]]:
    """Balance and permit fragments combined."""
    return get_balance_abi() + get_permit_abi()
