"""
GasSwap Relay Contract ABI Module

Explicit ABI fragments for the GasSwap contract: the direct ``swap`` entry
point, the EIP-712 meta-transaction executor, its nonce getter and the
owner-only token whitelist.

Usage:
    from .GASSWAP_ABI import get_gasswap_abi

    contract = w3.eth.contract(address=relay_address, abi=get_gasswap_abi())
    nonce = await contract.functions.getNonce(user).call()
"""

from typing import Dict, Any, List


def get_swap_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for ``swap(bytes callData)``.

    ``callData`` is the ABI-encoded ``SwapCallData`` tuple carrying the
    permit signature.
    """
    return [
        {
            "name": "swap",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [{"name": "callData", "type": "bytes"}],
            "outputs": [],
        }
    ]


def get_meta_transaction_abi() -> List[Dict[str, Any]]:
    """
    Get ABI for ``executeMetaTransaction`` and ``getNonce``.

    Argument order of ``executeMetaTransaction`` is
    ``(userAddress, functionSignature, sigR, sigS, sigV)``.
    """
    return [
        {
            "name": "executeMetaTransaction",
            "type": "function",
            "stateMutability": "payable",
            "inputs": [
                {"name": "userAddress", "type": "address"},
                {"name": "functionSignature", "type": "bytes"},
                {"name": "sigR", "type": "bytes32"},
                {"name": "sigS", "type": "bytes32"},
                {"name": "sigV", "type": "uint8"},
            ],
            "outputs": [{"name": "", "type": "bytes"}],
        },
        {
            "name": "getNonce",
            "type": "function",
            "stateMutability": "view",
            "inputs": [{"name": "user", "type": "address"}],
            "outputs": [{"name": "nonce", "type": "uint256"}],
        },
    ]


def get_whitelist_abi() -> List[Dict[str, Any]]:
    """Get ABI for the owner-only ``whitelistToken(address token, bool allowed)``."""
    return [
        {
            "name": "whitelistToken",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "token", "type": "address"},
                {"name": "whitelisted", "type": "bool"},
            ],
            "outputs": [],
        }
    ]


def get_gasswap_abi() -> List[Dict[str, Any]]:
    """Every fragment above, for binding a single contract handle."""
    return get_swap_abi() + get_meta_transaction_abi() + get_whitelist_abi()
