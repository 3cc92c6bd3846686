"""
Meta-transaction envelope and permit message builders.

The envelope is generic over the wrapped call: the relay recomputes the
type hash over ``{nonce, from, functionSignature}`` and compares the
recovered signer with ``from`` without looking inside ``functionSignature``.
Fetching the right nonce is the caller's job and should happen immediately
before signing.
"""

from typing import Union

from eth_utils import to_checksum_address

from .standards import MetaTransactionMessage, PermitMessage


def build_meta_envelope(
    relay_nonce: int,
    from_address: str,
    encoded_call: Union[bytes, bytearray, str],
) -> MetaTransactionMessage:
    """
    Wrap ``encoded_call`` in a ``MetaTransaction`` message.

    Args:
        relay_nonce: ``GasSwap.getNonce(from_address)`` read just before signing.
        from_address: Address the call executes on behalf of.
        encoded_call: Selector + ABI arguments, as bytes or ``0x`` hex.

    Raises:
        ValueError: Negative nonce, empty call or non-hex call string.
    """
    relay_nonce = int(relay_nonce)
    if relay_nonce < 0:
        raise ValueError(f"relay_nonce must be non-negative, got {relay_nonce}")

    if isinstance(encoded_call, str):
        if not encoded_call.startswith("0x"):
            raise ValueError("encoded_call hex string must be 0x-prefixed")
        encoded_call = bytes.fromhex(encoded_call[2:])
    call = bytes(encoded_call)
    if len(call) < 4:
        raise ValueError("encoded_call must contain at least a 4-byte selector")

    return MetaTransactionMessage(
        nonce=relay_nonce,
        from_address=to_checksum_address(from_address),
        functionSignature=call,
    )


def build_permit_message(
    *,
    owner: str,
    spender: str,
    value: int,
    nonce: int,
    deadline: int,
) -> PermitMessage:
    """Build an ERC-2612 ``Permit`` message with checksummed addresses."""
    for name, number in [("value", value), ("nonce", nonce), ("deadline", deadline)]:
        if int(number) < 0:
            raise ValueError(f"{name} must be non-negative, got {number}")
    return PermitMessage(
        owner=to_checksum_address(owner),
        spender=to_checksum_address(spender),
        value=int(value),
        nonce=int(nonce),
        deadline=int(deadline),
    )
