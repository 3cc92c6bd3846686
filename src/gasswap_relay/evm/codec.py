"""
Signature and Call-Data Codec

Byte-layout helpers shared by the signing and submission paths:

split_signature / join_signature
    Positional split of a raw 65-byte signature into (r, s, v) and the exact
    inverse.  No cryptographic validation is done; a corrupted signature is
    only detected by the on-chain verifier.

encode_swap_call_data / decode_swap_call_data
    ABI codec for the ``SwapCallData`` tuple forwarded into
    ``GasSwap.swap(bytes)``.

encode_function_call / encode_swap_call / decode_swap_call
    4-byte selector + ABI arguments, i.e. the ``functionSignature`` wrapped by
    a meta-transaction envelope.
"""

from typing import Any, List, Sequence, Tuple, Union

from eth_abi import encode, decode
from eth_utils import function_signature_to_4byte_selector, to_checksum_address

from ..engine.exceptions import MalformedSignature
from .schemas import EVMECDSASignature, SwapCallData

SIGNATURE_LENGTH = 65

#: ABI layout of ``SwapCallData``; the order is a wire contract with GasSwap.
SWAP_CALL_DATA_TYPES: List[str] = [
    "uint256",  # amountIn
    "uint256",  # amountOutMin
    "address[]",  # path
    "address",  # recipient
    "uint256",  # deadline
    "uint8",  # v
    "bytes32",  # r
    "bytes32",  # s
]

SWAP_FUNCTION = "swap(bytes)"


# ---------------------------------------------------------------------------
# Signature codec
# ---------------------------------------------------------------------------

def _signature_bytes(raw: Union[str, bytes]) -> bytes:
    if isinstance(raw, (bytes, bytearray)):
        data = bytes(raw)
    elif isinstance(raw, str):
        if not raw.startswith("0x") or len(raw) != 2 + SIGNATURE_LENGTH * 2:
            raise MalformedSignature(
                f"Expected 0x + {SIGNATURE_LENGTH * 2} hex digits, got {len(raw)} characters"
            )
        try:
            data = bytes.fromhex(raw[2:])
        except ValueError:
            raise MalformedSignature("Signature is not valid hexadecimal")
    else:
        raise MalformedSignature(f"Unsupported signature type: {type(raw).__name__}")

    if len(data) != SIGNATURE_LENGTH:
        raise MalformedSignature(f"Expected {SIGNATURE_LENGTH} bytes, got {len(data)}")
    return data


def split_signature(raw: Union[str, bytes]) -> EVMECDSASignature:
    """
    Split a raw 65-byte signature into r, s and v.

    bytes [0, 32) become ``r``, bytes [32, 64) become ``s`` and byte 64 is
    ``v`` as an unsigned 8-bit integer (not rescaled).

    Args:
        raw: ``0x`` + 130 hex digits, or 65 raw bytes.

    Returns:
        ``EVMECDSASignature`` with ``signature_type="EIP712"``.

    Raises:
        MalformedSignature: If ``raw`` is not exactly 65 bytes of hex.

    Example::

        sig = split_signature(signed_hex)
        sig.to_packed_hex() == signed_hex.lower()
    """
    data = _signature_bytes(raw)
    return EVMECDSASignature(
        r="0x" + data[0:32].hex(),
        s="0x" + data[32:64].hex(),
        v=data[64],
    )


def join_signature(signature: EVMECDSASignature) -> str:
    """
    Reassemble ``r || s || byte(v)`` as a ``0x``-prefixed hex string.

    The result is the same 65 bytes that were split, written as lowercase
    hex; a signature split from uppercase hex comes back lowercased.
    """
    return signature.to_packed_hex()


# ---------------------------------------------------------------------------
# SwapCallData
# ---------------------------------------------------------------------------

def encode_swap_call_data(call_data: SwapCallData) -> bytes:
    """ABI-encode ``call_data`` as ``(uint256,uint256,address[],address,uint256,uint8,bytes32,bytes32)``."""
    values = call_data.to_abi_values()
    values[2] = [to_checksum_address(addr) for addr in values[2]]
    values[3] = to_checksum_address(values[3])
    return encode(SWAP_CALL_DATA_TYPES, values)


def decode_swap_call_data(data: bytes) -> SwapCallData:
    """Inverse of :func:`encode_swap_call_data`."""
    amount_in, amount_out_min, path, recipient, deadline, v, r, s = decode(
        SWAP_CALL_DATA_TYPES, bytes(data)
    )
    return SwapCallData(
        amount_in=amount_in,
        amount_out_min=amount_out_min,
        path=[to_checksum_address(addr) for addr in path],
        recipient=to_checksum_address(recipient),
        deadline=deadline,
        v=v,
        r="0x" + r.hex(),
        s="0x" + s.hex(),
    )


# ---------------------------------------------------------------------------
# Function calls
# ---------------------------------------------------------------------------

def encode_function_call(signature_text: str, types: Sequence[str], args: Sequence[Any]) -> bytes:
    """
    Encode ``selector(signature_text) + abi.encode(types, args)``.

    Args:
        signature_text: Canonical function signature, e.g. ``"swap(bytes)"``.
        types: ABI argument types, in order.
        args: Argument values.
    """
    selector = function_signature_to_4byte_selector(signature_text)
    return selector + encode(list(types), list(args))


def encode_swap_call(payload: bytes) -> bytes:
    """Encode ``swap(bytes payload)``, the call a meta-transaction wraps."""
    return encode_function_call(SWAP_FUNCTION, ["bytes"], [payload])


def decode_swap_call(function_signature: bytes) -> Tuple[bytes, SwapCallData]:
    """
    Split an encoded ``swap(bytes)`` call back into its payload.

    Returns:
        ``(payload_bytes, SwapCallData)``.

    Raises:
        ValueError: If the selector is not ``swap(bytes)``.
    """
    selector = function_signature_to_4byte_selector(SWAP_FUNCTION)
    data = bytes(function_signature)
    if data[:4] != selector:
        raise ValueError(f"Not a {SWAP_FUNCTION} call: selector 0x{data[:4].hex()}")
    (payload,) = decode(["bytes"], data[4:])
    return payload, decode_swap_call_data(payload)
