"""
EVM Schema Models

Pydantic models for the GasSwap permit / meta-transaction flow. All classes
inherit from the base schema hierarchy in ``schemas.bases``.

Signature classes:
    - EVMECDSASignature: r/s/v components split out of a raw 65-byte
      signature.  ``signature_type`` records which domain it was produced for.

Payload classes:
    - SwapCallData: the ``(amountIn, amountOutMin, path, recipient, deadline,
      v, r, s)`` tuple forwarded into ``GasSwap.swap(bytes)``.
    - NetworkInfo: what the chain accessor reports for ``getNetwork()``.

Result / confirmation classes:
    - TypedDataVerificationResult: off-chain recovery outcome.
    - RelayTransactionConfirmation: mined transaction receipt.
"""

from typing import Optional, Any, List, Literal, Tuple

from pydantic import Field, field_validator

from ..schemas.bases import (
    BaseSignature,
    BaseVerificationResult,
    BaseTransactionConfirmation,
    CanonicalModel,
)


def _strip_0x(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


class EVMECDSASignature(BaseSignature):
    """
    ECDSA signature split into (r, s, v).

    The components are kept exactly as they appear in the raw signature:
    ``v`` is not rescaled, so it is 27/28 for signers using the Ethereum
    convention and 0/1 for signers returning a bare recovery id.

    Attributes:
        signature_type: ``"EIP712"`` (unspecified domain), ``"EIP2612"`` or
            ``"MetaTransaction"``.
        r: r component as ``0x`` + 64 hex chars.
        s: s component as ``0x`` + 64 hex chars.
        v: recovery byte (0..255).

    Example::

        sig = EVMECDSASignature(r="0x" + "a" * 64, s="0x" + "b" * 64, v=27)
        sig.to_packed_hex()   # r || s || v
    """

    signature_type: Literal["EIP712", "EIP2612", "MetaTransaction"] = Field(
        default="EIP712", description="Domain the signature was produced for"
    )
    r: str = Field(..., description="Signature r component (0x + 64 hex chars)")
    s: str = Field(..., description="Signature s component (0x + 64 hex chars)")
    v: int = Field(..., ge=0, le=255, description="Recovery byte, unscaled")

    def validate_format(self) -> bool:
        """
        Validate that r and s are 32-byte hex strings.

        Raises:
            ValueError: Descriptive message on the first failed check.
        """
        for name, val in [("r", self.r), ("s", self.s)]:
            hex_str = _strip_0x(val)
            if len(hex_str) != 64:
                raise ValueError(f"Invalid {name}: expected 64 hex chars, got {len(hex_str)}")
            try:
                int(hex_str, 16)
            except ValueError:
                raise ValueError(f"Invalid {name}: not valid hexadecimal")
        return True

    @property
    def r_bytes(self) -> bytes:
        return bytes.fromhex(_strip_0x(self.r))

    @property
    def s_bytes(self) -> bytes:
        return bytes.fromhex(_strip_0x(self.s))

    def to_packed_hex(self) -> str:
        """
        Encode into the packed 65-byte hex string ``r || s || v``.

        Returns:
            0x-prefixed 132-character hex string.
        """
        self.validate_format()
        return "0x" + _strip_0x(self.r).lower() + _strip_0x(self.s).lower() + format(self.v, "02x")

    def to_rsv(self) -> Tuple[bytes, bytes, int]:
        """Return ``(r, s, v)`` in the argument order of ``executeMetaTransaction``."""
        return self.r_bytes, self.s_bytes, self.v


class SwapCallData(CanonicalModel):
    """
    Arguments of ``GasSwap.swap(bytes)`` before ABI encoding.

    Field order is the wire order of the ABI tuple
    ``(uint256, uint256, address[], address, uint256, uint8, bytes32, bytes32)``
    and must not be changed.

    Attributes:
        amount_in: Token amount pulled from the owner through the permit.
        amount_out_min: Minimum output accepted by the router.
        path: Swap path; ``path[0]`` is the permit token.
        recipient: Receiver of the swap output.
        deadline: Permit deadline (also the swap deadline).
        v / r / s: Permit signature components.
    """

    amount_in: int = Field(..., ge=0, description="uint256 amountIn")
    amount_out_min: int = Field(..., ge=0, description="uint256 amountOutMin")
    path: List[str] = Field(..., min_length=2, description="address[] swap path")
    recipient: str = Field(..., description="address recipient")
    deadline: int = Field(..., ge=0, description="uint256 deadline")
    v: int = Field(..., ge=0, le=255, description="uint8 v")
    r: str = Field(..., description="bytes32 r")
    s: str = Field(..., description="bytes32 s")

    @field_validator("r", "s")
    @classmethod
    def _check_bytes32(cls, value: str) -> str:
        if len(_strip_0x(value)) != 64:
            raise ValueError("bytes32 fields must be 64 hex chars")
        return value

    @property
    def token(self) -> str:
        """The token the embedded permit authorizes."""
        return self.path[0]

    def to_abi_values(self) -> List[Any]:
        """Values in ABI order, ready for ``eth_abi.encode``."""
        return [
            self.amount_in,
            self.amount_out_min,
            list(self.path),
            self.recipient,
            self.deadline,
            self.v,
            bytes.fromhex(_strip_0x(self.r)),
            bytes.fromhex(_strip_0x(self.s)),
        ]


class NetworkInfo(CanonicalModel):
    """Network descriptor returned by ``ChainAccessor.get_network()``."""

    chain_id: int = Field(..., ge=1, description="EVM chain id")
    name: Optional[str] = Field(None, description="Human-readable network name")


class TypedDataVerificationResult(BaseVerificationResult):
    """
    Outcome of an off-chain EIP-712 verification.

    Attributes:
        verification_type: Always ``"eip712"``.
        primary_type: ``"Permit"`` or ``"MetaTransaction"``.
        expected_signer: Address the signature must recover to.
        recovered_signer: Address actually recovered, when recovery succeeded.
    """

    verification_type: Literal["eip712"] = Field(default="eip712", description="Verification type identifier")
    primary_type: Optional[str] = Field(None, description="EIP-712 primary type")
    expected_signer: Optional[str] = Field(None, description="Expected signer address")
    recovered_signer: Optional[str] = Field(None, description="Recovered signer address")


class RelayTransactionConfirmation(BaseTransactionConfirmation):
    """
    Receipt data for a submitted relay transaction.

    Attributes:
        confirmation_type: Always ``"evm"``.
        tx_hash: Transaction hash (0x-prefixed).
        block_number: Block containing the transaction.
        gas_used: Gas consumed.
        gas_limit: Gas limit sent with the transaction.
        transaction_fee: Fee paid by the relayer, in wei.
        from_address: Relayer address (pays the gas).
        to_address: Relay contract address.
        meta_nonce: Relay nonce consumed, for relayed meta-transactions.
    """

    confirmation_type: Literal["evm"] = Field(default="evm", description="Confirmation type identifier")
    tx_hash: str = Field(..., description="Transaction hash (0x-prefixed hex string)")
    block_number: Optional[int] = Field(None, ge=0, description="Block number containing transaction")
    gas_used: Optional[int] = Field(None, ge=0, description="Actual gas consumed by transaction")
    gas_limit: Optional[int] = Field(None, ge=0, description="Gas limit specified for transaction")
    transaction_fee: Optional[int] = Field(None, ge=0, description="Transaction fee in wei")
    from_address: Optional[str] = Field(None, description="Transaction sender (relayer) address")
    to_address: Optional[str] = Field(None, description="Relay contract address")
    meta_nonce: Optional[int] = Field(None, ge=0, description="Relay nonce consumed by a meta-transaction")
