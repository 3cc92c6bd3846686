"""
EVM Off-Chain Signing Utilities

EIP-712 signing helpers for the two payloads of the GasSwap flow.  Signing
goes through an injected :class:`TypedDataSigner`; no RPC calls are made.

Exported helpers
----------------
sign_permit
    Sign an ERC-2612 ``Permit`` under the token's permit domain and return
    the split (r, s, v) signature.

sign_meta_transaction
    Sign a GasSwap ``MetaTransaction`` envelope under the relay's salted
    domain and return the split (r, s, v) signature.

assemble_swap_payload
    ABI-encode the ``SwapCallData`` tuple that carries a permit signature
    into ``GasSwap.swap(bytes)``.

build_permit_typed_data / build_meta_transaction_typed_data
    Low-level helpers returning the full typed-data payload (including
    ``EIP712Domain``) without signing.  Useful when signing is handled by an
    external wallet speaking ``eth_signTypedData_v4``.

The two signatures of a relayed swap use different domains and must never
be submitted in place of each other.
"""

import logging
from typing import Any, Dict, Sequence, Tuple

from ..engine.exceptions import SignerMismatch
from .codec import encode_swap_call_data, split_signature
from .schemas import EVMECDSASignature, SwapCallData
from .signers import TypedDataSigner
from .standards import (
    MetaTransactionDomain,
    MetaTransactionMessage,
    MetaTransactionTypedData,
    PermitDomain,
    PermitMessage,
    PermitTypedData,
)

logger = logging.getLogger(__name__)


def build_permit_typed_data(domain: PermitDomain, message: PermitMessage) -> PermitTypedData:
    """Wrap a permit domain and message in an EIP-712 envelope without signing."""
    if not isinstance(domain, PermitDomain):
        raise TypeError(f"Permit must be signed under a PermitDomain, got {type(domain).__name__}")
    return PermitTypedData(domain=domain, message=message)


def build_meta_transaction_typed_data(
    domain: MetaTransactionDomain,
    message: MetaTransactionMessage,
) -> MetaTransactionTypedData:
    """Wrap a meta-transaction domain and envelope in an EIP-712 envelope without signing."""
    if not isinstance(domain, MetaTransactionDomain):
        raise TypeError(
            f"MetaTransaction must be signed under a MetaTransactionDomain, got {type(domain).__name__}"
        )
    return MetaTransactionTypedData(domain=domain, message=message)


def strip_domain_type(full_message: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any], Dict[str, Any]]:
    """
    Split a full typed-data dict into ``(domain, types, message)`` for a signer.

    The ``EIP712Domain`` entry is removed from ``types``; the signer derives
    the domain separator from ``domain`` itself.
    """
    types = {name: fields for name, fields in full_message["types"].items() if name != "EIP712Domain"}
    return full_message["domain"], types, full_message["message"]


def ensure_signer(signer: TypedDataSigner, expected: str) -> str:
    """
    Fail fast when ``signer`` cannot sign for ``expected``.

    Raises:
        SignerMismatch: If the addresses differ (case-insensitive).
    """
    actual = signer.address()
    if actual.lower() != expected.lower():
        raise SignerMismatch(expected=expected, actual=actual)
    return actual


async def _sign_full_message(
    signer: TypedDataSigner,
    full_message: Dict[str, Any],
) -> EVMECDSASignature:
    domain, types, message = strip_domain_type(full_message)
    raw_signature = await signer.sign_typed_data(domain, types, message)
    return split_signature(raw_signature)


async def sign_permit(
    signer: TypedDataSigner,
    domain: PermitDomain,
    message: PermitMessage,
) -> EVMECDSASignature:
    """
    Sign an ERC-2612 permit and return its (r, s, v) components.

    Args:
        signer: Key holder; its address must equal ``message.owner``.
        domain: Token permit domain (see ``build_domain(DomainKind.PERMIT, ...)``).
        message: Permit message; ``nonce`` must be the token's current
            ``nonces(owner)``.

    Returns:
        ``EVMECDSASignature`` with ``signature_type="EIP2612"``.

    Raises:
        SignerMismatch: If the signer is not the permit owner.
        MalformedSignature: If the signer returns anything but 65 bytes.

    Example::

        sig = await sign_permit(signer, permit_domain, permit_message)
        payload = assemble_swap_payload(sig, amount_in, 0, path, owner, deadline)
    """
    ensure_signer(signer, message.owner)
    typed_data = build_permit_typed_data(domain, message)
    signature = await _sign_full_message(signer, typed_data.to_dict())
    logger.debug(
        "Signed permit owner=%s spender=%s nonce=%s deadline=%s",
        message.owner, message.spender, message.nonce, message.deadline,
    )
    return signature.model_copy(update={"signature_type": "EIP2612"})


async def sign_meta_transaction(
    signer: TypedDataSigner,
    domain: MetaTransactionDomain,
    message: MetaTransactionMessage,
) -> EVMECDSASignature:
    """
    Sign a GasSwap meta-transaction envelope and return its (r, s, v) components.

    Args:
        signer: Key holder; its address must equal ``message.from_address``.
        domain: Relay domain (see ``build_domain(DomainKind.META, ...)``).
        message: Envelope built by ``build_meta_envelope``.

    Returns:
        ``EVMECDSASignature`` with ``signature_type="MetaTransaction"``.

    Raises:
        SignerMismatch: If the signer is not the envelope's sender.
        MalformedSignature: If the signer returns anything but 65 bytes.
    """
    ensure_signer(signer, message.from_address)
    typed_data = build_meta_transaction_typed_data(domain, message)
    signature = await _sign_full_message(signer, typed_data.to_dict())
    logger.debug("Signed meta-transaction from=%s nonce=%s", message.from_address, message.nonce)
    return signature.model_copy(update={"signature_type": "MetaTransaction"})


def assemble_swap_payload(
    permit_signature: EVMECDSASignature,
    amount_in: int,
    amount_out_min: int,
    path: Sequence[str],
    recipient: str,
    deadline: int,
) -> bytes:
    """
    ABI-encode the ``SwapCallData`` tuple carrying a permit signature.

    ``deadline`` must be the value the permit was signed with; the relay
    forwards it unchanged into ``permit()``.

    Raises:
        ValueError: If ``permit_signature`` was produced for the relay's
            meta-transaction domain, or the path is shorter than two hops.
    """
    if permit_signature.signature_type == "MetaTransaction":
        raise ValueError("A meta-transaction signature cannot authorize a permit")
    call_data = SwapCallData(
        amount_in=int(amount_in),
        amount_out_min=int(amount_out_min),
        path=list(path),
        recipient=recipient,
        deadline=int(deadline),
        v=permit_signature.v,
        r=permit_signature.r,
        s=permit_signature.s,
    )
    return encode_swap_call_data(call_data)
