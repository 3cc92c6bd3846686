"""
EVM Typed-Data Verification Helpers

Off-chain verification of the two GasSwap signatures.  Both verifiers
rebuild the EIP-712 payload with the same dataclasses the signing path uses,
recover the signer from (v, r, s) with ``eth_account`` and compare it with
the expected address.  Optional chain state (nonce, block time) supplied by
the caller enables the replay and expiry checks.

The verifiers never raise: every failure is reported through a
``TypedDataVerificationResult`` so a relayer can reject a request before
spending gas on a transaction that would revert.

Current coverage
----------------
verify_permit
    ERC-2612 ``Permit`` under the token domain.
verify_meta_transaction
    GasSwap ``MetaTransaction`` under the relay's salted domain.
"""

import time
from typing import Any, Dict, List, Optional

from eth_account import Account
from eth_account.messages import encode_typed_data

from ..schemas.bases import VerificationStatus
from .schemas import EVMECDSASignature, TypedDataVerificationResult
from .standards import (
    MetaTransactionDomain,
    MetaTransactionMessage,
    MetaTransactionTypedData,
    PermitDomain,
    PermitMessage,
    PermitTypedData,
)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def recover_typed_data_signer(
    domain: Dict[str, Any],
    primary_type: str,
    types: Dict[str, List[Dict[str, str]]],
    message: Dict[str, Any],
    signature: EVMECDSASignature,
) -> str:
    """
    Recover the address that signed an EIP-712 payload.

    Args:
        domain: Domain values (``to_dict()`` of a domain dataclass).
        primary_type: ``"Permit"`` or ``"MetaTransaction"``.
        types: Type definitions including ``EIP712Domain``.
        message: Message values.
        signature: Split signature.

    Returns:
        Checksummed signer address.

    Raises:
        Exception: Whatever ``eth_account`` raises for an unrecoverable
            signature or an inconsistent payload.
    """
    signable = encode_typed_data(full_message={
        "types": types,
        "primaryType": primary_type,
        "domain": domain,
        "message": message,
    })
    return Account.recover_message(
        signable,
        vrs=(signature.v, int(signature.r, 16), int(signature.s, 16)),
    )


def _recover(full_message: Dict[str, Any], signature: EVMECDSASignature) -> Optional[str]:
    try:
        return recover_typed_data_signer(
            full_message["domain"],
            full_message["primaryType"],
            full_message["types"],
            full_message["message"],
            signature,
        )
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Permit
# ---------------------------------------------------------------------------

def verify_permit(
    *,
    domain: PermitDomain,
    message: PermitMessage,
    signature: EVMECDSASignature,
    on_chain_nonce: Optional[int] = None,
    current_time: Optional[int] = None,
) -> TypedDataVerificationResult:
    """
    Verify an ERC-2612 permit signature.

    Checks, returning on the first failure:

    1. **Deadline** -- ``current_time`` must not be past ``message.deadline``.
    2. **Nonce** -- when ``on_chain_nonce`` is supplied it must equal
       ``message.nonce``; a lower message nonce means the permit was
       already consumed.
    3. **ECDSA recovery** -- the recovered signer must equal ``message.owner``.

    Args:
        domain: Token permit domain.
        message: Permit message.
        signature: Split permit signature.
        on_chain_nonce: Optional ``nonces(owner)`` read from the token.
        current_time: Unix time for the deadline check; defaults to now.

    Returns:
        ``TypedDataVerificationResult``; ``is_valid`` only when every check passes.
    """
    now = int(current_time) if current_time is not None else int(time.time())

    def _fail(
        status: VerificationStatus,
        text: str,
        error_details: Optional[Dict[str, Any]] = None,
        recovered: Optional[str] = None,
    ) -> TypedDataVerificationResult:
        return TypedDataVerificationResult(
            status=status,
            is_valid=False,
            message=text,
            error_details=error_details,
            primary_type="Permit",
            expected_signer=message.owner,
            recovered_signer=recovered,
        )

    if now > int(message.deadline):
        return _fail(
            VerificationStatus.EXPIRED,
            f"Permit expired: current_time={now} > deadline={message.deadline}.",
            {"current_time": now, "deadline": message.deadline},
        )

    if on_chain_nonce is not None and int(on_chain_nonce) != int(message.nonce):
        return _fail(
            VerificationStatus.REPLAY_ATTACK,
            f"Permit nonce {message.nonce} does not match on-chain nonce {on_chain_nonce}.",
            {"nonce": message.nonce, "on_chain_nonce": on_chain_nonce},
        )

    recovered = _recover(PermitTypedData(domain=domain, message=message).to_dict(), signature)
    if recovered is None or recovered.lower() != message.owner.lower():
        return _fail(
            VerificationStatus.INVALID_SIGNATURE,
            "Permit signature does not recover to the owner.",
            {"owner": message.owner},
            recovered,
        )

    return TypedDataVerificationResult(
        status=VerificationStatus.SUCCESS,
        is_valid=True,
        message="Permit signature verified.",
        primary_type="Permit",
        expected_signer=message.owner,
        recovered_signer=recovered,
    )


# ---------------------------------------------------------------------------
# Meta-transaction
# ---------------------------------------------------------------------------

def verify_meta_transaction(
    *,
    domain: MetaTransactionDomain,
    message: MetaTransactionMessage,
    signature: EVMECDSASignature,
    on_chain_nonce: Optional[int] = None,
) -> TypedDataVerificationResult:
    """
    Verify a GasSwap meta-transaction signature.

    A stale nonce is reported as ``REPLAY_ATTACK`` before recovery is
    attempted, mirroring how the relay would reject the envelope.
    """

    def _fail(
        status: VerificationStatus,
        text: str,
        error_details: Optional[Dict[str, Any]] = None,
        recovered: Optional[str] = None,
    ) -> TypedDataVerificationResult:
        return TypedDataVerificationResult(
            status=status,
            is_valid=False,
            message=text,
            error_details=error_details,
            primary_type="MetaTransaction",
            expected_signer=message.from_address,
            recovered_signer=recovered,
        )

    if on_chain_nonce is not None and int(on_chain_nonce) != int(message.nonce):
        return _fail(
            VerificationStatus.REPLAY_ATTACK,
            f"Envelope nonce {message.nonce} does not match relay nonce {on_chain_nonce}.",
            {"nonce": message.nonce, "on_chain_nonce": on_chain_nonce},
        )

    full_message = MetaTransactionTypedData(domain=domain, message=message).to_dict()
    recovered = _recover(full_message, signature)
    if recovered is None or recovered.lower() != message.from_address.lower():
        return _fail(
            VerificationStatus.INVALID_SIGNATURE,
            "Signer and signature do not match.",
            {"from": message.from_address},
            recovered,
        )

    return TypedDataVerificationResult(
        status=VerificationStatus.SUCCESS,
        is_valid=True,
        message="Meta-transaction signature verified.",
        primary_type="MetaTransaction",
        expected_signer=message.from_address,
        recovered_signer=recovered,
    )
