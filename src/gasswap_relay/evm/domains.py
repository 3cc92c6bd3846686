"""
EIP-712 Domain Builder

Builds the two signing domains of the GasSwap flow and computes their
domain separators.

* ``DomainKind.PERMIT`` -> :class:`PermitDomain`
  ``{name, version, chainId, verifyingContract}`` of an ERC-2612 token.
* ``DomainKind.META`` -> :class:`MetaTransactionDomain`
  ``{name, version, verifyingContract, salt}`` of the GasSwap relay, where
  ``salt`` is the chain id as a 32-byte big-endian value.

A signature produced under one shape never verifies under the other; the
verifier reports it as a signer mismatch, not as a format error.
"""

from enum import Enum
from typing import Any, Dict, List

from eth_abi import encode
from eth_utils import keccak, to_checksum_address

from .standards import (
    MetaTransactionDomain,
    PermitDomain,
    TypedDataDomain,
)


class DomainKind(str, Enum):
    PERMIT = "permit"
    META = "meta"


_REQUIRED_PARAMS: Dict[DomainKind, List[str]] = {
    DomainKind.PERMIT: ["token_name", "token_version", "chain_id", "token_address"],
    DomainKind.META: ["relay_name", "relay_version", "relay_address", "chain_id"],
}


def chain_id_to_salt(chain_id: int) -> bytes:
    """Encode ``chain_id`` as a left-zero-padded 32-byte big-endian value."""
    chain_id = int(chain_id)
    if chain_id < 0:
        raise ValueError(f"chain_id must be non-negative, got {chain_id}")
    return chain_id.to_bytes(32, "big")


def build_domain(kind: DomainKind, **params: Any) -> TypedDataDomain:
    """
    Build the EIP-712 domain for ``kind``.

    Args:
        kind: ``DomainKind.PERMIT`` or ``DomainKind.META`` (or their string values).
        **params: For PERMIT ``token_name``, ``token_version``, ``chain_id``,
            ``token_address``; for META ``relay_name``, ``relay_version``,
            ``relay_address``, ``chain_id``.

    Returns:
        ``PermitDomain`` or ``MetaTransactionDomain``.

    Raises:
        ValueError: Unknown kind or missing parameters.

    Example::

        permit_domain = build_domain(
            DomainKind.PERMIT,
            token_name="MockERC20", token_version="1",
            chain_id=1337, token_address=token.address,
        )
        meta_domain = build_domain(
            DomainKind.META,
            relay_name="GasSwap", relay_version="2",
            relay_address=gas_swap.address, chain_id=1337,
        )
    """
    kind = DomainKind(kind)
    missing = [name for name in _REQUIRED_PARAMS[kind] if params.get(name) is None]
    if missing:
        raise ValueError(f"Missing {kind.value} domain parameters: {', '.join(missing)}")

    if kind is DomainKind.PERMIT:
        return PermitDomain(
            name=params["token_name"],
            version=str(params["token_version"]),
            chainId=int(params["chain_id"]),
            verifyingContract=to_checksum_address(params["token_address"]),
        )

    return MetaTransactionDomain(
        name=params["relay_name"],
        version=str(params["relay_version"]),
        verifyingContract=to_checksum_address(params["relay_address"]),
        salt=chain_id_to_salt(params["chain_id"]),
    )


def _encode_domain_value(type_: str, value: Any) -> bytes:
    if type_ == "string":
        return keccak(text=value)
    if type_ == "bytes32":
        return encode(["bytes32"], [bytes(value)])
    return encode([type_], [value])


def domain_separator(domain: TypedDataDomain) -> bytes:
    """
    Compute ``hashStruct(EIP712Domain)`` for ``domain``.

    The type string is derived from the domain's own field list, so the
    permit and meta-transaction domains hash differently even when their
    name, contract and chain coincide.
    """
    fields = domain.eip712_type()
    type_string = "EIP712Domain(" + ",".join(f"{f['type']} {f['name']}" for f in fields) + ")"
    values = domain.to_dict()
    encoded = keccak(text=type_string) + b"".join(
        _encode_domain_value(f["type"], values[f["name"]]) for f in fields
    )
    return keccak(encoded)
