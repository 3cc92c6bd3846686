from dataclasses import dataclass, field
from typing import Dict, Any, List, Union


# -----------------------------
# EIP-712 type definitions
# -----------------------------

PERMIT_DOMAIN_TYPE: List[Dict[str, str]] = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

META_DOMAIN_TYPE: List[Dict[str, str]] = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "verifyingContract", "type": "address"},
    {"name": "salt", "type": "bytes32"},
]

PERMIT_TYPE: List[Dict[str, str]] = [
    {"name": "owner", "type": "address"},
    {"name": "spender", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "nonce", "type": "uint256"},
    {"name": "deadline", "type": "uint256"},
]

META_TRANSACTION_TYPE: List[Dict[str, str]] = [
    {"name": "nonce", "type": "uint256"},
    {"name": "from", "type": "address"},
    {"name": "functionSignature", "type": "bytes"},
]


# -----------------------------
# EIP-712 Domains
# -----------------------------

@dataclass
class PermitDomain:
    """
    ERC-2612 permit domain of a token.

    Key order is name, version, chainId, verifyingContract; it must match the
    token's declared ``EIP712Domain`` type.
    """
    name: str
    version: str
    chainId: int
    verifyingContract: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chainId,
            "verifyingContract": self.verifyingContract,
        }

    def eip712_type(self) -> List[Dict[str, str]]:
        return [dict(entry) for entry in PERMIT_DOMAIN_TYPE]


@dataclass
class MetaTransactionDomain:
    """
    Meta-transaction domain of the GasSwap relay.

    Binds the chain through ``salt`` (chain id as a left-padded 32-byte
    big-endian value) instead of a ``chainId`` field, so it is not
    interchangeable with :class:`PermitDomain`.
    """
    name: str
    version: str
    verifyingContract: str
    salt: bytes

    def __post_init__(self):
        if len(self.salt) != 32:
            raise ValueError(f"salt must be 32 bytes, got {len(self.salt)}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "verifyingContract": self.verifyingContract,
            "salt": self.salt,
        }

    def eip712_type(self) -> List[Dict[str, str]]:
        return [dict(entry) for entry in META_DOMAIN_TYPE]


TypedDataDomain = Union[PermitDomain, MetaTransactionDomain]


# -----------------------------
# Messages
# -----------------------------

@dataclass
class PermitMessage:
    """
    Permit message as defined in EIP-2612.

    ``nonce`` must equal the token's ``nonces(owner)`` when the permit is
    consumed, otherwise the signature no longer verifies.
    """
    owner: str
    spender: str
    value: int
    nonce: int
    deadline: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "spender": self.spender,
            "value": self.value,
            "nonce": self.nonce,
            "deadline": self.deadline,
        }


@dataclass
class MetaTransactionMessage:
    """
    "Execute ``functionSignature`` as if sent by ``from``."

    The EIP defines the field name `from` which is a Python reserved word;
    this class uses `from_address` as the attribute name and maps it to
    `from` in `to_dict()`.

    Attributes:
        nonce: Relay nonce of ``from_address`` at execution time.
        from_address: True sender; the recovered signer must equal it.
        functionSignature: ABI-encoded selector + arguments of the wrapped call.
    """
    nonce: int
    from_address: str
    functionSignature: bytes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nonce": self.nonce,
            "from": self.from_address,
            "functionSignature": self.functionSignature,
        }


# -----------------------------
# Typed data containers
# -----------------------------

@dataclass
class PermitTypedData:
    """
    EIP-712 payload for an ERC-2612 ``permit``.

    ``to_dict()`` yields ``{types, primaryType, domain, message}`` including
    the ``EIP712Domain`` entry, the layout ``eth_signTypedData_v4`` expects.
    """
    domain: PermitDomain
    message: PermitMessage

    primary_type: str = "Permit"

    types: Dict[str, List[Dict[str, str]]] = field(
        default_factory=lambda: {
            "EIP712Domain": [dict(entry) for entry in PERMIT_DOMAIN_TYPE],
            "Permit": [dict(entry) for entry in PERMIT_TYPE],
        }
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "types": self.types,
            "primaryType": self.primary_type,
            "domain": self.domain.to_dict(),
            "message": self.message.to_dict(),
        }


@dataclass
class MetaTransactionTypedData:
    """
    EIP-712 payload for a GasSwap ``MetaTransaction`` envelope.

    Same layout as :class:`PermitTypedData`, bound to the relay's salted
    domain instead of the token's.
    """
    domain: MetaTransactionDomain
    message: MetaTransactionMessage

    primary_type: str = "MetaTransaction"

    types: Dict[str, List[Dict[str, str]]] = field(
        default_factory=lambda: {
            "EIP712Domain": [dict(entry) for entry in META_DOMAIN_TYPE],
            "MetaTransaction": [dict(entry) for entry in META_TRANSACTION_TYPE],
        }
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "types": self.types,
            "primaryType": self.primary_type,
            "domain": self.domain.to_dict(),
            "message": self.message.to_dict(),
        }
