"""
Key-management primitives.

A signer exposes ``address()`` and an EIP-712 typed-data signing coroutine
``sign_typed_data(domain, types, message)`` returning a 65-byte ``0x`` hex
signature.  ``types`` never contains ``EIP712Domain``: the signer derives the
domain separator from ``domain`` itself.

``LocalAccountSigner`` signs in-process with ``eth_account``.  Hardware
wallets or remote key services plug in by implementing the same protocol.
"""

from typing import Any, Dict, List, Protocol, runtime_checkable

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address, to_hex


@runtime_checkable
class TypedDataSigner(Protocol):
    def address(self) -> str:
        ...

    async def sign_typed_data(
        self,
        domain: Dict[str, Any],
        types: Dict[str, List[Dict[str, str]]],
        message: Dict[str, Any],
    ) -> str:
        ...


class LocalAccountSigner:
    """
    In-process signer backed by an ``eth_account`` ``LocalAccount``.

    Example::

        signer = LocalAccountSigner("0x...")
        raw = await signer.sign_typed_data(domain, {"Permit": [...]}, message)
    """

    def __init__(self, private_key: str):
        if not private_key:
            raise ValueError("Private key is required for signing.")
        self._account: LocalAccount = Account.from_key(private_key)

    def address(self) -> str:
        return to_checksum_address(self._account.address)

    async def sign_typed_data(
        self,
        domain: Dict[str, Any],
        types: Dict[str, List[Dict[str, str]]],
        message: Dict[str, Any],
    ) -> str:
        # The domain type is derived from ``domain``; a second definition is ambiguous.
        if "EIP712Domain" in types:
            raise ValueError("types must not include EIP712Domain")
        signed = self._account.sign_typed_data(
            domain_data=domain,
            message_types=types,
            message_data=message,
        )
        return to_hex(signed.signature)
