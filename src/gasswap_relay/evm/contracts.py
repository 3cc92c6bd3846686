"""
Typed contract handles.

A ``ContractHandle`` pairs an address with an explicit ABI and binds them to
an ``AsyncWeb3`` instance on demand.  No artifact lookup or runtime
reflection happens: each handle subclass lists exactly the calls the relay
client needs.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from web3 import AsyncWeb3

from .ERC20_ABI import get_permit_token_abi
from .GASSWAP_ABI import get_gasswap_abi
from .schemas import EVMECDSASignature


@dataclass
class ContractHandle:
    """Address + ABI, bound lazily to a web3 instance."""
    address: str
    abi: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        self.address = AsyncWeb3.to_checksum_address(self.address)

    def bind(self, w3: AsyncWeb3):
        return w3.eth.contract(address=self.address, abi=self.abi)


@dataclass
class PermitTokenContract(ContractHandle):
    """ERC-20 token with ERC-2612 ``permit``."""
    abi: List[Dict[str, Any]] = field(default_factory=get_permit_token_abi)

    async def nonces(self, w3: AsyncWeb3, owner: str) -> int:
        contract = self.bind(w3)
        return int(await contract.functions.nonces(AsyncWeb3.to_checksum_address(owner)).call())

    async def balance_of(self, w3: AsyncWeb3, account: str) -> int:
        contract = self.bind(w3)
        return int(await contract.functions.balanceOf(AsyncWeb3.to_checksum_address(account)).call())


@dataclass
class GasSwapContract(ContractHandle):
    """The GasSwap relay: swap entry point, meta-transaction executor and whitelist."""
    abi: List[Dict[str, Any]] = field(default_factory=get_gasswap_abi)

    async def get_nonce(self, w3: AsyncWeb3, user: str) -> int:
        contract = self.bind(w3)
        return int(await contract.functions.getNonce(AsyncWeb3.to_checksum_address(user)).call())

    def swap(self, w3: AsyncWeb3, payload: bytes):
        """Unsent ``swap(payload)`` contract function."""
        return self.bind(w3).functions.swap(bytes(payload))

    def execute_meta_transaction(
        self,
        w3: AsyncWeb3,
        from_address: str,
        function_signature: bytes,
        signature: EVMECDSASignature,
    ):
        """Unsent ``executeMetaTransaction(from, functionSignature, r, s, v)``."""
        r, s, v = signature.to_rsv()
        return self.bind(w3).functions.executeMetaTransaction(
            AsyncWeb3.to_checksum_address(from_address),
            bytes(function_signature),
            r,
            s,
            v,
        )

    def whitelist_token(self, w3: AsyncWeb3, token: str, allowed: bool):
        """Unsent ``whitelistToken(token, allowed)``."""
        return self.bind(w3).functions.whitelistToken(
            AsyncWeb3.to_checksum_address(token), bool(allowed)
        )
