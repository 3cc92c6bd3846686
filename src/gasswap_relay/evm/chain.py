"""
Chain access for the relay client.

``ChainAccessor`` is the read side the relay client depends on: relay and
token nonces, network id, latest block time and balances.  ``Web3ChainAccessor``
implements it on ``web3.AsyncWeb3``; tests substitute an in-memory chain.

``decode_revert`` maps node revert reasons onto the remote error classes.
The reason strings GasSwap and its tokens revert with are not part of any
ABI, so the table is a module-level list callers may extend.
"""

import logging
from typing import Awaitable, List, Optional, Protocol, Tuple, Type, TypeVar, Union, runtime_checkable

from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError

from ..engine.exceptions import (
    BlockchainInteractionError,
    ExpiredDeadline,
    InvalidSignature,
    NonceReplay,
    RelayBaseError,
    TransactionExecutionError,
)
from .contracts import GasSwapContract, PermitTokenContract
from .schemas import NetworkInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Case-insensitive substring -> error class, checked in order.
REVERT_REASON_PATTERNS: List[Tuple[str, Type[TransactionExecutionError]]] = [
    ("expired", ExpiredDeadline),
    ("deadline", ExpiredDeadline),
    ("signer and signature do not match", InvalidSignature),
    ("invalid signature", InvalidSignature),
    ("nonce", NonceReplay),
]


def _revert_reason(error: Union[BaseException, str]) -> Tuple[str, object]:
    if isinstance(error, str):
        return error, None
    message = getattr(error, "message", None) or str(error)
    return message, getattr(error, "data", None)


def decode_revert(error: Union[BaseException, str]) -> TransactionExecutionError:
    """
    Classify a revert.

    Args:
        error: A ``ContractLogicError`` (or any exception carrying the node's
            message) or a bare reason string.

    Returns:
        ``ExpiredDeadline``, ``InvalidSignature`` or ``NonceReplay`` when the
        reason matches ``REVERT_REASON_PATTERNS``, otherwise a plain
        ``TransactionExecutionError``.  ``reason`` and ``revert_data`` are
        set on the result either way.
    """
    reason, data = _revert_reason(error)
    lowered = reason.lower()
    for pattern, error_class in REVERT_REASON_PATTERNS:
        if pattern in lowered:
            return error_class(f"Transaction reverted: {reason}", reason=reason, revert_data=data)
    return TransactionExecutionError(f"Transaction reverted: {reason}", reason=reason, revert_data=data)


@runtime_checkable
class ChainAccessor(Protocol):
    async def get_nonce(self, address: str) -> int:
        """Relay ``getNonce(address)``."""
        ...

    async def nonces(self, token: str, address: str) -> int:
        """Token ``nonces(address)`` used by ERC-2612 permits."""
        ...

    async def get_network(self) -> NetworkInfo:
        ...

    async def latest_timestamp(self) -> int:
        ...

    async def balance_of(self, token: str, address: str) -> int:
        ...


class Web3ChainAccessor:
    """
    ``ChainAccessor`` on an ``AsyncWeb3`` instance.

    Example::

        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(get_rpc_url(1285)))
        chain = Web3ChainAccessor(w3, relay_address)
        nonce = await chain.get_nonce(user)
    """

    def __init__(self, w3: AsyncWeb3, relay_address: str):
        self.w3 = w3
        self.relay = GasSwapContract(relay_address)

    async def _call(self, description: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except RelayBaseError:
            raise
        except ContractLogicError as e:
            raise decode_revert(e) from e
        except Exception as e:
            logger.warning("RPC call failed: %s: %s", description, e)
            raise BlockchainInteractionError(f"{description} failed: {e}") from e

    async def get_nonce(self, address: str) -> int:
        return await self._call("getNonce", self.relay.get_nonce(self.w3, address))

    async def nonces(self, token: str, address: str) -> int:
        return await self._call("nonces", PermitTokenContract(token).nonces(self.w3, address))

    async def get_network(self) -> NetworkInfo:
        chain_id = await self._call("eth_chainId", self._chain_id())
        return NetworkInfo(chain_id=chain_id)

    async def latest_timestamp(self) -> int:
        block = await self._call("eth_getBlockByNumber", self.w3.eth.get_block("latest"))
        return int(block["timestamp"])

    async def balance_of(self, token: str, address: str) -> int:
        return await self._call("balanceOf", PermitTokenContract(token).balance_of(self.w3, address))

    async def _chain_id(self) -> int:
        return int(await self.w3.eth.chain_id)


def relay_address_matches(chain: ChainAccessor, relay_address: Optional[str]) -> bool:
    """True when ``chain`` reads from ``relay_address`` (or carries no relay binding)."""
    bound = getattr(getattr(chain, "relay", None), "address", None)
    if not isinstance(bound, str) or relay_address is None:
        return True
    return bound.lower() == relay_address.lower()
