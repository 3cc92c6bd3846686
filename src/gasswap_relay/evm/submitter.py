"""
Relay transaction submission.

``RelaySubmitter`` is the write side of the relay client.  ``Web3RelaySubmitter``
builds, signs and broadcasts GasSwap transactions with a relayer key on an
``AsyncWeb3`` connection, then polls for the receipt.

The relayer pays gas.  For ``executeMetaTransaction`` it can be any funded
account; for the direct ``swap`` entry point the relayer account is the
sender the contract sees, so it must own the permit.
"""

import asyncio
import logging
from typing import Any, Optional, Protocol, runtime_checkable

from eth_account import Account
from eth_utils import to_hex
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TransactionNotFound

from ..engine.exceptions import (
    BlockchainInteractionError,
    ConfigurationError,
    RelayBaseError,
    TransactionExecutionError,
)
from ..schemas.bases import TransactionStatus
from .chain import decode_revert
from .constants import (
    RelaySettings,
    get_relay_address_from_env,
    get_relayer_private_key_from_env,
    get_rpc_url,
)
from .contracts import GasSwapContract
from .schemas import EVMECDSASignature, RelayTransactionConfirmation

logger = logging.getLogger(__name__)


@runtime_checkable
class RelaySubmitter(Protocol):
    def sender_address(self) -> str:
        """Account that sends (and pays for) submitted transactions."""
        ...

    async def execute_meta_transaction(
        self,
        from_address: str,
        function_signature: bytes,
        signature: EVMECDSASignature,
    ) -> RelayTransactionConfirmation:
        ...

    async def swap(self, payload: bytes) -> RelayTransactionConfirmation:
        ...

    async def whitelist_token(self, token: str, allowed: bool) -> RelayTransactionConfirmation:
        ...


class Web3RelaySubmitter:
    """
    Submit GasSwap transactions from a relayer account.

    Args:
        w3: Connected ``AsyncWeb3`` instance.
        relayer_private_key: Gas-paying key; falls back to
            ``GASSWAP_RELAYER_PRIVATE_KEY``.
        relay_address: GasSwap address; falls back to ``GASSWAP_RELAY_ADDRESS``.
        settings: Receipt polling and gas buffer settings.

    Raises:
        ConfigurationError: If the key or the relay address cannot be resolved.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        relayer_private_key: Optional[str] = None,
        relay_address: Optional[str] = None,
        settings: Optional[RelaySettings] = None,
    ):
        resolved_pk = relayer_private_key or get_relayer_private_key_from_env()
        if not resolved_pk:
            raise ConfigurationError(
                "Relayer private key not provided. Either pass 'relayer_private_key' or "
                "set the GASSWAP_RELAYER_PRIVATE_KEY environment variable."
            )
        resolved_relay = relay_address or get_relay_address_from_env()
        if not resolved_relay:
            raise ConfigurationError(
                "Relay address not provided. Either pass 'relay_address' or "
                "set the GASSWAP_RELAY_ADDRESS environment variable."
            )

        self.w3 = w3
        self.settings = settings or RelaySettings()
        self.account = Account.from_key(resolved_pk)
        self.wallet_address = AsyncWeb3.to_checksum_address(self.account.address)
        self.relay = GasSwapContract(resolved_relay)

    @classmethod
    def from_env(cls, chain_id: int, settings: Optional[RelaySettings] = None) -> "Web3RelaySubmitter":
        """Connect to ``chain_id`` through ``get_rpc_url`` and read key and relay from the environment."""
        settings = settings or RelaySettings()
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(
            get_rpc_url(chain_id),
            request_kwargs={"timeout": settings.request_timeout},
        ))
        return cls(w3, settings=settings)

    def sender_address(self) -> str:
        return self.wallet_address

    async def execute_meta_transaction(
        self,
        from_address: str,
        function_signature: bytes,
        signature: EVMECDSASignature,
    ) -> RelayTransactionConfirmation:
        tx_fn = self.relay.execute_meta_transaction(self.w3, from_address, function_signature, signature)
        return await self._transact(tx_fn, "executeMetaTransaction")

    async def swap(self, payload: bytes) -> RelayTransactionConfirmation:
        tx_fn = self.relay.swap(self.w3, payload)
        return await self._transact(tx_fn, "swap")

    async def whitelist_token(self, token: str, allowed: bool) -> RelayTransactionConfirmation:
        tx_fn = self.relay.whitelist_token(self.w3, token, allowed)
        return await self._transact(tx_fn, "whitelistToken")

    async def _transact(self, tx_fn: Any, description: str) -> RelayTransactionConfirmation:
        raw_transaction, gas_limit = await self._construct_transaction(tx_fn, description)
        confirmation = await self._send_and_confirm(raw_transaction, description)
        confirmation.gas_limit = gas_limit
        return confirmation

    async def _construct_transaction(self, tx_fn: Any, description: str):
        """
        Estimate, build and sign ``tx_fn`` from the relayer account.

        A revert during estimation is how most failures surface (bad
        signature, stale nonce, expired deadline); it is classified with
        ``decode_revert`` and nothing is broadcast.

        Returns:
            ``(raw_transaction, gas_limit)``.
        """
        try:
            gas_estimate = await tx_fn.estimate_gas({"from": self.wallet_address})
            gas_price = await self.w3.eth.gas_price
            tx_nonce = await self.w3.eth.get_transaction_count(self.wallet_address)

            gas_limit = int(gas_estimate * self.settings.gas_buffer)
            tx_dict = await tx_fn.build_transaction({
                "from": self.wallet_address,
                "gas": gas_limit,
                "gasPrice": gas_price,
                "nonce": tx_nonce,
            })
        except ContractLogicError as e:
            error = decode_revert(e)
            logger.info("%s rejected during estimation: %s", description, error.reason)
            raise error from e
        except RelayBaseError:
            raise
        except Exception as e:
            raise BlockchainInteractionError(f"Failed to build {description} transaction: {e}") from e

        signed_tx = self.account.sign_transaction(tx_dict)
        return signed_tx.raw_transaction, gas_limit

    async def _send_and_confirm(self, raw_transaction: bytes, description: str) -> RelayTransactionConfirmation:
        """
        Broadcast a signed transaction and poll for its receipt.

        Returns a ``TIMEOUT`` confirmation when no receipt shows up within
        ``receipt_max_attempts`` polls.

        Raises:
            BlockchainInteractionError: Broadcast failed.
            TransactionExecutionError: The transaction was mined and reverted.
        """
        try:
            tx_hash = await self.w3.eth.send_raw_transaction(raw_transaction)
        except ContractLogicError as e:
            raise decode_revert(e) from e
        except Exception as e:
            raise BlockchainInteractionError(f"Failed to broadcast {description}: {e}") from e
        tx_hash_hex = to_hex(tx_hash)
        logger.info("Broadcast %s tx=%s", description, tx_hash_hex)

        receipt = None
        for _ in range(self.settings.receipt_max_attempts):
            try:
                receipt = await self.w3.eth.get_transaction_receipt(tx_hash_hex)
                if receipt:
                    break
            except TransactionNotFound:
                pass  # still pending
            await self._sleep_async(self.settings.receipt_poll_interval)

        if not receipt:
            logger.warning("Timed out waiting for %s receipt tx=%s", description, tx_hash_hex)
            return RelayTransactionConfirmation(
                status=TransactionStatus.TIMEOUT,
                tx_hash=tx_hash_hex,
                from_address=self.wallet_address,
                to_address=self.relay.address,
                error_message="Transaction confirmation timed out",
            )

        if receipt.get("status") != 1:
            raise TransactionExecutionError(
                f"{description} reverted on-chain",
                tx_hash=tx_hash_hex,
            )

        current_block = await self.w3.eth.block_number
        return RelayTransactionConfirmation(
            status=TransactionStatus.SUCCESS,
            tx_hash=tx_hash_hex,
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
            confirmations=max(current_block - receipt["blockNumber"], 0),
            transaction_fee=receipt["gasUsed"] * receipt.get("effectiveGasPrice", 0),
            from_address=receipt.get("from", self.wallet_address),
            to_address=receipt.get("to", self.relay.address),
        )

    @staticmethod
    async def _sleep_async(seconds: float):
        """Simple async sleep utility."""
        await asyncio.sleep(seconds)
