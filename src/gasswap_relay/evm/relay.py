"""
GasSwap Relay Client

High-level client for the gas-less swap flow:

1. the user signs an ERC-2612 permit letting the GasSwap relay pull
   ``amount_in`` of the input token,
2. the permit signature is packed into ``SwapCallData`` and wrapped in a
   ``swap(bytes)`` call,
3. either the user sends that call directly (``swap_with_permit``), or the
   call is wrapped in a meta-transaction envelope signed under the relay's
   domain and a relayer submits ``executeMetaTransaction`` and pays the gas
   (``relay_swap_with_permit``).

Reads go through a ``ChainAccessor``, writes through a ``RelaySubmitter`` and
signatures through a ``TypedDataSigner``, so each can be swapped for a test
double or another backend.

Nonces: an envelope is signed with ``getNonce(from)`` read immediately
before signing.  Concurrent relays for one address are serialized with a
per-address lock (``RelaySettings.serialize``); a ``NonceReplay`` is retried
by re-reading the nonce and signing again, with exponential backoff.
"""

import asyncio
import contextlib
import logging
import weakref
from dataclasses import dataclass
from typing import Optional, Sequence

from ..engine.exceptions import (
    ConfigurationError,
    NonceReplay,
    SignerMismatch,
    TransactionExecutionError,
)
from .chain import ChainAccessor, relay_address_matches
from .codec import encode_swap_call
from .constants import (
    DEFAULT_PERMIT_DEADLINE_SECONDS,
    DEFAULT_PERMIT_VERSION,
    META_DOMAIN_NAME,
    META_DOMAIN_VERSION,
    RelaySettings,
)
from .domains import DomainKind, build_domain
from .envelopes import build_meta_envelope, build_permit_message
from .schemas import EVMECDSASignature, RelayTransactionConfirmation
from .signatures import (
    assemble_swap_payload,
    ensure_signer,
    sign_meta_transaction,
    sign_permit,
)
from .signers import TypedDataSigner
from .standards import MetaTransactionDomain, MetaTransactionMessage, PermitDomain, PermitMessage
from .submitter import RelaySubmitter

logger = logging.getLogger(__name__)


@dataclass
class SignedPermit:
    """A permit message, the domain it was signed under and its signature."""
    domain: PermitDomain
    message: PermitMessage
    signature: EVMECDSASignature


@dataclass
class SwapCall:
    """
    A ready-to-submit swap.

    Attributes:
        permit: The embedded permit.
        payload: ABI-encoded ``SwapCallData`` (argument of ``swap``).
        function_signature: ``swap(bytes)`` selector + payload, the call a
            meta-transaction envelope wraps.
    """
    permit: SignedPermit
    payload: bytes
    function_signature: bytes


class RelayClient:
    """
    Sign and submit GasSwap permit swaps, directly or as meta-transactions.

    Args:
        chain: Read access (nonces, network, block time, balances).
        submitter: Write access; its account pays gas for relayed calls.
        relay_address: Deployed GasSwap contract; the permit spender and the
            meta-transaction ``verifyingContract``.
        settings: Retry, backoff and serialization settings.
        chain_id: Chain id for the relay domain salt; read from ``chain`` on
            first use when omitted.
        relay_name / relay_version: Relay domain name and version.

    Example::

        client = RelayClient(chain, submitter, relay_address)
        confirmation = await client.relay_swap_with_permit(
            signer,
            path=[token, weth],
            amount_in=10**18,
            token_name="MockERC20",
        )
    """

    def __init__(
        self,
        chain: ChainAccessor,
        submitter: RelaySubmitter,
        relay_address: str,
        settings: Optional[RelaySettings] = None,
        *,
        chain_id: Optional[int] = None,
        relay_name: str = META_DOMAIN_NAME,
        relay_version: str = META_DOMAIN_VERSION,
    ):
        if not relay_address:
            raise ConfigurationError("relay_address is required")
        if not relay_address_matches(chain, relay_address):
            raise ConfigurationError("Chain accessor is bound to a different relay contract")
        self.chain = chain
        self.submitter = submitter
        self.relay_address = relay_address
        self.settings = settings or RelaySettings()
        self.relay_name = relay_name
        self.relay_version = relay_version
        self._chain_id = chain_id
        # entries vanish once no relay for that sender holds or awaits the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    # ------------------------------------------------------------------
    # Domains and locks
    # ------------------------------------------------------------------

    async def get_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = (await self.chain.get_network()).chain_id
        return self._chain_id

    async def meta_domain(self) -> MetaTransactionDomain:
        return build_domain(
            DomainKind.META,
            relay_name=self.relay_name,
            relay_version=self.relay_version,
            relay_address=self.relay_address,
            chain_id=await self.get_chain_id(),
        )

    def _sender_lock(self, address: str):
        if not self.settings.serialize:
            return contextlib.nullcontext()
        key = address.lower()
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _backoff(self, attempt: int) -> float:
        return min(self.settings.backoff_base * (2 ** attempt), self.settings.backoff_max)

    # ------------------------------------------------------------------
    # Meta-transactions
    # ------------------------------------------------------------------

    async def relay(
        self,
        target_call_encoded: bytes,
        from_address: str,
        signer: TypedDataSigner,
    ) -> RelayTransactionConfirmation:
        """
        Execute ``target_call_encoded`` on the relay as ``from_address``.

        Reads ``getNonce(from_address)``, wraps the call in an envelope, signs
        it and submits ``executeMetaTransaction``.

        Raises:
            SignerMismatch: Before any network call, if ``signer`` is not
                ``from_address``.
            NonceReplay: When the nonce was still stale after ``max_retries``
                re-signed attempts.
            InvalidSignature / ExpiredDeadline / TransactionExecutionError:
                Remote rejection; never retried.
        """
        ensure_signer(signer, from_address)
        async with self._sender_lock(from_address):
            return await self._relay_with_retry(target_call_encoded, from_address, signer)

    async def _relay_with_retry(
        self,
        target_call_encoded: bytes,
        from_address: str,
        signer: TypedDataSigner,
    ) -> RelayTransactionConfirmation:
        domain = await self.meta_domain()
        attempt = 0
        while True:
            relay_nonce = await self.chain.get_nonce(from_address)
            envelope = build_meta_envelope(relay_nonce, from_address, target_call_encoded)
            signature = await sign_meta_transaction(signer, domain, envelope)
            logger.info(
                "Relaying meta-transaction from=%s nonce=%s attempt=%d",
                envelope.from_address, relay_nonce, attempt + 1,
            )
            try:
                return await self.submit_meta_transaction(envelope, signature)
            except NonceReplay:
                if attempt >= self.settings.max_retries:
                    logger.warning(
                        "Giving up on from=%s after %d nonce replays", envelope.from_address, attempt + 1
                    )
                    raise
                delay = self._backoff(attempt)
                logger.warning(
                    "Stale relay nonce %s for from=%s, re-signing in %.2fs",
                    relay_nonce, envelope.from_address, delay,
                )
                await self._sleep_async(delay)
                attempt += 1

    async def submit_meta_transaction(
        self,
        envelope: MetaTransactionMessage,
        signature: EVMECDSASignature,
    ) -> RelayTransactionConfirmation:
        """
        Submit an already signed envelope.

        GasSwap verifies the signature against its current nonce, so a
        replayed envelope reverts as a signer mismatch at estimation, or as a
        bare on-chain revert when another envelope was mined first.  On any
        revert the relay nonce is re-read; if it has moved past
        ``envelope.nonce`` the error is re-raised as ``NonceReplay``.
        """
        if signature.signature_type == "EIP2612":
            raise ValueError("A permit signature cannot authorize a meta-transaction")
        try:
            confirmation = await self.submitter.execute_meta_transaction(
                envelope.from_address,
                envelope.functionSignature,
                signature,
            )
        except NonceReplay:
            raise
        except TransactionExecutionError as e:
            current_nonce = await self.chain.get_nonce(envelope.from_address)
            if current_nonce > envelope.nonce:
                raise NonceReplay(
                    f"Envelope nonce {envelope.nonce} already consumed (relay nonce is {current_nonce})",
                    reason=e.reason,
                    revert_data=e.revert_data,
                    tx_hash=e.tx_hash,
                ) from e
            raise
        confirmation.meta_nonce = envelope.nonce
        return confirmation

    # ------------------------------------------------------------------
    # Permit swaps
    # ------------------------------------------------------------------

    async def sign_swap_permit(
        self,
        signer: TypedDataSigner,
        token: str,
        amount_in: int,
        *,
        token_name: str,
        token_version: str = DEFAULT_PERMIT_VERSION,
        deadline: Optional[int] = None,
    ) -> SignedPermit:
        """
        Sign a permit letting the relay pull ``amount_in`` of ``token``.

        The nonce is the token's ``nonces(owner)``; the deadline defaults to
        the latest block timestamp plus ``DEFAULT_PERMIT_DEADLINE_SECONDS``.
        """
        owner = signer.address()
        nonce = await self.chain.nonces(token, owner)
        if deadline is None:
            deadline = await self.chain.latest_timestamp() + DEFAULT_PERMIT_DEADLINE_SECONDS
        domain = build_domain(
            DomainKind.PERMIT,
            token_name=token_name,
            token_version=token_version,
            chain_id=await self.get_chain_id(),
            token_address=token,
        )
        message = build_permit_message(
            owner=owner,
            spender=self.relay_address,
            value=amount_in,
            nonce=nonce,
            deadline=deadline,
        )
        signature = await sign_permit(signer, domain, message)
        return SignedPermit(domain=domain, message=message, signature=signature)

    async def build_swap_call(
        self,
        signer: TypedDataSigner,
        path: Sequence[str],
        amount_in: int,
        *,
        token_name: str,
        token_version: str = DEFAULT_PERMIT_VERSION,
        amount_out_min: int = 0,
        recipient: Optional[str] = None,
        deadline: Optional[int] = None,
    ) -> SwapCall:
        """
        Sign the permit for ``path[0]`` and encode the ``swap(bytes)`` call.

        ``recipient`` defaults to the signer.
        """
        if len(path) < 2:
            raise ValueError("path must contain at least two tokens")
        permit = await self.sign_swap_permit(
            signer,
            path[0],
            amount_in,
            token_name=token_name,
            token_version=token_version,
            deadline=deadline,
        )
        payload = assemble_swap_payload(
            permit.signature,
            amount_in,
            amount_out_min,
            path,
            recipient or permit.message.owner,
            permit.message.deadline,
        )
        return SwapCall(permit=permit, payload=payload, function_signature=encode_swap_call(payload))

    async def swap_with_permit(
        self,
        signer: TypedDataSigner,
        path: Sequence[str],
        amount_in: int,
        *,
        token_name: str,
        token_version: str = DEFAULT_PERMIT_VERSION,
        amount_out_min: int = 0,
        recipient: Optional[str] = None,
        deadline: Optional[int] = None,
    ) -> RelayTransactionConfirmation:
        """
        Sign a permit and call ``swap`` directly from the submitter account.

        Raises:
            SignerMismatch: If the submitter account is not the signer; the
                relay takes the permit owner from the transaction sender.
        """
        sender = self.submitter.sender_address()
        if sender.lower() != signer.address().lower():
            raise SignerMismatch(expected=signer.address(), actual=sender)
        call = await self.build_swap_call(
            signer,
            path,
            amount_in,
            token_name=token_name,
            token_version=token_version,
            amount_out_min=amount_out_min,
            recipient=recipient,
            deadline=deadline,
        )
        logger.info("Submitting direct swap owner=%s token=%s amount_in=%s", sender, path[0], amount_in)
        return await self.submitter.swap(call.payload)

    async def relay_swap_with_permit(
        self,
        signer: TypedDataSigner,
        path: Sequence[str],
        amount_in: int,
        *,
        token_name: str,
        token_version: str = DEFAULT_PERMIT_VERSION,
        amount_out_min: int = 0,
        recipient: Optional[str] = None,
        deadline: Optional[int] = None,
    ) -> RelayTransactionConfirmation:
        """
        Gas-less swap: permit signature + meta-transaction signature + relayed submission.

        The permit is signed under the token domain and travels inside the
        swap payload; the envelope is signed under the relay domain.
        """
        owner = signer.address()
        async with self._sender_lock(owner):
            call = await self.build_swap_call(
                signer,
                path,
                amount_in,
                token_name=token_name,
                token_version=token_version,
                amount_out_min=amount_out_min,
                recipient=recipient,
                deadline=deadline,
            )
            return await self._relay_with_retry(call.function_signature, owner, signer)

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def whitelist_token(self, token: str, allowed: bool = True) -> RelayTransactionConfirmation:
        """Allow or disallow ``token`` as a swap input; the submitter must own the relay."""
        logger.info("Setting whitelist token=%s allowed=%s", token, allowed)
        return await self.submitter.whitelist_token(token, allowed)

    @staticmethod
    async def _sleep_async(seconds: float):
        await asyncio.sleep(seconds)
