"""
Exception and Error Definitions Module

Defines the exception hierarchy for signature handling, meta-transaction
relaying and blockchain interactions. All exceptions inherit from
RelayBaseError for unified exception handling.

Exception Hierarchy:
    RelayBaseError (root)
    ├── MalformedSignature
    ├── SignerMismatch
    ├── ConfigurationError
    └── BlockchainInteractionError
        └── TransactionExecutionError
            ├── InvalidSignature
            ├── ExpiredDeadline
            └── NonceReplay

Local errors (``MalformedSignature``, ``SignerMismatch``) indicate a caller
bug and are never retried. Remote errors are raised from transaction
reverts; only ``NonceReplay`` is worth retrying with a fresh nonce.
"""

from typing import Any, Optional


class RelayBaseError(Exception):
    """
    Root exception class for all project-specific exceptions.

    All custom exceptions should inherit from this class to enable
    unified exception handling and centralized error processing.
    """
    pass


class MalformedSignature(RelayBaseError):
    """
    Raised when a raw signature does not have the 65-byte layout.

    Only the byte length and hex encoding are checked; whether r/s are
    valid curve scalars is left to the on-chain verifier.
    """
    pass


class SignerMismatch(RelayBaseError):
    """
    Raised when the signer's address differs from the requested sender.

    Detected locally before any signature is produced or any network
    call is made.

    Attributes:
        expected: Address the payload is meant to be signed for
        actual: Address reported by the signer
    """

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Signer address {actual} does not match requested signing address {expected}"
        )


class ConfigurationError(RelayBaseError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - Missing relayer private key
    - Missing relay contract address
    - Unsupported network / no RPC URL
    """
    pass


class BlockchainInteractionError(RelayBaseError):
    """
    Raised when blockchain interaction (RPC call) fails.

    This includes scenarios such as:
    - RPC call timeout
    - Network connectivity issues
    - Invalid contract address
    """
    pass


class TransactionExecutionError(BlockchainInteractionError):
    """
    Raised when a relay transaction reverts or fails on-chain.

    The revert data is kept opaque; subclasses are only used when the
    chain accessor recognises the revert reason.

    Attributes:
        reason: Decoded revert reason string, if any
        revert_data: Raw revert payload as returned by the node
        tx_hash: Transaction hash if the transaction was mined
    """

    def __init__(
        self,
        message: str,
        *,
        reason: Optional[str] = None,
        revert_data: Any = None,
        tx_hash: Optional[str] = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.revert_data = revert_data
        self.tx_hash = tx_hash


class InvalidSignature(TransactionExecutionError):
    """
    Raised when the on-chain verifier rejects r/s/v or the signing domain.

    Terminal for the signed payload: a new signature must be produced.
    """
    pass


class ExpiredDeadline(TransactionExecutionError):
    """
    Raised when the block timestamp is past the signed ``deadline``.

    Terminal for the signed payload: sign again with a fresh deadline.
    """
    pass


class NonceReplay(TransactionExecutionError):
    """
    Raised when the signed nonce is stale (already consumed on-chain).

    The only condition the relay client retries, by re-fetching the
    nonce and signing again.
    """
    pass
