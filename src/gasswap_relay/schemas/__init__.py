from .bases import (
    CanonicalModel,
    BaseSignature,
    VerificationStatus,
    BaseVerificationResult,
    TransactionStatus,
    BaseTransactionConfirmation,
)

__all__ = [
    "CanonicalModel",
    "BaseSignature",
    "VerificationStatus",
    "BaseVerificationResult",
    "TransactionStatus",
    "BaseTransactionConfirmation",
]
