"""
Base Schema Models for the GasSwap Relay Client

This module defines the base classes that the EVM-specific schema models
inherit from. It provides type safety, validation and consistent
serialization for signatures, verification results and transaction
confirmations.

Core Classes:
    - CanonicalModel: Pydantic base model with deterministic JSON serialization
    - BaseSignature: Abstract signature component model
    - BaseVerificationResult: Abstract off-chain verification result
    - BaseTransactionConfirmation: Abstract transaction confirmation model

Dependencies:
    - pydantic: For data validation and serialization
"""

import json
from typing import Optional, Dict, Any
from abc import ABC
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CanonicalModel(BaseModel):
    """
    Pydantic base model with canonical JSON serialization.

    Produces sorted-key, whitespace-free JSON so that two equal models always
    serialize to the same string (useful for logging and hashing payloads).

    Example:
        class MyModel(CanonicalModel):
            name: str
            value: int

        MyModel(name="test", value=123).to_canonical_json()
        # '{"name":"test","value":123}'
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_canonical_json(self) -> str:
        """
        Convert model to a canonical JSON string (sorted keys, compact separators).

        Returns:
            str: JSON string with sorted keys and no extra whitespace.
        """
        data = self.model_dump(mode="json")
        return json.dumps(
            data,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary representation."""
        return self.model_dump()


class BaseSignature(CanonicalModel, ABC):
    """
    Abstract base class for signature components.

    Attributes:
        signature_type: The signing standard (e.g. "EIP2612", "MetaTransaction")
        created_at: Timestamp when the signature object was created
    """

    signature_type: str = Field(..., description="Signing standard (e.g., EIP2612, MetaTransaction)")
    created_at: datetime = Field(default_factory=datetime.now, description="Signature creation timestamp")

    def validate_format(self) -> bool:
        """
        Validate the byte layout of the signature components.

        Returns:
            bool: True if the format is valid.

        Raises:
            ValueError: If the format is invalid.
        """
        return True


class VerificationStatus(str, Enum):
    """
    Enumeration of possible verification result statuses.

    Attributes:
        SUCCESS: Signature recovered to the expected signer and all checks passed
        INVALID_SIGNATURE: Signature is invalid or signer mismatch
        EXPIRED: Signed deadline has passed
        REPLAY_ATTACK: Signed nonce does not match the current on-chain nonce
    """
    SUCCESS = "success"
    INVALID_SIGNATURE = "invalid_signature"
    EXPIRED = "expired"
    REPLAY_ATTACK = "replay_attack"


class BaseVerificationResult(CanonicalModel, ABC):
    """
    Abstract base class for off-chain signature verification results.

    Attributes:
        verification_type: Type of verification (e.g., "eip712")
        status: Verification result status (VerificationStatus enum)
        is_valid: Boolean indicating if verification was successful
        message: Human-readable status message
        error_details: Detailed error information if verification failed
        verified_at: Timestamp when verification was performed
    """

    verification_type: str = Field(..., description="Type of verification (e.g., eip712)")
    status: VerificationStatus = Field(..., description="Verification result status")
    is_valid: bool = Field(..., description="Whether the signature is valid")
    message: str = Field(..., description="Human-readable status message")
    error_details: Optional[Dict[str, Any]] = Field(None, description="Detailed error information")
    verified_at: datetime = Field(default_factory=datetime.now, description="Verification timestamp")

    def is_success(self) -> bool:
        """
        Check if verification was successful.

        Example:
            result = verify_permit(...)
            if result.is_success():
                # submit the swap
        """
        return self.is_valid and self.status == VerificationStatus.SUCCESS

    def get_error_message(self) -> Optional[str]:
        """
        Get formatted error message from verification result.

        Returns:
            Optional[str]: Error message if verification failed, None if successful.
        """
        if self.is_success():
            return None

        error_msg = f"Verification failed: {self.message}"
        if self.error_details:
            details_str = json.dumps(self.error_details, indent=2, default=str)
            error_msg += f"\nDetails: {details_str}"
        return error_msg


class TransactionStatus(str, Enum):
    """
    Enumeration of possible transaction execution statuses.

    Attributes:
        SUCCESS: Transaction executed successfully on-chain
        TIMEOUT: Transaction confirmation timed out
    """
    SUCCESS = "success"
    TIMEOUT = "timeout"


class BaseTransactionConfirmation(CanonicalModel, ABC):
    """
    Abstract base class for blockchain transaction confirmation/receipt data.

    Attributes:
        confirmation_type: Type of confirmation (e.g., "evm")
        status: Transaction execution status (TransactionStatus enum)
        confirmations: Number of block confirmations
        error_message: Error message if transaction failed
        created_at: Timestamp when confirmation was recorded
    """

    confirmation_type: str = Field(..., description="Type of confirmation (e.g., evm)")
    status: TransactionStatus = Field(..., description="Transaction execution status")
    confirmations: int = Field(default=0, ge=0, description="Number of block confirmations")
    error_message: Optional[str] = Field(None, description="Error message if transaction failed")
    created_at: datetime = Field(default_factory=datetime.now, description="Confirmation recording timestamp")

    def is_success(self) -> bool:
        """Return True if the transaction executed successfully on-chain."""
        return self.status == TransactionStatus.SUCCESS

    def get_confirmation_status(self) -> str:
        """
        Get human-readable confirmation status message.

        Example:
            confirmation.get_confirmation_status()
            # "Transaction confirmed with 2 confirmations"
        """
        if self.status == TransactionStatus.SUCCESS:
            confirmations_text = f"with {self.confirmations} confirmations" if self.confirmations > 0 else "pending confirmations"
            return f"Transaction confirmed {confirmations_text}"
        else:
            return f"Transaction failed: {self.error_message or self.status.value}"
