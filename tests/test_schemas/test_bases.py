"""
Base schema tests.
"""

import json

from gasswap_relay.evm.schemas import RelayTransactionConfirmation, TypedDataVerificationResult
from gasswap_relay.schemas.bases import TransactionStatus, VerificationStatus


class TestCanonicalModel:
    def test_sorted_compact_json(self):
        result = TypedDataVerificationResult(
            status=VerificationStatus.SUCCESS, is_valid=True, message="ok", primary_type="Permit",
        )
        text = result.to_canonical_json()
        assert ", " not in text and ": " not in text
        keys = list(json.loads(text))
        assert keys == sorted(keys)


class TestVerificationResult:
    def test_success(self):
        result = TypedDataVerificationResult(status=VerificationStatus.SUCCESS, is_valid=True, message="ok")
        assert result.is_success()
        assert result.get_error_message() is None

    def test_valid_flag_alone_is_not_success(self):
        result = TypedDataVerificationResult(status=VerificationStatus.EXPIRED, is_valid=True, message="late")
        assert not result.is_success()

    def test_error_message_includes_details(self):
        result = TypedDataVerificationResult(
            status=VerificationStatus.REPLAY_ATTACK,
            is_valid=False,
            message="stale nonce",
            error_details={"nonce": 0, "on_chain_nonce": 1},
        )
        error = result.get_error_message()
        assert error.startswith("Verification failed: stale nonce")
        assert "on_chain_nonce" in error


class TestTransactionConfirmation:
    def test_confirmed_status(self):
        confirmation = RelayTransactionConfirmation(
            status=TransactionStatus.SUCCESS, tx_hash="0x01", confirmations=2,
        )
        assert confirmation.is_success()
        assert confirmation.get_confirmation_status() == "Transaction confirmed with 2 confirmations"

    def test_timeout_status(self):
        confirmation = RelayTransactionConfirmation(
            status=TransactionStatus.TIMEOUT, tx_hash="0x01", error_message="Transaction confirmation timed out",
        )
        assert not confirmation.is_success()
        assert confirmation.get_confirmation_status() == "Transaction failed: Transaction confirmation timed out"
