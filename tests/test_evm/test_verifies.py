"""
Off-chain verification tests.
"""

import pytest

from gasswap_relay.evm.envelopes import build_meta_envelope
from gasswap_relay.evm.signatures import sign_meta_transaction, sign_permit
from gasswap_relay.evm.signers import LocalAccountSigner
from gasswap_relay.evm.verifies import verify_meta_transaction, verify_permit
from gasswap_relay.schemas.bases import VerificationStatus

from test_mocks import (
    MOCK_CHAIN_ID,
    MOCK_DEADLINE_FUTURE,
    MOCK_OWNER_ADDRESS,
    MOCK_OWNER_PRIVATE_KEY,
    MOCK_TIMESTAMP,
    create_meta_domain,
    create_mock_signature,
    create_permit_domain,
    create_permit_message,
)


@pytest.fixture
def signer():
    return LocalAccountSigner(MOCK_OWNER_PRIVATE_KEY)


class TestVerifyPermit:
    @pytest.mark.asyncio
    async def test_success(self, signer):
        domain, message = create_permit_domain(), create_permit_message()
        signature = await sign_permit(signer, domain, message)
        result = verify_permit(
            domain=domain, message=message, signature=signature,
            on_chain_nonce=0, current_time=MOCK_TIMESTAMP,
        )
        assert result.is_success()
        assert result.recovered_signer == MOCK_OWNER_ADDRESS
        assert result.get_error_message() is None

    @pytest.mark.asyncio
    async def test_expired(self, signer):
        domain, message = create_permit_domain(), create_permit_message(deadline=MOCK_TIMESTAMP - 1)
        signature = await sign_permit(signer, domain, message)
        result = verify_permit(domain=domain, message=message, signature=signature, current_time=MOCK_TIMESTAMP)
        assert result.status == VerificationStatus.EXPIRED
        assert not result.is_valid

    @pytest.mark.asyncio
    async def test_consumed_nonce(self, signer):
        domain, message = create_permit_domain(), create_permit_message(nonce=0)
        signature = await sign_permit(signer, domain, message)
        result = verify_permit(
            domain=domain, message=message, signature=signature,
            on_chain_nonce=1, current_time=MOCK_TIMESTAMP,
        )
        assert result.status == VerificationStatus.REPLAY_ATTACK

    @pytest.mark.asyncio
    async def test_wrong_chain(self, signer):
        message = create_permit_message()
        signature = await sign_permit(signer, create_permit_domain(chain_id=1), message)
        result = verify_permit(
            domain=create_permit_domain(chain_id=MOCK_CHAIN_ID), message=message,
            signature=signature, current_time=MOCK_TIMESTAMP,
        )
        assert result.status == VerificationStatus.INVALID_SIGNATURE
        assert result.recovered_signer != MOCK_OWNER_ADDRESS

    def test_garbage_signature_never_raises(self):
        result = verify_permit(
            domain=create_permit_domain(), message=create_permit_message(),
            signature=create_mock_signature(v=5), current_time=MOCK_TIMESTAMP,
        )
        assert result.status == VerificationStatus.INVALID_SIGNATURE
        assert "Details" in result.get_error_message()


class TestVerifyMetaTransaction:
    @pytest.mark.asyncio
    async def test_success(self, signer):
        domain = create_meta_domain()
        envelope = build_meta_envelope(2, MOCK_OWNER_ADDRESS, b"\x01\x02\x03\x04")
        signature = await sign_meta_transaction(signer, domain, envelope)
        result = verify_meta_transaction(domain=domain, message=envelope, signature=signature, on_chain_nonce=2)
        assert result.is_success()
        assert result.primary_type == "MetaTransaction"

    @pytest.mark.asyncio
    async def test_stale_nonce(self, signer):
        domain = create_meta_domain()
        envelope = build_meta_envelope(0, MOCK_OWNER_ADDRESS, b"\x01\x02\x03\x04")
        signature = await sign_meta_transaction(signer, domain, envelope)
        result = verify_meta_transaction(domain=domain, message=envelope, signature=signature, on_chain_nonce=1)
        assert result.status == VerificationStatus.REPLAY_ATTACK

    @pytest.mark.asyncio
    async def test_permit_signature_rejected(self, signer):
        permit_signature = await sign_permit(signer, create_permit_domain(), create_permit_message())
        envelope = build_meta_envelope(0, MOCK_OWNER_ADDRESS, b"\x01\x02\x03\x04")
        result = verify_meta_transaction(domain=create_meta_domain(), message=envelope, signature=permit_signature)
        assert result.status == VerificationStatus.INVALID_SIGNATURE
        assert result.message == "Signer and signature do not match."
