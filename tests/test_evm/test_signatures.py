"""
Permit / meta-transaction signing tests.

Signatures are produced with real keys and checked with eth_account
recovery through ``recover_typed_data_signer``.
"""

import pytest

from gasswap_relay.engine.exceptions import MalformedSignature, SignerMismatch
from gasswap_relay.evm.codec import decode_swap_call_data
from gasswap_relay.evm.envelopes import build_meta_envelope
from gasswap_relay.evm.signatures import (
    assemble_swap_payload,
    sign_meta_transaction,
    sign_permit,
    strip_domain_type,
)
from gasswap_relay.evm.signers import LocalAccountSigner, TypedDataSigner
from gasswap_relay.evm.standards import MetaTransactionTypedData, PermitTypedData
from gasswap_relay.evm.verifies import recover_typed_data_signer

from test_mocks import (
    MOCK_AMOUNT,
    MOCK_DEADLINE_FUTURE,
    MOCK_OTHER_PRIVATE_KEY,
    MOCK_OWNER_ADDRESS,
    MOCK_OWNER_PRIVATE_KEY,
    MOCK_SWAP_PATH,
    RecordingSigner,
    create_meta_domain,
    create_permit_domain,
    create_permit_message,
)


def _recover(typed_data, signature):
    full = typed_data.to_dict()
    return recover_typed_data_signer(
        full["domain"], full["primaryType"], full["types"], full["message"], signature
    )


class TestLocalAccountSigner:
    def test_satisfies_protocol(self):
        assert isinstance(LocalAccountSigner(MOCK_OWNER_PRIVATE_KEY), TypedDataSigner)

    def test_address(self):
        assert LocalAccountSigner(MOCK_OWNER_PRIVATE_KEY).address() == MOCK_OWNER_ADDRESS

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            LocalAccountSigner("")

    @pytest.mark.asyncio
    async def test_rejects_domain_type_in_types(self):
        signer = LocalAccountSigner(MOCK_OWNER_PRIVATE_KEY)
        full = PermitTypedData(domain=create_permit_domain(), message=create_permit_message()).to_dict()
        with pytest.raises(ValueError, match="EIP712Domain"):
            await signer.sign_typed_data(full["domain"], full["types"], full["message"])


class TestSignPermit:
    @pytest.mark.asyncio
    async def test_recovers_to_owner(self):
        domain, message = create_permit_domain(), create_permit_message()
        signature = await sign_permit(LocalAccountSigner(MOCK_OWNER_PRIVATE_KEY), domain, message)
        assert signature.signature_type == "EIP2612"
        assert signature.v in (27, 28)
        assert _recover(PermitTypedData(domain=domain, message=message), signature) == MOCK_OWNER_ADDRESS

    @pytest.mark.asyncio
    async def test_domain_type_stripped_before_signing(self):
        signer = RecordingSigner()
        await sign_permit(signer, create_permit_domain(), create_permit_message())
        (domain, types, message), = signer.requests
        assert "EIP712Domain" not in types
        assert list(types) == ["Permit"]
        assert domain["name"] == "MockERC20"
        assert message["owner"] == MOCK_OWNER_ADDRESS

    @pytest.mark.asyncio
    async def test_signer_mismatch_before_signing(self):
        signer = RecordingSigner(MOCK_OTHER_PRIVATE_KEY)
        with pytest.raises(SignerMismatch) as exc_info:
            await sign_permit(signer, create_permit_domain(), create_permit_message())
        assert signer.requests == []
        assert exc_info.value.expected == MOCK_OWNER_ADDRESS

    @pytest.mark.asyncio
    async def test_malformed_signer_output(self):
        signer = RecordingSigner(raw_override="0x" + "ab" * 64)
        with pytest.raises(MalformedSignature):
            await sign_permit(signer, create_permit_domain(), create_permit_message())

    @pytest.mark.asyncio
    async def test_meta_domain_rejected(self):
        with pytest.raises(TypeError):
            await sign_permit(RecordingSigner(), create_meta_domain(), create_permit_message())


class TestSignMetaTransaction:
    @pytest.mark.asyncio
    async def test_recovers_to_sender(self):
        domain = create_meta_domain()
        envelope = build_meta_envelope(0, MOCK_OWNER_ADDRESS, b"\xaa\xbb\xcc\xdd\x01")
        signature = await sign_meta_transaction(LocalAccountSigner(MOCK_OWNER_PRIVATE_KEY), domain, envelope)
        assert signature.signature_type == "MetaTransaction"
        assert _recover(MetaTransactionTypedData(domain=domain, message=envelope), signature) == MOCK_OWNER_ADDRESS

    @pytest.mark.asyncio
    async def test_signature_does_not_verify_under_other_nonce(self):
        domain = create_meta_domain()
        envelope = build_meta_envelope(0, MOCK_OWNER_ADDRESS, b"\xaa\xbb\xcc\xdd")
        signature = await sign_meta_transaction(LocalAccountSigner(MOCK_OWNER_PRIVATE_KEY), domain, envelope)
        replayed = build_meta_envelope(1, MOCK_OWNER_ADDRESS, b"\xaa\xbb\xcc\xdd")
        assert _recover(MetaTransactionTypedData(domain=domain, message=replayed), signature) != MOCK_OWNER_ADDRESS

    @pytest.mark.asyncio
    async def test_signer_mismatch(self):
        envelope = build_meta_envelope(0, MOCK_OWNER_ADDRESS, b"\xaa\xbb\xcc\xdd")
        with pytest.raises(SignerMismatch, match="does not match requested signing address"):
            await sign_meta_transaction(RecordingSigner(MOCK_OTHER_PRIVATE_KEY), create_meta_domain(), envelope)


class TestAssembleSwapPayload:
    @pytest.mark.asyncio
    async def test_payload_carries_permit_signature(self):
        signature = await sign_permit(
            LocalAccountSigner(MOCK_OWNER_PRIVATE_KEY), create_permit_domain(), create_permit_message()
        )
        payload = assemble_swap_payload(
            signature, MOCK_AMOUNT, 0, MOCK_SWAP_PATH, MOCK_OWNER_ADDRESS, MOCK_DEADLINE_FUTURE
        )
        decoded = decode_swap_call_data(payload)
        assert (decoded.v, decoded.r, decoded.s) == (signature.v, signature.r, signature.s)
        assert decoded.deadline == MOCK_DEADLINE_FUTURE
        assert decoded.token == MOCK_SWAP_PATH[0]

    @pytest.mark.asyncio
    async def test_meta_signature_rejected(self):
        envelope = build_meta_envelope(0, MOCK_OWNER_ADDRESS, b"\xaa\xbb\xcc\xdd")
        signature = await sign_meta_transaction(
            LocalAccountSigner(MOCK_OWNER_PRIVATE_KEY), create_meta_domain(), envelope
        )
        with pytest.raises(ValueError, match="meta-transaction"):
            assemble_swap_payload(signature, MOCK_AMOUNT, 0, MOCK_SWAP_PATH, MOCK_OWNER_ADDRESS, MOCK_DEADLINE_FUTURE)


def test_strip_domain_type_does_not_mutate_input():
    full = PermitTypedData(domain=create_permit_domain(), message=create_permit_message()).to_dict()
    _, types, _ = strip_domain_type(full)
    assert "EIP712Domain" not in types
    assert "EIP712Domain" in full["types"]
