"""
Meta-transaction envelope and permit message builder tests.
"""

import pytest

from gasswap_relay.evm.envelopes import build_meta_envelope, build_permit_message

from test_mocks import MOCK_OWNER_ADDRESS, MOCK_RELAY_ADDRESS


class TestBuildMetaEnvelope:
    def test_fields(self):
        envelope = build_meta_envelope(3, MOCK_OWNER_ADDRESS.lower(), b"\xde\xad\xbe\xef\x00")
        assert envelope.nonce == 3
        assert envelope.from_address == MOCK_OWNER_ADDRESS
        assert envelope.functionSignature == b"\xde\xad\xbe\xef\x00"

    def test_to_dict_uses_from_key(self):
        data = build_meta_envelope(0, MOCK_OWNER_ADDRESS, b"\x01\x02\x03\x04").to_dict()
        assert set(data) == {"nonce", "from", "functionSignature"}

    def test_hex_call_accepted(self):
        envelope = build_meta_envelope(0, MOCK_OWNER_ADDRESS, "0x01020304")
        assert envelope.functionSignature == b"\x01\x02\x03\x04"

    def test_negative_nonce_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            build_meta_envelope(-1, MOCK_OWNER_ADDRESS, b"\x01\x02\x03\x04")

    def test_call_without_selector_rejected(self):
        with pytest.raises(ValueError, match="selector"):
            build_meta_envelope(0, MOCK_OWNER_ADDRESS, b"\x01")

    def test_unprefixed_hex_rejected(self):
        with pytest.raises(ValueError, match="0x"):
            build_meta_envelope(0, MOCK_OWNER_ADDRESS, "01020304")


class TestBuildPermitMessage:
    def test_checksums_addresses(self):
        message = build_permit_message(
            owner=MOCK_OWNER_ADDRESS.lower(), spender=MOCK_RELAY_ADDRESS.lower(),
            value=10, nonce=0, deadline=100,
        )
        assert message.owner == MOCK_OWNER_ADDRESS
        assert message.spender == MOCK_RELAY_ADDRESS

    def test_negative_value_rejected(self):
        with pytest.raises(ValueError, match="value"):
            build_permit_message(
                owner=MOCK_OWNER_ADDRESS, spender=MOCK_RELAY_ADDRESS, value=-1, nonce=0, deadline=100,
            )
