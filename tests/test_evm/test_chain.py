"""
Chain accessor and revert decoding tests.
"""

from unittest.mock import AsyncMock

import pytest
from web3.exceptions import ContractLogicError

from gasswap_relay.engine.exceptions import (
    BlockchainInteractionError,
    ExpiredDeadline,
    InvalidSignature,
    NonceReplay,
    TransactionExecutionError,
)
from gasswap_relay.evm.chain import ChainAccessor, Web3ChainAccessor, decode_revert

from test_mocks import (
    MOCK_CHAIN_ID,
    MOCK_OWNER_ADDRESS,
    MOCK_RELAY_ADDRESS,
    MOCK_TIMESTAMP,
    MOCK_TOKEN_ADDRESS,
    MockGasSwapChain,
    create_mock_web3,
)


class TestDecodeRevert:
    @pytest.mark.parametrize(
        "reason, expected",
        [
            ("execution reverted: Signer and signature do not match", InvalidSignature),
            ("ERC20Permit: invalid signature", InvalidSignature),
            ("ERC20Permit: expired deadline", ExpiredDeadline),
            ("UniswapV2Router: EXPIRED", ExpiredDeadline),
            ("invalid nonce", NonceReplay),
        ],
    )
    def test_known_reasons(self, reason, expected):
        error = decode_revert(reason)
        assert type(error) is expected
        assert error.reason == reason

    def test_unknown_reason_is_generic(self):
        error = decode_revert("execution reverted: TransferHelper: TRANSFER_FROM_FAILED")
        assert type(error) is TransactionExecutionError
        assert "TRANSFER_FROM_FAILED" in str(error)

    def test_contract_logic_error_keeps_revert_data(self):
        exc = ContractLogicError("execution reverted: Signer and signature do not match", data="0x08c379a0")
        error = decode_revert(exc)
        assert isinstance(error, InvalidSignature)
        assert error.revert_data == "0x08c379a0"


class TestWeb3ChainAccessor:
    def test_mock_chain_satisfies_protocol(self):
        assert isinstance(MockGasSwapChain(), ChainAccessor)

    @pytest.mark.asyncio
    async def test_get_nonce(self):
        w3, contract = create_mock_web3()
        contract.functions.getNonce.return_value.call = AsyncMock(return_value=3)
        chain = Web3ChainAccessor(w3, MOCK_RELAY_ADDRESS)

        assert await chain.get_nonce(MOCK_OWNER_ADDRESS) == 3
        contract.functions.getNonce.assert_called_once_with(MOCK_OWNER_ADDRESS)
        assert w3.eth.contract.call_args.kwargs["address"] == MOCK_RELAY_ADDRESS

    @pytest.mark.asyncio
    async def test_token_reads(self):
        w3, contract = create_mock_web3()
        contract.functions.nonces.return_value.call = AsyncMock(return_value=1)
        contract.functions.balanceOf.return_value.call = AsyncMock(return_value=42)
        chain = Web3ChainAccessor(w3, MOCK_RELAY_ADDRESS)

        assert await chain.nonces(MOCK_TOKEN_ADDRESS, MOCK_OWNER_ADDRESS) == 1
        assert await chain.balance_of(MOCK_TOKEN_ADDRESS, MOCK_OWNER_ADDRESS) == 42
        assert w3.eth.contract.call_args.kwargs["address"] == MOCK_TOKEN_ADDRESS

    @pytest.mark.asyncio
    async def test_network_and_timestamp(self):
        w3, _ = create_mock_web3()
        chain = Web3ChainAccessor(w3, MOCK_RELAY_ADDRESS)

        assert (await chain.get_network()).chain_id == MOCK_CHAIN_ID
        assert await chain.latest_timestamp() == MOCK_TIMESTAMP
        w3.eth.get_block.assert_awaited_once_with("latest")

    @pytest.mark.asyncio
    async def test_revert_is_decoded(self):
        w3, contract = create_mock_web3()
        contract.functions.getNonce.return_value.call = AsyncMock(
            side_effect=ContractLogicError("execution reverted: invalid nonce")
        )
        chain = Web3ChainAccessor(w3, MOCK_RELAY_ADDRESS)

        with pytest.raises(NonceReplay):
            await chain.get_nonce(MOCK_OWNER_ADDRESS)

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self):
        w3, contract = create_mock_web3()
        contract.functions.getNonce.return_value.call = AsyncMock(side_effect=ConnectionError("refused"))
        chain = Web3ChainAccessor(w3, MOCK_RELAY_ADDRESS)

        with pytest.raises(BlockchainInteractionError, match="getNonce failed"):
            await chain.get_nonce(MOCK_OWNER_ADDRESS)
