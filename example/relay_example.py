import logging

from web3 import AsyncWeb3

from gasswap_relay.evm import LocalAccountSigner, RelayClient, Web3ChainAccessor, Web3RelaySubmitter
from gasswap_relay.evm.constants import get_relay_address_from_env, get_rpc_url

logging.basicConfig(level=logging.INFO)

user_pk = "0xxxx"  # Replace with the token holder's key
token = "0x..."  # Permit token, must be whitelisted on the relay
wmovr = "0x98878B06940aE243284CA214f92Bb71a2b032B8A"

chain_id = 1285


async def main():
    w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(get_rpc_url(chain_id)))
    relay_address = get_relay_address_from_env()

    # Relayer key and relay address come from GASSWAP_RELAYER_PRIVATE_KEY / GASSWAP_RELAY_ADDRESS
    client = RelayClient(
        Web3ChainAccessor(w3, relay_address),
        Web3RelaySubmitter(w3),
        relay_address,
    )

    return await client.relay_swap_with_permit(
        LocalAccountSigner(user_pk),
        path=[token, wmovr],
        amount_in=10 * 10**18,
        token_name="MockERC20",
    )


if __name__ == "__main__":
    import asyncio
    confirmation = asyncio.run(main())
    print("Confirmation:", confirmation.get_confirmation_status(), confirmation.tx_hash)
