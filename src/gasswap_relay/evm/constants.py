"""
GasSwap Relay Configuration

Protocol constants of the GasSwap meta-transaction domain, the network table
inherited from the contracts' deployment config, environment-aware accessors
(relayer key, RPC URL, relay address) and retry/timeout settings.

Resolution order for an RPC URL:
    1. ``GASSWAP_RPC_URL`` environment variable
    2. the built-in network table below
    3. the ethereum-lists chain registry (public, key-less endpoints only)
"""

import os
from typing import Dict, List, Optional, Any

import dotenv
import httpx
from pydantic import BaseModel, Field

from ..engine.exceptions import ConfigurationError

dotenv.load_dotenv()

# ---------------------------------------------------------------------------
# EIP-712 protocol constants
# ---------------------------------------------------------------------------

#: ``name`` of the GasSwap meta-transaction domain.
META_DOMAIN_NAME: str = "GasSwap"

#: ``version`` of the GasSwap meta-transaction domain.
META_DOMAIN_VERSION: str = "2"

#: Permit ``version`` used by the mock ERC-2612 tokens.
DEFAULT_PERMIT_VERSION: str = "1"

#: Default permit lifetime, counted from the latest block timestamp.
DEFAULT_PERMIT_DEADLINE_SECONDS: int = 60 * 30


class EvmChainConfig(BaseModel):
    """EVM network configuration."""
    chain_id: int
    network: str = Field(..., description="Short network name")
    name: str = Field(..., description="Human-readable network name")
    rpc_url: str = Field(..., description="JSON-RPC endpoint URL")
    live: bool = Field(default=True, description="False for local development chains")
    gas_price: Optional[int] = Field(default=None, description="Fixed gas price in wei, None for node estimate")
    gas_limit: Optional[int] = Field(default=None, description="Fixed gas limit, None for estimate")


class EvmChainInfo(BaseModel):
    """Subset of ethereum-lists chain metadata (``eip155-<chain_id>.json``)."""
    name: str = Field(..., description="Human-readable network name")
    rpc: List[str] = Field(..., description="List of RPC endpoints")
    chainId: int = Field(..., description="Chain ID of the network")
    infoURL: Optional[str] = Field(default=None, description="URL with more information about the chain")


class RelaySettings(BaseModel):
    """
    Tunables of the relay client.

    Attributes:
        max_retries: ``NonceReplay`` retries after the first attempt.
        backoff_base: First backoff delay in seconds; doubled per attempt.
        backoff_max: Upper bound of a single backoff delay.
        serialize: Hold a per-sender lock across fetch-nonce / sign / submit.
        request_timeout: HTTP timeout handed to the web3 provider.
        receipt_poll_interval: Seconds between receipt polls.
        receipt_max_attempts: Receipt polls before giving up.
        gas_buffer: Multiplier applied to the gas estimate.
    """
    max_retries: int = Field(default=3, ge=0)
    backoff_base: float = Field(default=0.5, ge=0)
    backoff_max: float = Field(default=8.0, ge=0)
    serialize: bool = Field(default=True)
    request_timeout: int = Field(default=60, ge=1)
    receipt_poll_interval: float = Field(default=2.0, ge=0)
    receipt_max_attempts: int = Field(default=60, ge=1)
    gas_buffer: float = Field(default=1.1, ge=1.0)


# Networks the GasSwap contracts are deployed to.
_EVM_CHAINS_DATA: Dict[int, Dict[str, Any]] = {
    1: {
        "network": "mainnet",
        "name": "Ethereum Mainnet",
        "rpc_url": "https://cloudflare-eth.com",
        "gas_price": 5000000000,
        "gas_limit": 8000000,
    },
    4: {
        "network": "rinkeby",
        "name": "Rinkeby Testnet",
        "rpc_url": "https://rpc.ankr.com/eth_rinkeby",
        "gas_price": 5000000000,
        "gas_limit": 8000000,
    },
    1285: {
        "network": "moonriver",
        "name": "Moonriver",
        "rpc_url": "https://rpc.moonriver.moonbeam.network",
        "gas_price": 5000000000,
        "gas_limit": 8000000,
    },
    1287: {
        "network": "moonbase",
        "name": "Moonbase Alpha",
        "rpc_url": "https://rpc.testnet.moonbeam.network",
        "gas_price": 1000000000,
        "gas_limit": 8000000,
    },
    31337: {
        "network": "hardhat",
        "name": "Hardhat Network",
        "rpc_url": "http://127.0.0.1:8545",
        "live": False,
    },
}

EVM_CHAINS: Dict[int, EvmChainConfig] = {
    chain_id: EvmChainConfig(chain_id=chain_id, **data)
    for chain_id, data in _EVM_CHAINS_DATA.items()
}


def get_chain_config(chain_id: int) -> Optional[EvmChainConfig]:
    """Return the built-in configuration for ``chain_id``, if any."""
    return EVM_CHAINS.get(int(chain_id))


def get_rpc_url(chain_id: int, *, allow_registry: bool = False) -> str:
    """
    Resolve the RPC endpoint for ``chain_id``.

    Args:
        chain_id: EVM chain id.
        allow_registry: Fall back to the ethereum-lists registry (network call)
            when the chain is not in the built-in table.

    Raises:
        ConfigurationError: If no endpoint can be determined.
    """
    env_url = get_rpc_url_from_env()
    if env_url:
        return env_url

    config = get_chain_config(chain_id)
    if config:
        return config.rpc_url

    if allow_registry:
        info = fetch_evm_chain_info(chain_id)
        public = parse_public_rpc_url(info.rpc)
        if public:
            return public

    raise ConfigurationError(
        f"Unsupported chain_id: {chain_id}. "
        f"Set GASSWAP_RPC_URL or use one of {sorted(EVM_CHAINS)}"
    )


def fetch_evm_chain_info(chain_id: int) -> EvmChainInfo:
    """
    Retrieve chain metadata from the ethereum-lists repository.

    Raises:
        httpx.HTTPError: If the chain file is not found or unreachable.
        TypeError: If the payload does not match ``EvmChainInfo``.
    """
    url = (
        "https://raw.githubusercontent.com/ethereum-lists/chains/master/_data/chains/"
        f"eip155-{int(chain_id)}.json"
    )

    payload = fetch_json(url)

    try:
        return EvmChainInfo(**payload)
    except Exception as e:
        raise TypeError(
            f"Schema mismatch: Data from {url} is incompatible with EvmChainInfo."
        ) from e


def fetch_json(url: str, timeout: float = 10.0) -> Dict[str, Any]:
    """
    Fetch JSON data from a URL.

    Raises:
        httpx.HTTPStatusError: If the server returns a 4xx or 5xx status code.
        httpx.RequestError: If a network-level error occurs.
        RuntimeError: If the response is not valid JSON.
    """
    with httpx.Client(timeout=timeout) as client:
        response = client.get(url)
        response.raise_for_status()
        try:
            return response.json()
        except Exception as json_exc:
            raise RuntimeError(
                f"Failed to decode JSON from {url}. Content-Type: {response.headers.get('Content-Type')}"
            ) from json_exc


def parse_public_rpc_url(rpcs: List[str], start_with: str = "https://") -> Optional[str]:
    """Pick a public (no-key) RPC URL from a chain's RPC list.

    Endpoints containing placeholder markers (`$` or `{...}`) need an API
    key and are skipped.
    """
    if not rpcs or not isinstance(rpcs, list):
        raise ValueError(
            "No RPC URLs provided in chain configuration; rpcs must be a list of strings, "
            f"but {type(rpcs).__name__} was provided"
        )

    for rpc in rpcs:
        if not isinstance(rpc, str):
            continue
        if not rpc.startswith(start_with):
            continue
        if "$" in rpc or "{" in rpc or "}" in rpc:
            continue
        return rpc
    return None


def get_relayer_private_key_from_env() -> Optional[str]:
    """
    Load the relayer private key (``GASSWAP_RELAYER_PRIVATE_KEY``).

    The relayer pays gas for ``executeMetaTransaction``; it does not need
    to be the meta-transaction sender.
    """
    return os.getenv("GASSWAP_RELAYER_PRIVATE_KEY")


def get_rpc_url_from_env() -> Optional[str]:
    """Load an explicit RPC endpoint override (``GASSWAP_RPC_URL``)."""
    return os.getenv("GASSWAP_RPC_URL")


def get_relay_address_from_env() -> Optional[str]:
    """Load the deployed GasSwap relay address (``GASSWAP_RELAY_ADDRESS``)."""
    return os.getenv("GASSWAP_RELAY_ADDRESS")
