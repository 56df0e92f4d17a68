"""Network definitions for supported EVM chains."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Chain:
    """An EVM-compatible network, keyed by its network id (e.g. ``base-mainnet``)."""

    network_id: str
    chain_id: int
    rpc_url: str
    native_symbol: str
    explorer_url: str
    is_testnet: bool = False


CHAINS: dict[str, Chain] = {
    "base-mainnet": Chain(
        network_id="base-mainnet",
        chain_id=8453,
        rpc_url="https://mainnet.base.org",
        native_symbol="ETH",
        explorer_url="https://basescan.org",
    ),
    "base-sepolia": Chain(
        network_id="base-sepolia",
        chain_id=84532,
        rpc_url="https://sepolia.base.org",
        native_symbol="ETH",
        explorer_url="https://sepolia.basescan.org",
        is_testnet=True,
    ),
    "ethereum-mainnet": Chain(
        network_id="ethereum-mainnet",
        chain_id=1,
        rpc_url="https://eth.llamarpc.com",
        native_symbol="ETH",
        explorer_url="https://etherscan.io",
    ),
    "arbitrum-mainnet": Chain(
        network_id="arbitrum-mainnet",
        chain_id=42161,
        rpc_url="https://arb1.arbitrum.io/rpc",
        native_symbol="ETH",
        explorer_url="https://arbiscan.io",
    ),
    "polygon-mainnet": Chain(
        network_id="polygon-mainnet",
        chain_id=137,
        rpc_url="https://polygon-rpc.com",
        native_symbol="POL",
        explorer_url="https://polygonscan.com",
    ),
}


def get_chain(network_id: str) -> Chain:
    """Get a chain by network id. Raises ``KeyError`` if not found."""
    if network_id not in CHAINS:
        raise KeyError(
            f"Unknown network '{network_id}'. Available: {list_network_ids()}"
        )
    return CHAINS[network_id]


def get_chain_by_id(chain_id: int) -> Chain:
    """Get a chain by numeric chain id. Raises ``KeyError`` if not found."""
    for chain in CHAINS.values():
        if chain.chain_id == chain_id:
            return chain
    raise KeyError(f"Unknown chain id {chain_id}. Available: {list_network_ids()}")


def list_network_ids() -> list[str]:
    """Return the ids of all supported networks."""
    return list(CHAINS.keys())
