"""Chain registry — static table of supported chains."""
from __future__ import annotations

from typing import Iterable, Mapping

from .config import ChainConfig, NativeCurrency
from .exceptions import UnsupportedChain

_ETH = NativeCurrency(name="Ethereum", symbol="ETH", decimals=18)
_LSK = NativeCurrency(name="Lisk", symbol="LSK", decimals=18)

DEFAULT_CHAINS: dict[int, ChainConfig] = {
    1: ChainConfig(
        chain_id=1,
        name="Ethereum",
        rpc_endpoints=(
            "https://eth.llamarpc.com",
            "https://rpc.ankr.com/eth",
            "https://ethereum.publicnode.com",
        ),
        native_currency=_ETH,
        block_explorer_url="https://etherscan.io",
    ),
    137: ChainConfig(
        chain_id=137,
        name="Polygon",
        rpc_endpoints=(
            "https://polygon.llamarpc.com",
            "https://rpc.ankr.com/polygon",
            "https://polygon-rpc.com",
        ),
        native_currency=NativeCurrency(name="Polygon", symbol="MATIC", decimals=18),
        block_explorer_url="https://polygonscan.com",
    ),
    42161: ChainConfig(
        chain_id=42161,
        name="Arbitrum",
        rpc_endpoints=(
            "https://arbitrum.llamarpc.com",
            "https://rpc.ankr.com/arbitrum",
            "https://arb1.arbitrum.io/rpc",
        ),
        native_currency=_ETH,
        block_explorer_url="https://arbiscan.io",
    ),
    8453: ChainConfig(
        chain_id=8453,
        name="Base",
        rpc_endpoints=(
            "https://mainnet.base.org",
            "https://base.llamarpc.com",
            "https://rpc.ankr.com/base",
        ),
        native_currency=_ETH,
        block_explorer_url="https://basescan.org",
    ),
    1135: ChainConfig(
        chain_id=1135,
        name="Lisk",
        rpc_endpoints=("https://rpc.lisk.com", "https://lisk-rpc.altcoin.io"),
        native_currency=_LSK,
        block_explorer_url="https://lisk.com",
    ),
    4202: ChainConfig(
        chain_id=4202,
        name="Lisk Sepolia",
        rpc_endpoints=(
            "https://rpc.sepolia.lisk.com",
            "https://lisk-sepolia-rpc.altcoin.io",
        ),
        native_currency=_LSK,
        block_explorer_url="https://sepolia.lisk.com",
        is_testnet=True,
    ),
}


class ChainRegistry:
    """Read-only lookup of chain configuration by chain id."""

    def __init__(self, chains: Mapping[int, ChainConfig] | None = None) -> None:
        self._chains = dict(DEFAULT_CHAINS if chains is None else chains)

    def config_for(self, chain_id: int) -> ChainConfig:
        try:
            return self._chains[chain_id]
        except KeyError:
            raise UnsupportedChain(chain_id) from None

    def supported_chain_ids(self) -> frozenset[int]:
        return frozenset(self._chains)

    def is_supported(self, chain_id: int) -> bool:
        return chain_id in self._chains

    def require(self, chain_ids: Iterable[int]) -> list[ChainConfig]:
        """Resolve every id up front; the first unknown one raises."""
        return [self.config_for(cid) for cid in chain_ids]

    def chain_name(self, chain_id: int) -> str:
        chain = self._chains.get(chain_id)
        return chain.name if chain else f"Chain {chain_id}"

    def explorer_tx_url(self, chain_id: int, tx_hash: str) -> str:
        chain = self._chains.get(chain_id)
        if not chain or not chain.block_explorer_url:
            return ""
        return f"{chain.block_explorer_url}/tx/{tx_hash}"

    def explorer_address_url(self, chain_id: int, address: str) -> str:
        chain = self._chains.get(chain_id)
        if not chain or not chain.block_explorer_url:
            return ""
        return f"{chain.block_explorer_url}/address/{address}"
