"""Shared test fixtures, fakes and sample data."""
from __future__ import annotations

import asyncio
import textwrap
from decimal import Decimal
from pathlib import Path

import pytest

from balance_aggregator.chains.pool import ProviderPool
from balance_aggregator.config import ChainConfig, NativeCurrency, TokenConfig
from balance_aggregator.exceptions import RpcError
from balance_aggregator.fetchers import (
    DefiPositionFetcher,
    NativeBalanceFetcher,
    NftFetcher,
    TokenBalanceFetcher,
)
from balance_aggregator.models import RawDefiPosition, RawNft
from balance_aggregator.oracles import StaticPriceOracle
from balance_aggregator.providers import NullDefiProvider, NullNftProvider, StaticTokenList
from balance_aggregator.registry import ChainRegistry
from balance_aggregator.services.cache import BalanceCache
from balance_aggregator.services.orchestrator import FanOutOrchestrator, FetcherSet

ADDRESS = "0xABCDEF0000000000000000000000000000000001"
ONE_ETH = 10**18

USDC = TokenConfig(
    address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    symbol="USDC",
    name="USD Coin",
    decimals=6,
    price=Decimal("1"),
)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeConnection:
    """In-memory RpcConnection.

    ``balances`` maps chain-scoped addresses to wei; ``token_balances`` maps
    (token, owner) to raw units and ``token_metadata`` maps token to
    (symbol, name, decimals). ``down`` makes every call raise RpcError.
    """

    def __init__(
        self,
        url: str,
        chain: ChainConfig,
        balances: dict[str, int] | None = None,
        token_balances: dict[tuple[str, str], int] | None = None,
        token_metadata: dict[str, tuple[str, str, int]] | None = None,
        down: bool = False,
        delay: float = 0.0,
    ) -> None:
        self._url = url
        self.chain = chain
        self.balances = balances or {}
        self.token_balances = token_balances or {}
        self.token_metadata = token_metadata or {}
        self.down = down
        self.queried: list[str] = []
        self.delay = delay
        self.opened = False
        self.cancelled = False

    @property
    def url(self) -> str:
        return self._url

    async def _io(self) -> None:
        if self.down:
            raise RpcError(self._url, "connection refused")
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise

    async def open(self) -> None:
        await self._io()
        self.opened = True

    async def get_balance(self, address: str) -> int:
        await self._io()
        self.queried.append(address)
        return self.balances.get(address.lower(), 0)

    async def erc20_balance_of(self, token_address: str, owner: str) -> int:
        await self._io()
        return self.token_balances.get((token_address.lower(), owner.lower()), 0)

    async def erc20_metadata(self, token_address: str) -> tuple[str, str, int]:
        await self._io()
        try:
            return self.token_metadata[token_address.lower()]
        except KeyError:
            raise RpcError(self._url, "execution reverted") from None


class FakeNetwork:
    """Connection factory whose endpoints can be taken down per URL."""

    def __init__(self) -> None:
        self.down_urls: set[str] = set()
        self.balances: dict[int, dict[str, int]] = {}
        self.token_balances: dict[int, dict[tuple[str, str], int]] = {}
        self.token_metadata: dict[int, dict[str, tuple[str, str, int]]] = {}
        self.delays: dict[int, float] = {}
        self.created: list[FakeConnection] = []

    def set_balance(self, chain_id: int, address: str, wei: int) -> None:
        self.balances.setdefault(chain_id, {})[address.lower()] = wei

    def set_token_balance(self, chain_id: int, token: str, owner: str, raw: int) -> None:
        self.token_balances.setdefault(chain_id, {})[(token.lower(), owner.lower())] = raw

    def set_token_metadata(
        self, chain_id: int, token: str, symbol: str, name: str, decimals: int
    ) -> None:
        self.token_metadata.setdefault(chain_id, {})[token.lower()] = (symbol, name, decimals)

    def __call__(self, url: str, chain: ChainConfig) -> FakeConnection:
        conn = FakeConnection(
            url,
            chain,
            balances=self.balances.get(chain.chain_id),
            token_balances=self.token_balances.get(chain.chain_id),
            token_metadata=self.token_metadata.get(chain.chain_id),
            down=url in self.down_urls,
            delay=self.delays.get(chain.chain_id, 0.0),
        )
        self.created.append(conn)
        return conn


class FailingFetcher:
    """Fetcher that always raises."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.calls = 0

    async def fetch(self, connection, address, chain):
        self.calls += 1
        raise RuntimeError(f"{self.kind} indexer down")


class StaticNftProvider:
    def __init__(self, nfts: dict[int, list[RawNft]]) -> None:
        self._nfts = nfts

    async def list_nfts(self, address: str, chain_id: int) -> list[RawNft]:
        return list(self._nfts.get(chain_id, []))


class StaticDefiProvider:
    def __init__(self, positions: dict[int, list[RawDefiPosition]]) -> None:
        self._positions = positions

    async def list_positions(self, address: str, chain_id: int) -> list[RawDefiPosition]:
        return list(self._positions.get(chain_id, []))


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


def _chain(chain_id: int, name: str, symbol: str) -> ChainConfig:
    slug = name.lower()
    return ChainConfig(
        chain_id=chain_id,
        name=name,
        rpc_endpoints=(f"https://rpc1.{slug}.example", f"https://rpc2.{slug}.example"),
        native_currency=NativeCurrency(name=name, symbol=symbol, decimals=18),
        block_explorer_url=f"https://explorer.{slug}.example",
        rpc_timeout=5,
    )


@pytest.fixture()
def eth_chain() -> ChainConfig:
    return _chain(1, "Ethereum", "ETH")


@pytest.fixture()
def polygon_chain() -> ChainConfig:
    return _chain(137, "Polygon", "MATIC")


@pytest.fixture()
def base_chain() -> ChainConfig:
    return _chain(8453, "Base", "ETH")


@pytest.fixture()
def registry(
    eth_chain: ChainConfig, polygon_chain: ChainConfig, base_chain: ChainConfig
) -> ChainRegistry:
    return ChainRegistry({c.chain_id: c for c in (eth_chain, polygon_chain, base_chain)})


@pytest.fixture()
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture()
def pool(registry: ChainRegistry, network: FakeNetwork) -> ProviderPool:
    return ProviderPool(registry, network)


@pytest.fixture()
def token_list() -> StaticTokenList:
    return StaticTokenList({1: (USDC,)})


@pytest.fixture()
def oracle() -> StaticPriceOracle:
    return StaticPriceOracle({"ETH": Decimal("2500"), "MATIC": Decimal("0.8")})


@pytest.fixture()
def fetchers(token_list: StaticTokenList) -> FetcherSet:
    return FetcherSet(
        native=NativeBalanceFetcher(),
        tokens=TokenBalanceFetcher(token_list),
        nfts=NftFetcher(NullNftProvider()),
        defi=DefiPositionFetcher(NullDefiProvider()),
    )


@pytest.fixture()
def orchestrator(
    pool: ProviderPool, fetchers: FetcherSet, oracle: StaticPriceOracle
) -> FanOutOrchestrator:
    return FanOutOrchestrator(pool, fetchers, oracle, deadline_seconds=2.0)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock: FakeClock) -> BalanceCache:
    return BalanceCache(ttl_seconds=30.0, clock=clock)


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    aggregator:
      cache_ttl_seconds: 15
      deadline_seconds: 1.5
    chains:
      1:
        name: Ethereum
        rpc_endpoints: ["https://rpc.example.com", "https://rpc2.example.com"]
        native_currency: {name: Ethereum, symbol: ETH, decimals: 18}
        block_explorer_url: https://etherscan.io
        rpc_timeout: 7
      137:
        name: Polygon
        rpc_endpoints: ["https://polygon.example.com"]
        native_currency: {name: Polygon, symbol: MATIC, decimals: 18}
    tokens:
      1:
        - {address: "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", symbol: USDC, decimals: 6, price: 1.0}
    price_oracle:
      provider: static
      static_prices: {eth: 2500, MATIC: 0.8}
    nft:
      ipfs_gateway: "https://gateway.example/ipfs/"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
