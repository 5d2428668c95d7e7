"""Entry point for balance aggregation: validation, caching, fan-out, assembly."""
from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from eth_utils import is_address, to_checksum_address

from ..chains import EvmRpcClient, ProviderPool
from ..config import AppConfig, TokenConfig
from ..exceptions import InvalidAddress, UnsupportedChain
from ..fetchers import (
    DefiPositionFetcher,
    NativeBalanceFetcher,
    NftFetcher,
    TokenBalanceFetcher,
)
from ..interfaces.transaction_store import TransactionStore
from ..models import AssetDashboard, PendingTransaction
from ..oracles import build_oracle
from ..providers import (
    NftMetadataResolver,
    NullDefiProvider,
    NullNftProvider,
    StaticTokenList,
)
from ..registry import ChainRegistry
from ..transactions import InMemoryTransactionStore
from .assembler import assemble_dashboard
from .cache import BalanceCache
from .orchestrator import FanOutOrchestrator, FetcherSet

logger = logging.getLogger(__name__)


class BalanceAggregator:
    """Produces cached multi-chain dashboards for an address."""

    def __init__(
        self,
        registry: ChainRegistry,
        pool: ProviderPool,
        orchestrator: FanOutOrchestrator,
        cache: BalanceCache,
        transaction_store: TransactionStore | None = None,
        refresh_interval_seconds: int = 60,
        recovery_interval_minutes: int = 10,
        token_list: StaticTokenList | None = None,
    ) -> None:
        self._registry = registry
        self._pool = pool
        self._orchestrator = orchestrator
        self._cache = cache
        self._transactions = transaction_store
        self._refresh_interval = refresh_interval_seconds
        self._recovery_interval = recovery_interval_minutes
        self._token_list = token_list

    @classmethod
    def from_config(cls, config: AppConfig) -> BalanceAggregator:
        """Wire the default stack: EVM RPC, static token list, configured oracle."""
        registry = ChainRegistry(config.chains)
        pool = ProviderPool(registry, EvmRpcClient)
        token_list = StaticTokenList(config.tokens or None)
        fetchers = FetcherSet(
            native=NativeBalanceFetcher(),
            tokens=TokenBalanceFetcher(token_list),
            nfts=NftFetcher(NullNftProvider(), NftMetadataResolver(config.nft)),
            defi=DefiPositionFetcher(NullDefiProvider()),
        )
        orchestrator = FanOutOrchestrator(
            pool,
            fetchers,
            build_oracle(config.price_oracle),
            deadline_seconds=config.aggregator.deadline_seconds,
        )
        return cls(
            registry,
            pool,
            orchestrator,
            BalanceCache(ttl_seconds=config.aggregator.cache_ttl_seconds),
            InMemoryTransactionStore(),
            refresh_interval_seconds=config.aggregator.refresh_interval_seconds,
            recovery_interval_minutes=config.aggregator.recovery_interval_minutes,
            token_list=token_list,
        )

    @property
    def registry(self) -> ChainRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    async def _pending_transactions(
        self, address: str, chain_ids: Sequence[int]
    ) -> list[PendingTransaction]:
        if self._transactions is None or not chain_ids:
            return []
        # Bounded by the same deadline as the chain fan-out it runs beside.
        timeout = self._orchestrator.deadline_seconds
        try:
            return list(
                await asyncio.wait_for(
                    self._transactions.pending_for(address, chain_ids), timeout
                )
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Pending transaction lookup missed the %.1fs deadline", timeout
            )
            return []
        except Exception as e:
            logger.error("Error fetching pending transactions: %s", e)
            return []

    async def aggregate_balances(
        self, address: str, chain_ids: Sequence[int]
    ) -> AssetDashboard:
        """Return the dashboard for ``address`` across ``chain_ids``.

        Raises:
            InvalidAddress: ``address`` is not a well-formed EVM address.
            UnsupportedChain: a chain id is missing from the registry.

        Slow or failing chains never raise; they show up in
        ``dashboard.chains`` with a non-complete status.
        """
        if not isinstance(address, str) or not is_address(address):
            raise InvalidAddress(address)
        address = to_checksum_address(address)

        unique_ids = list(dict.fromkeys(chain_ids))
        chains = self._registry.require(unique_ids)

        key = self._cache.make_key(address, unique_ids)
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        result, pending = await asyncio.gather(
            self._orchestrator.run(address, chains),
            self._pending_transactions(address, unique_ids),
        )

        dashboard = assemble_dashboard(
            result.assets, result.reports, pending, address, unique_ids
        )
        if dashboard.partial:
            logger.info(
                "Partial dashboard for %s: incomplete chains %s",
                address,
                list(dashboard.incomplete_chain_ids),
            )

        self._cache.set(key, dashboard)
        return dashboard

    # ------------------------------------------------------------------
    # Cache and provider management
    # ------------------------------------------------------------------

    def invalidate(self, address: str) -> None:
        self._cache.invalidate(address)

    def invalidate_all(self) -> None:
        self._cache.invalidate_all()

    async def mark_provider_failed(self, chain_id: int, endpoint_url: str) -> None:
        self._registry.config_for(chain_id)
        await self._pool.mark_failed(chain_id, endpoint_url)

    async def reset_provider_failures(self, chain_id: int) -> None:
        self._registry.config_for(chain_id)
        await self._pool.reset_failures(chain_id)

    async def add_custom_token(
        self, chain_id: int, token_address: str
    ) -> TokenConfig | None:
        """Track an ERC-20 by address, reading its metadata from the chain.

        Returns the new entry, or None when the contract could not be read or
        the token is already listed.
        """
        if self._token_list is None:
            raise RuntimeError("No token list configured")
        if not is_address(token_address):
            raise InvalidAddress(token_address)
        self._registry.config_for(chain_id)

        connection = await self._pool.get_provider(chain_id)
        token = await self._token_list.discover_token(
            connection, chain_id, to_checksum_address(token_address)
        )
        if token is not None:
            self.invalidate_all()
        return token

    # ------------------------------------------------------------------
    # Continuous refresh
    # ------------------------------------------------------------------

    async def run_continuous(
        self,
        address: str,
        chain_ids: Sequence[int],
        interval_seconds: int | None = None,
    ) -> None:
        """Refresh the dashboard forever, periodically retrying failed endpoints."""
        interval = interval_seconds or self._refresh_interval
        loop = asyncio.get_running_loop()
        last_recovery = loop.time()
        logger.info(
            "Starting continuous refresh for %s (every %d seconds)", address, interval
        )

        while True:
            try:
                if loop.time() - last_recovery >= self._recovery_interval * 60:
                    for chain_id in chain_ids:
                        await self.reset_provider_failures(chain_id)
                    last_recovery = loop.time()

                self.invalidate(address)
                dashboard = await self.aggregate_balances(address, chain_ids)
                logger.info(
                    "Dashboard %s: $%s across %d tokens, %d NFTs, %d DeFi positions%s",
                    address,
                    dashboard.total_value_usd,
                    len(dashboard.tokens),
                    len(dashboard.nfts),
                    len(dashboard.defi_positions),
                    " (partial)" if dashboard.partial else "",
                )
                await asyncio.sleep(interval)
            except (InvalidAddress, UnsupportedChain):
                raise
            except Exception as e:
                logger.error("Error in refresh loop: %s", e)
                await asyncio.sleep(interval)
