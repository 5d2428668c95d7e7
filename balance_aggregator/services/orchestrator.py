"""Fan-out orchestration: one task per chain, bounded by a single deadline."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterator, Sequence

from ..chains.pool import ProviderPool
from ..config import ChainConfig
from ..exceptions import ProviderUnavailable, RpcError
from ..interfaces.chain import RpcConnection
from ..interfaces.fetcher import AssetFetcher
from ..interfaces.price_oracle import PriceOracle
from ..models import ChainReport, ChainStatus, RawTokenBalance, UnifiedAsset
from ..normalizer import normalize_record

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetcherSet:
    """The four per-chain data sources."""

    native: AssetFetcher
    tokens: AssetFetcher
    nfts: AssetFetcher
    defi: AssetFetcher

    def __iter__(self) -> Iterator[AssetFetcher]:
        return iter((self.native, self.tokens, self.nfts, self.defi))


@dataclass(frozen=True)
class FanOutResult:
    assets: tuple[UnifiedAsset, ...] = ()
    reports: tuple[ChainReport, ...] = ()


@dataclass
class _ChainFetch:
    """Everything one chain's unit of work gathered before normalization."""

    records: list[Any] = field(default_factory=list)
    prices: dict[str, Decimal] = field(default_factory=dict)
    failed: tuple[str, ...] = ()


class FanOutOrchestrator:
    """Runs every requested chain concurrently against a global deadline.

    Chains still running when the deadline passes are cancelled, so their
    in-flight RPC calls are torn down rather than left running unobserved.
    """

    def __init__(
        self,
        pool: ProviderPool,
        fetchers: FetcherSet,
        oracle: PriceOracle,
        deadline_seconds: float = 2.0,
    ) -> None:
        self._pool = pool
        self._fetchers = fetchers
        self._oracle = oracle
        self.deadline_seconds = deadline_seconds

    # ------------------------------------------------------------------
    # Per-chain unit of work
    # ------------------------------------------------------------------

    async def _guarded(
        self,
        fetcher: AssetFetcher,
        connection: RpcConnection,
        address: str,
        chain: ChainConfig,
    ) -> tuple[list[Any], Exception | None]:
        try:
            return list(await fetcher.fetch(connection, address, chain)), None
        except Exception as e:
            logger.warning("%s fetcher failed on %s: %s", fetcher.kind, chain.name, e)
            return [], e

    async def _fetch_prices(self, chain: ChainConfig, tokens: list[RawTokenBalance]) -> dict[str, Decimal]:
        symbols = {chain.native_currency.symbol.upper()}
        symbols.update(r.token.symbol.upper() for r in tokens)
        try:
            prices = await self._oracle.fetch_prices(sorted(symbols))
        except Exception as e:
            logger.warning("Price lookup failed on %s: %s", chain.name, e)
            return {}
        return {sym.upper(): price for sym, price in prices.items()}

    async def _run_chain(self, chain: ChainConfig, address: str) -> _ChainFetch:
        connection = await self._pool.get_provider(chain.chain_id)

        results = await asyncio.gather(
            *(self._guarded(f, connection, address, chain) for f in self._fetchers)
        )
        native_err = results[0][1]
        tokens = [r for r in results[1][0] if isinstance(r, RawTokenBalance)]

        # The native balance is the plainest RPC read, so its transport
        # failure is taken as the endpoint being down.
        if isinstance(native_err, RpcError):
            await self._pool.mark_failed(chain.chain_id, native_err.url)
            if self._pool.failed_endpoints(chain.chain_id) >= set(chain.rpc_endpoints):
                raise ProviderUnavailable(chain.chain_id, str(native_err))

        failed = tuple(
            f.kind for f, (_, err) in zip(self._fetchers, results) if err is not None
        )
        return _ChainFetch(
            records=[record for records, _ in results for record in records],
            prices=await self._fetch_prices(chain, tokens),
            failed=failed,
        )

    # ------------------------------------------------------------------
    # Normalization (synchronous)
    # ------------------------------------------------------------------

    @staticmethod
    def _normalize(chain: ChainConfig, fetched: _ChainFetch) -> list[UnifiedAsset]:
        assets: list[UnifiedAsset] = []
        for raw in fetched.records:
            try:
                asset = normalize_record(raw, chain, fetched.prices)
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning("Dropping malformed record on %s: %s", chain.name, e)
                continue
            if asset is not None:
                assets.append(asset)
        return assets

    def _collect(
        self, task: asyncio.Task, chain: ChainConfig
    ) -> tuple[list[UnifiedAsset], ChainReport]:
        try:
            fetched = task.result()
        except ProviderUnavailable as e:
            logger.warning("%s contributes no assets: %s", chain.name, e)
            return [], ChainReport(chain.chain_id, chain.name, ChainStatus.PROVIDER_UNAVAILABLE)
        except Exception:
            logger.exception("Unexpected failure aggregating %s", chain.name)
            return [], ChainReport(chain.chain_id, chain.name, ChainStatus.FAILED)

        status = ChainStatus.PARTIAL if fetched.failed else ChainStatus.COMPLETE
        report = ChainReport(chain.chain_id, chain.name, status, fetched.failed)
        return self._normalize(chain, fetched), report

    # ------------------------------------------------------------------
    # Fan-out / fan-in
    # ------------------------------------------------------------------

    async def run(self, address: str, chains: Sequence[ChainConfig]) -> FanOutResult:
        """Aggregate ``chains`` for ``address`` within the deadline.

        Never raises for per-chain problems; the returned reports say which
        chains completed, partially completed, failed or timed out.
        """
        if not chains:
            return FanOutResult()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.deadline_seconds

        tasks = {
            asyncio.create_task(
                self._run_chain(chain, address), name=f"chain-{chain.chain_id}"
            ): chain
            for chain in chains
        }
        pending = set(tasks)
        assets: list[UnifiedAsset] = []
        reports: list[ChainReport] = []

        try:
            while pending:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                done, pending = await asyncio.wait(
                    pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
                )
                for task in done:
                    chain_assets, report = self._collect(task, tasks[task])
                    assets.extend(chain_assets)
                    reports.append(report)
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        for task in pending:
            chain = tasks[task]
            logger.warning(
                "%s missed the %.1fs deadline; excluded from dashboard",
                chain.name,
                self.deadline_seconds,
            )
            reports.append(ChainReport(chain.chain_id, chain.name, ChainStatus.TIMED_OUT))

        return FanOutResult(assets=tuple(assets), reports=tuple(reports))
