"""DeFi position fetcher."""
from __future__ import annotations

from ..config import ChainConfig
from ..interfaces.chain import RpcConnection
from ..interfaces.providers import DefiPositionProvider
from ..models import RawDefiPosition


class DefiPositionFetcher:
    kind = "defi"

    def __init__(self, provider: DefiPositionProvider) -> None:
        self._provider = provider

    async def fetch(
        self, connection: RpcConnection, address: str, chain: ChainConfig
    ) -> list[RawDefiPosition]:
        return await self._provider.list_positions(address, chain.chain_id)
