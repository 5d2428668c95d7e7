"""Asset fetcher protocol for one asset class on one chain."""
from typing import Any, Protocol

from ..config import ChainConfig
from .chain import RpcConnection


class AssetFetcher(Protocol):
    """Fetch raw records of one asset class for an address on a chain."""

    @property
    def kind(self) -> str: ...

    async def fetch(
        self, connection: RpcConnection, address: str, chain: ChainConfig
    ) -> list[Any]: ...
