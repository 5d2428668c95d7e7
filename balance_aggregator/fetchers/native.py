"""Native coin balance fetcher."""
from __future__ import annotations

from ..config import ChainConfig
from ..interfaces.chain import RpcConnection
from ..models import RawNativeBalance


class NativeBalanceFetcher:
    kind = "native"

    async def fetch(
        self, connection: RpcConnection, address: str, chain: ChainConfig
    ) -> list[RawNativeBalance]:
        return [RawNativeBalance(amount=await connection.get_balance(address))]
