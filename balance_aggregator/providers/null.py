"""Empty NFT and DeFi providers.

Used when no indexer or protocol decoder is wired in; the aggregation
pipeline still runs these fetchers so a real provider can be dropped in.
"""
from __future__ import annotations

from ..models import RawDefiPosition, RawNft


class NullNftProvider:
    async def list_nfts(self, address: str, chain_id: int) -> list[RawNft]:
        return []


class NullDefiProvider:
    async def list_positions(self, address: str, chain_id: int) -> list[RawDefiPosition]:
        return []
