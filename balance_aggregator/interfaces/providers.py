"""External data providers behind the token, NFT and DeFi fetchers."""
from typing import Protocol

from ..config import TokenConfig
from ..models import RawDefiPosition, RawNft


class TokenListProvider(Protocol):
    """Known fungible tokens per chain."""

    async def tokens_for_chain(self, chain_id: int) -> list[TokenConfig]: ...


class NftProvider(Protocol):
    """NFT ownership index."""

    async def list_nfts(self, address: str, chain_id: int) -> list[RawNft]: ...


class DefiPositionProvider(Protocol):
    """Protocol-specific DeFi position decoder."""

    async def list_positions(
        self, address: str, chain_id: int
    ) -> list[RawDefiPosition]: ...
