"""NFT ownership fetcher with metadata resolution."""
from __future__ import annotations

import asyncio
import dataclasses

from ..config import ChainConfig
from ..interfaces.chain import RpcConnection
from ..interfaces.providers import NftProvider
from ..models import RawNft
from ..providers.nft_metadata import NftMetadataResolver


class NftFetcher:
    kind = "nfts"

    def __init__(
        self, provider: NftProvider, resolver: NftMetadataResolver | None = None
    ) -> None:
        self._provider = provider
        self._resolver = resolver

    async def _resolve(self, nft: RawNft) -> RawNft:
        # Indexers often return name/image already; only hit the URI when missing.
        if self._resolver is None or (nft.name and nft.image) or not nft.metadata_uri:
            return nft
        meta = await self._resolver.resolve(nft.metadata_uri)
        if not meta:
            return nft
        return dataclasses.replace(
            nft,
            name=nft.name or meta["name"],
            image=nft.image or meta["image"],
            description=nft.description or meta["description"],
        )

    async def fetch(
        self, connection: RpcConnection, address: str, chain: ChainConfig
    ) -> list[RawNft]:
        nfts = await self._provider.list_nfts(address, chain.chain_id)
        return list(await asyncio.gather(*(self._resolve(n) for n in nfts)))
