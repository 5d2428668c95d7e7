"""NFT metadata resolution from token URIs (HTTP and IPFS)."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import NftConfig
from ..normalizer import resolve_ipfs

logger = logging.getLogger(__name__)


class NftMetadataResolver:
    """Fetch ERC-721 metadata JSON (``name``, ``image``, ``description``)."""

    def __init__(self, config: NftConfig) -> None:
        self.gateway = config.ipfs_gateway
        self.timeout = config.metadata_timeout

    async def resolve(self, token_uri: str) -> dict[str, Any] | None:
        """Return metadata with IPFS links rewritten, or None if unavailable."""
        if not token_uri:
            return None

        url = resolve_ipfs(token_uri, self.gateway)
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        logger.warning(
                            "NFT metadata %s returned HTTP %s", url, response.status
                        )
                        return None
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Error fetching NFT metadata %s: %s", url, e)
            return None

        if not isinstance(data, dict):
            return None

        return {
            "name": data.get("name") or "Unknown",
            "description": data.get("description") or "",
            "image": resolve_ipfs(data.get("image") or "", self.gateway),
        }
