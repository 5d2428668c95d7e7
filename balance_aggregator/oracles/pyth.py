"""Pyth Network price oracle service."""
from __future__ import annotations

import logging
import ssl
from decimal import Decimal

import aiohttp
import certifi

from ..config import PythConfig

logger = logging.getLogger(__name__)


class PythOracle:
    """Fetch USD prices from the Pyth Hermes API."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = {sym.upper(): fid for sym, fid in config.feeds.items()}

    async def fetch_prices(self, symbols: list[str] | None = None) -> dict[str, Decimal]:
        """Fetch current prices from Pyth Network.

        Args:
            symbols: Optional list of symbols to fetch. If None, fetches all
                     configured feeds.

        Raises ``aiohttp.ClientError`` on transport failure; callers decide
        whether a missing price is fatal.
        """
        prices: dict[str, Decimal] = {}

        feeds = self.price_feeds
        if symbols is not None:
            wanted = {s.upper() for s in symbols}
            feeds = {k: v for k, v in self.price_feeds.items() if k in wanted}

        feed_ids = sorted(set(feeds.values()))
        if not feed_ids:
            return prices

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.get(
                self.hermes_url, params=[("ids[]", fid) for fid in feed_ids]
            ) as response:
                if response.status != 200:
                    logger.error(
                        "Error fetching prices from Pyth: HTTP %s", response.status
                    )
                    return prices

                data = await response.json()

        # Create reverse mapping from feed ID to asset names
        id_to_assets: dict[str, list[str]] = {}
        for asset, feed_id in feeds.items():
            id_to_assets.setdefault(feed_id.lower().removeprefix("0x"), []).append(asset)

        for item in data.get("parsed", []):
            feed_id = str(item.get("id", "")).lower().removeprefix("0x")
            price_data = item.get("price", {})
            price_raw = int(price_data.get("price", 0))
            expo = int(price_data.get("expo", 0))

            price = Decimal(price_raw).scaleb(expo)
            if price < 0:
                logger.warning("Ignoring negative Pyth price for feed %s", feed_id)
                continue

            for asset in id_to_assets.get(feed_id, []):
                prices[asset] = price

        logger.debug("Fetched %d prices from Pyth Network", len(prices))
        return prices
