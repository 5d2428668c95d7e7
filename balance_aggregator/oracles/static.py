"""Fixed price table, for offline use and tests."""
from __future__ import annotations

from decimal import Decimal
from typing import Mapping


class StaticPriceOracle:
    """Serve USD prices from a configured symbol → price table."""

    def __init__(self, prices: Mapping[str, Decimal] | None = None) -> None:
        self._prices = {sym.upper(): Decimal(p) for sym, p in (prices or {}).items()}

    async def fetch_prices(self, symbols: list[str] | None = None) -> dict[str, Decimal]:
        if symbols is None:
            return dict(self._prices)
        wanted = {s.upper() for s in symbols}
        return {s: p for s, p in self._prices.items() if s in wanted}
