"""Price oracle protocol."""
from decimal import Decimal
from typing import Protocol


class PriceOracle(Protocol):
    """Abstract interface for fetching USD prices by symbol."""

    async def fetch_prices(
        self, symbols: list[str] | None = None
    ) -> dict[str, Decimal]: ...
