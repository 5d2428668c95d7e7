"""Unit tests for Pyth response parsing and the static price table."""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from balance_aggregator.config import PriceOracleConfig, PythConfig
from balance_aggregator.oracles import PythOracle, StaticPriceOracle, build_oracle


@pytest.fixture()
def pyth() -> PythOracle:
    return PythOracle(
        PythConfig(
            hermes_url="https://hermes.example.com/v2/updates/price/latest",
            feeds={"ETH": "0xAAA111", "wbtc": "bbb222", "USDC": "ccc333"},
        )
    )


def _make_pyth_response(items: list[dict]) -> dict:
    return {"parsed": items}


def _mock_session(status: int = 200, data: dict | None = None) -> AsyncMock:
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.json = AsyncMock(return_value=data)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    mock_session.get = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)
    return mock_session


class TestPythOracleFetchPrices:
    @pytest.mark.asyncio
    async def test_parses_response_correctly(self, pyth: PythOracle) -> None:
        mock_session = _mock_session(
            data=_make_pyth_response(
                [
                    {"id": "aaa111", "price": {"price": "250000000000", "expo": "-8"}},
                    {"id": "bbb222", "price": {"price": "4500000000000", "expo": "-8"}},
                    {"id": "ccc333", "price": {"price": "100000000", "expo": "-8"}},
                ]
            )
        )

        with patch("balance_aggregator.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("balance_aggregator.oracles.pyth.aiohttp.TCPConnector"):
                prices = await pyth.fetch_prices()

        assert prices["ETH"] == Decimal("2500")
        assert prices["WBTC"] == Decimal("45000")
        assert prices["USDC"] == Decimal("1")

    @pytest.mark.asyncio
    async def test_handles_http_error(self, pyth: PythOracle) -> None:
        mock_session = _mock_session(status=500)

        with patch("balance_aggregator.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("balance_aggregator.oracles.pyth.aiohttp.TCPConnector"):
                prices = await pyth.fetch_prices()

        assert prices == {}

    @pytest.mark.asyncio
    async def test_network_error_propagates(self, pyth: PythOracle) -> None:
        mock_session = _mock_session()
        mock_session.get = MagicMock(side_effect=ConnectionError("timeout"))

        with patch("balance_aggregator.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("balance_aggregator.oracles.pyth.aiohttp.TCPConnector"):
                with pytest.raises(ConnectionError):
                    await pyth.fetch_prices()

    @pytest.mark.asyncio
    async def test_negative_price_skipped(self, pyth: PythOracle) -> None:
        mock_session = _mock_session(
            data=_make_pyth_response(
                [{"id": "aaa111", "price": {"price": "-5", "expo": "0"}}]
            )
        )

        with patch("balance_aggregator.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("balance_aggregator.oracles.pyth.aiohttp.TCPConnector"):
                prices = await pyth.fetch_prices()

        assert prices == {}

    @pytest.mark.asyncio
    async def test_symbol_filter(self, pyth: PythOracle) -> None:
        mock_session = _mock_session(
            data=_make_pyth_response(
                [{"id": "aaa111", "price": {"price": "250000000000", "expo": "-8"}}]
            )
        )

        with patch("balance_aggregator.oracles.pyth.aiohttp.ClientSession", return_value=mock_session):
            with patch("balance_aggregator.oracles.pyth.aiohttp.TCPConnector"):
                prices = await pyth.fetch_prices(symbols=["eth"])

        assert "ETH" in prices
        # WBTC and USDC not requested
        assert "WBTC" not in prices
        _, kwargs = mock_session.get.call_args
        assert kwargs["params"] == [("ids[]", "0xAAA111")]

    @pytest.mark.asyncio
    async def test_empty_feeds_returns_empty(self) -> None:
        oracle = PythOracle(PythConfig(hermes_url="https://x.com", feeds={}))
        prices = await oracle.fetch_prices()
        assert prices == {}


class TestStaticPriceOracle:
    @pytest.mark.asyncio
    async def test_symbols_are_case_insensitive(self) -> None:
        oracle = StaticPriceOracle({"eth": Decimal("2500"), "MATIC": Decimal("0.8")})
        assert await oracle.fetch_prices(["ETH"]) == {"ETH": Decimal("2500")}
        assert await oracle.fetch_prices() == {
            "ETH": Decimal("2500"),
            "MATIC": Decimal("0.8"),
        }


class TestBuildOracle:
    def test_static_by_default(self) -> None:
        assert isinstance(build_oracle(PriceOracleConfig()), StaticPriceOracle)

    def test_pyth(self) -> None:
        assert isinstance(build_oracle(PriceOracleConfig(provider="pyth")), PythOracle)
