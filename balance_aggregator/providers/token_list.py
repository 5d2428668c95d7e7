"""Static token list provider with per-chain custom token support."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping

from ..config import TokenConfig
from ..exceptions import RpcError
from ..interfaces.chain import RpcConnection

logger = logging.getLogger(__name__)

_ONE = Decimal("1")


def _stable(address: str, symbol: str, name: str, decimals: int) -> TokenConfig:
    return TokenConfig(address=address, symbol=symbol, name=name, decimals=decimals, price=_ONE)


DEFAULT_TOKENS: dict[int, tuple[TokenConfig, ...]] = {
    1: (
        _stable("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "USDC", "USD Coin", 6),
        _stable("0xdAC17F958D2ee523a2206206994597C13D831ec7", "USDT", "Tether USD", 6),
        _stable("0x6B175474E89094C44Da98b954EedeAC495271d0F", "DAI", "Dai Stablecoin", 18),
        TokenConfig(
            address="0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599",
            symbol="WBTC",
            name="Wrapped Bitcoin",
            decimals=8,
            price=Decimal("45000"),
        ),
    ),
    137: (
        _stable("0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174", "USDC", "USD Coin", 6),
        _stable("0xc2132D05D31c914a87C6611C10748AEb04B58e8F", "USDT", "Tether USD", 6),
        _stable("0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063", "DAI", "Dai Stablecoin", 18),
    ),
    42161: (
        _stable("0xaf88d065e77c8cC2239327C5EDb3A432268e5831", "USDC", "USD Coin", 6),
        _stable("0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9", "USDT", "Tether USD", 6),
        _stable("0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1", "DAI", "Dai Stablecoin", 18),
    ),
    8453: (
        _stable("0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", "USDC", "USD Coin", 6),
        _stable("0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb", "DAI", "Dai Stablecoin", 18),
    ),
}


class StaticTokenList:
    """In-memory token list keyed by chain id."""

    def __init__(self, tokens: Mapping[int, tuple[TokenConfig, ...]] | None = None) -> None:
        source = DEFAULT_TOKENS if tokens is None else tokens
        self._tokens: dict[int, list[TokenConfig]] = {
            chain_id: list(entries) for chain_id, entries in source.items()
        }

    async def tokens_for_chain(self, chain_id: int) -> list[TokenConfig]:
        return list(self._tokens.get(chain_id, []))

    def add_token(self, chain_id: int, token: TokenConfig) -> bool:
        """Track a custom token; returns False if the address is already listed."""
        entries = self._tokens.setdefault(chain_id, [])
        if any(t.address.lower() == token.address.lower() for t in entries):
            return False
        entries.append(token)
        logger.info("Added custom token %s on chain %d", token.symbol, chain_id)
        return True

    def remove_token(self, chain_id: int, token_address: str) -> bool:
        entries = self._tokens.get(chain_id, [])
        kept = [t for t in entries if t.address.lower() != token_address.lower()]
        if len(kept) == len(entries):
            return False
        self._tokens[chain_id] = kept
        return True

    async def discover_token(
        self, connection: RpcConnection, chain_id: int, token_address: str
    ) -> TokenConfig | None:
        """Read an ERC-20's metadata on-chain and start tracking it.

        Returns None when the contract does not answer like an ERC-20 or the
        token is already listed. Discovered tokens carry no price.
        """
        try:
            symbol, name, decimals = await connection.erc20_metadata(token_address)
        except (RpcError, ValueError) as e:
            logger.warning("Could not read token metadata for %s on chain %d: %s",
                           token_address, chain_id, e)
            return None

        token = TokenConfig(address=token_address, symbol=symbol, name=name, decimals=decimals)
        if not self.add_token(chain_id, token):
            return None
        return token
