"""ERC-20 balance fetcher, one concurrent ``balanceOf`` per listed token."""
from __future__ import annotations

import asyncio
import logging

from ..config import ChainConfig, TokenConfig
from ..exceptions import FetcherError
from ..interfaces.chain import RpcConnection
from ..interfaces.providers import TokenListProvider
from ..models import RawTokenBalance

logger = logging.getLogger(__name__)


class TokenBalanceFetcher:
    kind = "tokens"

    def __init__(self, token_list: TokenListProvider) -> None:
        self._token_list = token_list

    async def _balance(
        self, connection: RpcConnection, token: TokenConfig, owner: str
    ) -> int | None:
        try:
            return await connection.erc20_balance_of(token.address, owner)
        except Exception as e:
            logger.warning("Error fetching balance for %s: %s", token.symbol, e)
            return None

    async def fetch(
        self, connection: RpcConnection, address: str, chain: ChainConfig
    ) -> list[RawTokenBalance]:
        tokens = await self._token_list.tokens_for_chain(chain.chain_id)
        if not tokens:
            return []

        amounts = await asyncio.gather(
            *(self._balance(connection, token, address) for token in tokens)
        )
        if all(a is None for a in amounts):
            raise FetcherError(self.kind, chain.chain_id, "every balanceOf call failed")

        return [
            RawTokenBalance(token=token, amount=amount)
            for token, amount in zip(tokens, amounts)
            if amount
        ]
