"""Provider pool — per-chain connection handle with endpoint failover."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable

from ..config import ChainConfig
from ..exceptions import ProviderUnavailable
from ..interfaces.chain import RpcConnection
from ..registry import ChainRegistry

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[str, ChainConfig], RpcConnection]


@dataclass
class _ChainSlot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    connection: RpcConnection | None = None
    failed_endpoints: set[str] = field(default_factory=set)


class ProviderPool:
    """Hands out one live connection per chain and remembers bad endpoints.

    Every mutation of a chain's slot happens under that chain's lock, so
    failure marking never races endpoint selection.
    """

    def __init__(self, registry: ChainRegistry, connection_factory: ConnectionFactory) -> None:
        self._registry = registry
        self._factory = connection_factory
        self._slots: dict[int, _ChainSlot] = {}

    def _slot(self, chain_id: int) -> _ChainSlot:
        slot = self._slots.get(chain_id)
        if slot is None:
            slot = self._slots[chain_id] = _ChainSlot()
        return slot

    async def get_provider(self, chain_id: int) -> RpcConnection:
        """Return the cached connection or select a fresh endpoint."""
        chain = self._registry.config_for(chain_id)
        slot = self._slot(chain_id)

        async with slot.lock:
            if slot.connection is not None:
                return slot.connection

            for url in chain.rpc_endpoints:
                if url in slot.failed_endpoints:
                    continue
                try:
                    connection = self._factory(url, chain)
                    await connection.open()
                except Exception as e:
                    logger.warning(
                        "Endpoint %s for %s unusable: %s", url, chain.name, e
                    )
                    slot.failed_endpoints.add(url)
                    continue

                if slot.failed_endpoints:
                    logger.info("Switched %s to RPC endpoint: %s", chain.name, url)
                slot.connection = connection
                return connection

            # Every endpoint is marked failed: serve from the first one anyway.
            if not chain.rpc_endpoints:
                raise ProviderUnavailable(chain_id, "no endpoints configured")
            fallback_url = chain.rpc_endpoints[0]
            logger.warning(
                "All RPC endpoints for %s marked failed; falling back to %s",
                chain.name,
                fallback_url,
            )
            try:
                connection = self._factory(fallback_url, chain)
            except Exception as e:
                raise ProviderUnavailable(chain_id, str(e)) from e
            slot.connection = connection
            return connection

    async def mark_failed(self, chain_id: int, url: str) -> None:
        """Remember ``url`` as bad and force re-selection on the next call."""
        slot = self._slot(chain_id)
        async with slot.lock:
            slot.failed_endpoints.add(url)
            slot.connection = None
        logger.info("Marked RPC endpoint %s failed for chain %d", url, chain_id)

    async def reset_failures(self, chain_id: int) -> None:
        slot = self._slot(chain_id)
        async with slot.lock:
            slot.failed_endpoints.clear()
            slot.connection = None
        logger.info("Reset RPC failures for chain %d", chain_id)

    async def reset_all(self) -> None:
        for chain_id in list(self._slots):
            await self.reset_failures(chain_id)

    def failed_endpoints(self, chain_id: int) -> frozenset[str]:
        slot = self._slots.get(chain_id)
        return frozenset(slot.failed_endpoints) if slot else frozenset()
