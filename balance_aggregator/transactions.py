"""In-memory pending transaction store."""
from __future__ import annotations

import logging
import threading
from typing import Iterable

from .models import PendingTransaction

logger = logging.getLogger(__name__)


class InMemoryTransactionStore:
    """Tracks submitted transactions until they are confirmed or dropped."""

    def __init__(self) -> None:
        self._pending: dict[str, PendingTransaction] = {}
        self._lock = threading.Lock()

    def submit(self, tx: PendingTransaction) -> None:
        with self._lock:
            self._pending[tx.hash.lower()] = tx
        logger.info("Tracking pending transaction %s on chain %d", tx.hash, tx.chain_id)

    def resolve(self, tx_hash: str) -> PendingTransaction | None:
        """Stop tracking a transaction (confirmed, replaced or dropped)."""
        with self._lock:
            return self._pending.pop(tx_hash.lower(), None)

    async def pending_for(
        self, address: str, chain_ids: Iterable[int]
    ) -> list[PendingTransaction]:
        wanted = set(chain_ids)
        sender = address.lower()
        with self._lock:
            txs = list(self._pending.values())
        return sorted(
            (tx for tx in txs if tx.chain_id in wanted and tx.from_address.lower() == sender),
            key=lambda tx: tx.submitted_at,
        )
