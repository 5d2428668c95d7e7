"""Pending transaction store protocol."""
from typing import Iterable, Protocol

from ..models import PendingTransaction


class TransactionStore(Protocol):
    """Source of transactions submitted but not yet confirmed."""

    async def pending_for(
        self, address: str, chain_ids: Iterable[int]
    ) -> list[PendingTransaction]: ...
