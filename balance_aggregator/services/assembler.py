"""Dashboard assembly. Merges normalized assets into one snapshot without I/O."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ..models import (
    AssetDashboard,
    AssetKind,
    ChainReport,
    PendingTransaction,
    UnifiedAsset,
)
from ..normalizer import CENTS


def total_value(assets: Iterable[UnifiedAsset]) -> str:
    """Decimal sum of ``value_usd`` over ``assets``, to 2 places."""
    total = sum((Decimal(a.value_usd) for a in assets), Decimal("0"))
    return str(total.quantize(CENTS, rounding=ROUND_HALF_UP))


def filter_pending(
    pending: Iterable[PendingTransaction], address: str, chain_ids: Iterable[int]
) -> tuple[PendingTransaction, ...]:
    """Keep transactions sent from ``address`` on one of ``chain_ids``."""
    wanted = set(chain_ids)
    sender = address.lower()
    return tuple(
        tx for tx in pending
        if tx.chain_id in wanted and tx.from_address.lower() == sender
    )


def assemble_dashboard(
    assets: Iterable[UnifiedAsset],
    reports: Iterable[ChainReport],
    pending: Iterable[PendingTransaction],
    address: str,
    chain_ids: Iterable[int],
    now: datetime | None = None,
) -> AssetDashboard:
    buckets: dict[AssetKind, list[UnifiedAsset]] = {kind: [] for kind in AssetKind}
    for asset in assets:
        buckets[asset.kind].append(asset)

    merged = [a for kind in AssetKind for a in buckets[kind]]

    return AssetDashboard(
        total_value_usd=total_value(merged),
        tokens=tuple(buckets[AssetKind.TOKEN]),
        nfts=tuple(buckets[AssetKind.NFT]),
        defi_positions=tuple(buckets[AssetKind.DEFI_POSITION]),
        pending_transactions=filter_pending(pending, address, chain_ids),
        last_updated=now or datetime.now(timezone.utc),
        chains=tuple(sorted(reports, key=lambda r: r.chain_id)),
    )
