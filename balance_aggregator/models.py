"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Union

from .config import TokenConfig

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


# ---------------------------------------------------------------------------
# Raw fetcher records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawNativeBalance:
    """Native coin balance in the chain's smallest unit (wei)."""

    amount: int


@dataclass(frozen=True)
class RawTokenBalance:
    token: TokenConfig
    amount: int


@dataclass(frozen=True)
class RawNft:
    contract_address: str
    token_id: str
    metadata_uri: str = ""
    collection: str = ""
    name: str = ""
    image: str = ""
    description: str = ""
    floor_price: Decimal | None = None


@dataclass(frozen=True)
class RawDefiPosition:
    protocol: str
    position_type: str
    deposited: str = "0"
    earned: str = "0"
    apy: str = "0"
    claimable: str | None = None


# ---------------------------------------------------------------------------
# Unified assets
# ---------------------------------------------------------------------------


class AssetKind(str, Enum):
    TOKEN = "token"
    NFT = "nft"
    DEFI_POSITION = "defi-position"


@dataclass(frozen=True)
class TokenMetadata:
    address: str
    symbol: str
    name: str
    decimals: int
    balance: str
    price: str
    price_change_24h: str = "0"
    logo: str = ""


@dataclass(frozen=True)
class NftMetadata:
    contract_address: str
    token_id: str
    name: str
    image: str
    collection: str
    description: str = ""
    floor_price: str | None = None


@dataclass(frozen=True)
class DefiMetadata:
    protocol: str
    position_type: str
    deposited: str
    earned: str
    apy: str
    claimable: str | None = None


AssetMetadata = Union[TokenMetadata, NftMetadata, DefiMetadata]

_METADATA_FOR_KIND = {
    AssetKind.TOKEN: TokenMetadata,
    AssetKind.NFT: NftMetadata,
    AssetKind.DEFI_POSITION: DefiMetadata,
}


@dataclass(frozen=True)
class UnifiedAsset:
    """Canonical cross-chain asset, tagged by ``kind``."""

    kind: AssetKind
    chain_id: int
    chain_name: str
    value_usd: str
    metadata: AssetMetadata

    def __post_init__(self) -> None:
        expected = _METADATA_FOR_KIND[self.kind]
        if not isinstance(self.metadata, expected):
            raise TypeError(
                f"{self.kind.value} asset needs {expected.__name__}, "
                f"got {type(self.metadata).__name__}"
            )
        try:
            value = Decimal(self.value_usd)
        except InvalidOperation as e:
            raise ValueError(f"value_usd is not a decimal: {self.value_usd!r}") from e
        if not value.is_finite() or value < 0:
            raise ValueError(f"value_usd must be a non-negative decimal: {self.value_usd!r}")


# ---------------------------------------------------------------------------
# Pending transactions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PendingTransaction:
    hash: str
    from_address: str
    to_address: str
    value: str
    token: str
    chain_id: int
    submitted_at: datetime
    status: str = "pending"
    tx_type: str = "send"
    cancellable: bool = True


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class ChainStatus(str, Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"
    PROVIDER_UNAVAILABLE = "provider-unavailable"
    FAILED = "failed"
    TIMED_OUT = "timed-out"


@dataclass(frozen=True)
class ChainReport:
    """How one chain's unit of work ended."""

    chain_id: int
    chain_name: str
    status: ChainStatus
    failed_fetchers: tuple[str, ...] = ()


@dataclass(frozen=True)
class AssetDashboard:
    total_value_usd: str
    tokens: tuple[UnifiedAsset, ...]
    nfts: tuple[UnifiedAsset, ...]
    defi_positions: tuple[UnifiedAsset, ...]
    pending_transactions: tuple[PendingTransaction, ...]
    last_updated: datetime
    chains: tuple[ChainReport, ...] = ()

    @property
    def assets(self) -> tuple[UnifiedAsset, ...]:
        return self.tokens + self.nfts + self.defi_positions

    @property
    def incomplete_chain_ids(self) -> tuple[int, ...]:
        return tuple(
            r.chain_id for r in self.chains if r.status is not ChainStatus.COMPLETE
        )

    @property
    def partial(self) -> bool:
        """True when at least one chain did not fully report."""
        return bool(self.incomplete_chain_ids)
