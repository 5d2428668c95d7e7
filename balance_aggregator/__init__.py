"""Multi-chain balance aggregation for EVM wallets."""
from .exceptions import (
    AggregatorError,
    FetcherError,
    InvalidAddress,
    ProviderUnavailable,
    RpcError,
    UnsupportedChain,
)
from .models import AssetDashboard, AssetKind, ChainStatus, UnifiedAsset
from .services import BalanceAggregator

__all__ = [
    "AggregatorError",
    "AssetDashboard",
    "AssetKind",
    "BalanceAggregator",
    "ChainStatus",
    "FetcherError",
    "InvalidAddress",
    "ProviderUnavailable",
    "RpcError",
    "UnifiedAsset",
    "UnsupportedChain",
]
