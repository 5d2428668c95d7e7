"""Protocol interfaces for the balance aggregator's collaborators."""
from .chain import RpcConnection
from .fetcher import AssetFetcher
from .price_oracle import PriceOracle
from .providers import DefiPositionProvider, NftProvider, TokenListProvider
from .transaction_store import TransactionStore

__all__ = [
    "AssetFetcher",
    "DefiPositionProvider",
    "NftProvider",
    "PriceOracle",
    "RpcConnection",
    "TokenListProvider",
    "TransactionStore",
]
