"""Per-asset-class fetchers run by the fan-out orchestrator."""
from .defi import DefiPositionFetcher
from .native import NativeBalanceFetcher
from .nfts import NftFetcher
from .tokens import TokenBalanceFetcher

__all__ = [
    "DefiPositionFetcher",
    "NativeBalanceFetcher",
    "NftFetcher",
    "TokenBalanceFetcher",
]
