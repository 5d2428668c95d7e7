"""Concrete data providers behind the asset fetchers."""
from .nft_metadata import NftMetadataResolver
from .null import NullDefiProvider, NullNftProvider
from .token_list import DEFAULT_TOKENS, StaticTokenList

__all__ = [
    "DEFAULT_TOKENS",
    "NftMetadataResolver",
    "NullDefiProvider",
    "NullNftProvider",
    "StaticTokenList",
]
