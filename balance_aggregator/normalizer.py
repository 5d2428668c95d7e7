"""Pure normalization functions — raw fetcher records to UnifiedAsset, no I/O.

All arithmetic is ``Decimal``. Rounding to cents happens only in
:func:`usd_string`, the last step before a value lands in a model.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Mapping

from .config import ChainConfig
from .models import (
    ZERO_ADDRESS,
    AssetKind,
    DefiMetadata,
    NftMetadata,
    RawDefiPosition,
    RawNativeBalance,
    RawNft,
    RawTokenBalance,
    TokenMetadata,
    UnifiedAsset,
)

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def format_units(raw_amount: int, decimals: int) -> Decimal:
    """Convert an integer amount in smallest units to a token amount.

    Examples:
        format_units(10**18, 18) → Decimal("1")
        format_units(1_500_000, 6) → Decimal("1.5")
    """
    return Decimal(raw_amount).scaleb(-decimals).normalize()


def to_decimal(value: Any) -> Decimal:
    """Parse a decimal-ish value; anything unparseable, negative or NaN is zero."""
    if value is None:
        return ZERO
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO
    if not result.is_finite() or result < 0:
        return ZERO
    return result


def usd_string(amount: Decimal) -> str:
    """Format a USD amount to 2 places; never negative, never NaN."""
    return str(to_decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP))


def amount_string(amount: Decimal) -> str:
    """Plain (non-exponent) string for a token amount."""
    return format(amount, "f")


def resolve_ipfs(uri: str, gateway: str = "https://ipfs.io/ipfs/") -> str:
    """Rewrite ``ipfs://`` URIs onto an HTTP gateway; other URIs pass through."""
    if uri.startswith("ipfs://"):
        path = uri[len("ipfs://"):].removeprefix("ipfs/")
        return gateway.rstrip("/") + "/" + path
    return uri


def normalize_native(
    raw: RawNativeBalance, chain: ChainConfig, price: Decimal
) -> UnifiedAsset | None:
    """Native coin balance → token asset. Zero balances yield None."""
    if raw.amount <= 0:
        return None

    currency = chain.native_currency
    amount = format_units(raw.amount, currency.decimals)
    price = to_decimal(price)

    return UnifiedAsset(
        kind=AssetKind.TOKEN,
        chain_id=chain.chain_id,
        chain_name=chain.name,
        value_usd=usd_string(amount * price),
        metadata=TokenMetadata(
            address=ZERO_ADDRESS,
            symbol=currency.symbol,
            name=currency.name,
            decimals=currency.decimals,
            balance=amount_string(amount),
            price=amount_string(price),
        ),
    )


def normalize_token(
    raw: RawTokenBalance, chain: ChainConfig, price: Decimal
) -> UnifiedAsset | None:
    """ERC-20 balance → token asset. Zero balances yield None."""
    if raw.amount <= 0:
        return None

    token = raw.token
    amount = format_units(raw.amount, token.decimals)
    price = to_decimal(price)

    return UnifiedAsset(
        kind=AssetKind.TOKEN,
        chain_id=chain.chain_id,
        chain_name=chain.name,
        value_usd=usd_string(amount * price),
        metadata=TokenMetadata(
            address=token.address,
            symbol=token.symbol,
            name=token.name,
            decimals=token.decimals,
            balance=amount_string(amount),
            price=amount_string(price),
            logo=token.logo,
        ),
    )


def normalize_nft(raw: RawNft, chain: ChainConfig) -> UnifiedAsset:
    """NFT → nft asset valued at its floor price ("0" when unknown)."""
    if raw.floor_price is None:
        value_usd = "0"
        floor_price = None
    else:
        value_usd = usd_string(raw.floor_price)
        floor_price = amount_string(to_decimal(raw.floor_price))

    return UnifiedAsset(
        kind=AssetKind.NFT,
        chain_id=chain.chain_id,
        chain_name=chain.name,
        value_usd=value_usd,
        metadata=NftMetadata(
            contract_address=raw.contract_address,
            token_id=raw.token_id,
            name=raw.name or f"#{raw.token_id}",
            image=raw.image,
            collection=raw.collection,
            description=raw.description,
            floor_price=floor_price,
        ),
    )


def normalize_defi(raw: RawDefiPosition, chain: ChainConfig) -> UnifiedAsset:
    """DeFi position → defi asset valued at deposited + earned."""
    deposited = to_decimal(raw.deposited)
    earned = to_decimal(raw.earned)

    return UnifiedAsset(
        kind=AssetKind.DEFI_POSITION,
        chain_id=chain.chain_id,
        chain_name=chain.name,
        value_usd=usd_string(deposited + earned),
        metadata=DefiMetadata(
            protocol=raw.protocol,
            position_type=raw.position_type,
            deposited=amount_string(deposited),
            earned=amount_string(earned),
            apy=str(raw.apy),
            claimable=raw.claimable,
        ),
    )


def normalize_record(
    raw: Any, chain: ChainConfig, prices: Mapping[str, Decimal]
) -> UnifiedAsset | None:
    """Dispatch one raw record to its normalizer.

    ``prices`` is keyed by upper-case symbol. Tokens without an oracle price
    fall back to the price carried by the token list, then to zero.
    """
    if isinstance(raw, RawNativeBalance):
        price = prices.get(chain.native_currency.symbol.upper(), ZERO)
        return normalize_native(raw, chain, price)
    if isinstance(raw, RawTokenBalance):
        price = prices.get(raw.token.symbol.upper(), raw.token.price)
        return normalize_token(raw, chain, to_decimal(price))
    if isinstance(raw, RawNft):
        return normalize_nft(raw, chain)
    if isinstance(raw, RawDefiPosition):
        return normalize_defi(raw, chain)
    raise TypeError(f"Unknown raw record type: {type(raw).__name__}")
