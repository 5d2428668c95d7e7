"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NativeCurrency:
    name: str = "Ethereum"
    symbol: str = "ETH"
    decimals: int = 18


@dataclass(frozen=True)
class ChainConfig:
    chain_id: int = 0
    name: str = ""
    rpc_endpoints: tuple[str, ...] = ()
    native_currency: NativeCurrency = field(default_factory=NativeCurrency)
    block_explorer_url: str = ""
    is_testnet: bool = False
    rpc_timeout: int = 10


@dataclass(frozen=True)
class TokenConfig:
    """One entry of a chain's token list."""

    address: str
    symbol: str
    name: str = ""
    decimals: int = 18
    price: Decimal | None = None
    logo: str = ""


@dataclass(frozen=True)
class AggregatorConfig:
    cache_ttl_seconds: float = 30.0
    deadline_seconds: float = 2.0
    refresh_interval_seconds: int = 60
    recovery_interval_minutes: int = 10


@dataclass(frozen=True)
class PythConfig:
    hermes_url: str = "https://hermes.pyth.network/v2/updates/price/latest"
    feeds: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PriceOracleConfig:
    provider: str = "static"
    static_prices: dict[str, Decimal] = field(default_factory=dict)
    pyth: PythConfig = field(default_factory=PythConfig)


@dataclass(frozen=True)
class NftConfig:
    ipfs_gateway: str = "https://ipfs.io/ipfs/"
    metadata_timeout: int = 5


@dataclass(frozen=True)
class AppConfig:
    aggregator: AggregatorConfig = field(default_factory=AggregatorConfig)
    chains: dict[int, ChainConfig] = field(default_factory=dict)
    tokens: dict[int, tuple[TokenConfig, ...]] = field(default_factory=dict)
    price_oracle: PriceOracleConfig = field(default_factory=PriceOracleConfig)
    nft: NftConfig = field(default_factory=NftConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


def _to_decimal(value: Any, what: str) -> Decimal:
    # str() first so YAML floats like 0.8 do not carry binary noise
    try:
        result = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid decimal for {what}: {value!r}") from e
    if not result.is_finite() or result < 0:
        raise ValueError(f"Price for {what} must be a non-negative number")
    return result


def _split_endpoints(raw: Any) -> tuple[str, ...]:
    """Accept a YAML list or a comma-separated string (handy with ${VAR})."""
    if isinstance(raw, str):
        return tuple(u.strip() for u in raw.split(",") if u.strip())
    return tuple(u for u in raw if u)


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_aggregator(raw: dict[str, Any]) -> AggregatorConfig:
    return AggregatorConfig(
        cache_ttl_seconds=float(raw.get("cache_ttl_seconds", 30.0)),
        deadline_seconds=float(raw.get("deadline_seconds", 2.0)),
        refresh_interval_seconds=int(raw.get("refresh_interval_seconds", 60)),
        recovery_interval_minutes=int(raw.get("recovery_interval_minutes", 10)),
    )


def _build_chains(raw: dict[Any, Any]) -> dict[int, ChainConfig]:
    chains: dict[int, ChainConfig] = {}
    for chain_id, cfg in raw.items():
        native = cfg.get("native_currency", {})
        chains[int(chain_id)] = ChainConfig(
            chain_id=int(chain_id),
            name=cfg.get("name", f"Chain {chain_id}"),
            rpc_endpoints=_split_endpoints(cfg.get("rpc_endpoints", [])),
            native_currency=NativeCurrency(
                name=native.get("name", "Ethereum"),
                symbol=native.get("symbol", "ETH"),
                decimals=int(native.get("decimals", 18)),
            ),
            block_explorer_url=cfg.get("block_explorer_url", ""),
            is_testnet=bool(cfg.get("is_testnet", False)),
            rpc_timeout=int(cfg.get("rpc_timeout", 10)),
        )
    return chains


def _build_tokens(raw: dict[Any, Any]) -> dict[int, tuple[TokenConfig, ...]]:
    tokens: dict[int, tuple[TokenConfig, ...]] = {}
    for chain_id, entries in raw.items():
        chain_tokens: list[TokenConfig] = []
        for t in entries or []:
            price = t.get("price")
            chain_tokens.append(
                TokenConfig(
                    address=t.get("address", ""),
                    symbol=t.get("symbol", ""),
                    name=t.get("name", ""),
                    decimals=int(t.get("decimals", 18)),
                    price=None if price is None else _to_decimal(price, t.get("symbol", "?")),
                    logo=t.get("logo", ""),
                )
            )
        tokens[int(chain_id)] = tuple(chain_tokens)
    return tokens


def _build_price_oracle(raw: dict[str, Any]) -> PriceOracleConfig:
    pyth_raw = raw.get("pyth", {})
    return PriceOracleConfig(
        provider=raw.get("provider", "static"),
        static_prices={
            sym.upper(): _to_decimal(price, sym)
            for sym, price in raw.get("static_prices", {}).items()
        },
        pyth=PythConfig(
            hermes_url=pyth_raw.get("hermes_url", PythConfig.hermes_url),
            feeds=dict(pyth_raw.get("feeds", {})),
        ),
    )


def _build_nft(raw: dict[str, Any]) -> NftConfig:
    return NftConfig(
        ipfs_gateway=raw.get("ipfs_gateway", NftConfig.ipfs_gateway),
        metadata_timeout=int(raw.get("metadata_timeout", 5)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root.

    When the file has no ``chains`` section the built-in chain table from
    :mod:`balance_aggregator.registry` is used.
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    chains = _build_chains(raw.get("chains") or {})
    if not chains:
        from .registry import DEFAULT_CHAINS

        chains = dict(DEFAULT_CHAINS)

    cfg = AppConfig(
        aggregator=_build_aggregator(raw.get("aggregator", {})),
        chains=chains,
        tokens=_build_tokens(raw.get("tokens") or {}),
        price_oracle=_build_price_oracle(raw.get("price_oracle", {})),
        nft=_build_nft(raw.get("nft", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s (%d chains)", config_path, len(cfg.chains))
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if cfg.aggregator.deadline_seconds <= 0:
        raise ValueError("aggregator.deadline_seconds must be positive")
    if cfg.aggregator.cache_ttl_seconds < 0:
        raise ValueError("aggregator.cache_ttl_seconds must not be negative")

    for chain_id, chain in cfg.chains.items():
        if not chain.rpc_endpoints:
            raise ValueError(f"Chain {chain_id} ({chain.name}) has no RPC endpoints")
        if chain.native_currency.decimals < 0:
            raise ValueError(f"Chain {chain_id} has negative native decimals")

    for chain_id in cfg.tokens:
        if chain_id not in cfg.chains:
            raise ValueError(f"Token list references unknown chain {chain_id}")

    if cfg.price_oracle.provider not in ("static", "pyth"):
        raise ValueError(
            f"Unknown price oracle provider '{cfg.price_oracle.provider}'"
        )
