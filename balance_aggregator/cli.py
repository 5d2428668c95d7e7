"""Command-line interface for the multi-chain balance aggregator."""
from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from .config import load_config
from .exceptions import InvalidAddress, UnsupportedChain
from .logging_setup import configure_logging
from .services import BalanceAggregator


def _parse_chain_ids(value: str) -> list[int]:
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid chain list: {value!r}") from None


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return str(obj)
    raise TypeError(f"Not JSON serializable: {type(obj).__name__}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="balance-aggregator",
        description="Multi-chain wallet balance aggregator",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    balances = sub.add_parser("balances", help="Print the asset dashboard as JSON")
    balances.add_argument("address", help="EVM account address")
    balances.add_argument(
        "--chains",
        type=_parse_chain_ids,
        default=None,
        help="Comma-separated chain ids (default: all configured mainnets)",
    )

    sub.add_parser("chains", help="List supported chains")

    watch = sub.add_parser("watch", help="Refresh the dashboard continuously")
    watch.add_argument("address", help="EVM account address")
    watch.add_argument("--chains", type=_parse_chain_ids, default=None)
    watch.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Refresh interval in seconds (overrides config)",
    )

    return parser


def _default_chain_ids(aggregator: BalanceAggregator) -> list[int]:
    registry = aggregator.registry
    return sorted(
        cid for cid in registry.supported_chain_ids()
        if not registry.config_for(cid).is_testnet
    )


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command and return the exit code."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    aggregator = BalanceAggregator.from_config(config)

    if args.command == "chains":
        for chain_id in sorted(aggregator.registry.supported_chain_ids()):
            chain = aggregator.registry.config_for(chain_id)
            testnet = " (testnet)" if chain.is_testnet else ""
            print(f"{chain_id:>6}  {chain.name}{testnet}  [{chain.native_currency.symbol}]")
        return 0

    chain_ids = args.chains or _default_chain_ids(aggregator)
    try:
        if args.command == "balances":
            dashboard = await aggregator.aggregate_balances(args.address, chain_ids)
            payload = dataclasses.asdict(dashboard)
            payload["partial"] = dashboard.partial
            print(json.dumps(payload, indent=2, default=_json_default))
        elif args.command == "watch":
            await aggregator.run_continuous(args.address, chain_ids, args.interval)
    except (InvalidAddress, UnsupportedChain) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
