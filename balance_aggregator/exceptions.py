"""Error taxonomy for balance aggregation.

Only :class:`InvalidAddress` and :class:`UnsupportedChain` abort an
aggregation call. Everything else is caught by the orchestrator and turns into
fewer assets plus a per-chain status.
"""
from __future__ import annotations


class AggregatorError(Exception):
    """Base class for all aggregation errors."""


class InvalidAddress(AggregatorError, ValueError):
    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid EVM address: {address!r}")
        self.address = address


class UnsupportedChain(AggregatorError, LookupError):
    def __init__(self, chain_id: int) -> None:
        super().__init__(f"Unsupported chain ID: {chain_id}")
        self.chain_id = chain_id


class ProviderUnavailable(AggregatorError):
    """No RPC connection could be obtained for a chain."""

    def __init__(self, chain_id: int, reason: str = "") -> None:
        msg = f"No usable RPC endpoint for chain {chain_id}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.chain_id = chain_id


class RpcError(AggregatorError):
    """A JSON-RPC call failed, either in transport or with an error payload."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"RPC call to {url} failed: {message}")
        self.url = url


class FetcherError(AggregatorError):
    """A per-asset-class fetcher could not produce its records."""

    def __init__(self, kind: str, chain_id: int, message: str) -> None:
        super().__init__(f"{kind} fetcher failed on chain {chain_id}: {message}")
        self.kind = kind
        self.chain_id = chain_id
