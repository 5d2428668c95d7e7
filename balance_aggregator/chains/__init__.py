"""Chain connectivity: per-endpoint RPC clients and the failover pool."""
from .evm import EvmRpcClient
from .pool import ProviderPool

__all__ = ["EvmRpcClient", "ProviderPool"]
