"""Service modules"""
from .aggregator import BalanceAggregator
from .assembler import assemble_dashboard
from .cache import BalanceCache
from .orchestrator import FanOutOrchestrator, FanOutResult, FetcherSet

__all__ = [
    "BalanceAggregator",
    "BalanceCache",
    "FanOutOrchestrator",
    "FanOutResult",
    "FetcherSet",
    "assemble_dashboard",
]
