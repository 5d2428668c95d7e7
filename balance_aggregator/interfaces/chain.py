"""RPC connection protocol: one live handle to one chain endpoint."""
from typing import Protocol


class RpcConnection(Protocol):
    """Abstract interface for EVM JSON-RPC reads."""

    @property
    def url(self) -> str: ...

    async def open(self) -> None: ...

    async def get_balance(self, address: str) -> int: ...

    async def erc20_balance_of(self, token_address: str, owner: str) -> int: ...

    async def erc20_metadata(self, token_address: str) -> tuple[str, str, int]: ...