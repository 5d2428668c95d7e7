"""EVM JSON-RPC client bound to a single endpoint."""
from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ...config import ChainConfig
from ...exceptions import RpcError

logger = logging.getLogger(__name__)

# keccak256(signature)[:4]
_BALANCE_OF_SELECTOR = "0x70a08231"
_SYMBOL_SELECTOR = "0x95d89b41"
_NAME_SELECTOR = "0x06fdde03"
_DECIMALS_SELECTOR = "0x313ce567"


def encode_balance_of(owner: str) -> str:
    """ABI-encode ``balanceOf(owner)`` call data."""
    return _BALANCE_OF_SELECTOR + owner.lower().removeprefix("0x").rjust(64, "0")


def decode_uint(result: Any) -> int:
    """Decode a hex quantity or a 32-byte word; ``0x`` means zero."""
    if not isinstance(result, str) or not result.startswith("0x"):
        raise ValueError(f"Expected hex string, got {result!r}")
    body = result[2:]
    return int(body, 16) if body else 0


def decode_string(result: Any) -> str:
    """Decode an ABI ``string`` return value.

    Older tokens (MKR, SAI) return ``bytes32`` instead; a single padded word is
    read as that.
    """
    if not isinstance(result, str) or not result.startswith("0x"):
        raise ValueError(f"Expected hex string, got {result!r}")
    raw = bytes.fromhex(result[2:])

    if len(raw) == 32:
        return raw.rstrip(b"\x00").decode("utf-8", errors="replace")

    if len(raw) < 64:
        raise ValueError(f"Malformed ABI string: {result!r}")
    offset = int.from_bytes(raw[:32], "big")
    length = int.from_bytes(raw[offset:offset + 32], "big")
    start = offset + 32
    if start + length > len(raw):
        raise ValueError(f"ABI string overruns return data: {result!r}")
    return raw[start:start + length].decode("utf-8", errors="replace")


class EvmRpcClient:
    """Read-only EVM RPC client.

    Failover between endpoints is the provider pool's job; a client only
    ever talks to ``url`` and reports failures as :class:`RpcError`.
    """

    def __init__(self, url: str, chain: ChainConfig) -> None:
        self._url = url
        self.chain_id = chain.chain_id
        self.timeout = chain.rpc_timeout
        self._request_id = 0

    @property
    def url(self) -> str:
        return self._url

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make a JSON-RPC call and return its ``result``."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self._url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise RpcError(self._url, f"HTTP {response.status}")
                    result = await response.json(content_type=None)
        except RpcError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("RPC endpoint %s failed on %s: %s", self._url, method, e)
            raise RpcError(self._url, str(e) or type(e).__name__) from e

        if not isinstance(result, dict):
            raise RpcError(self._url, f"Malformed response: {result!r}")
        if "error" in result:
            raise RpcError(self._url, f"RPC Error: {result['error']}")
        return result.get("result")

    async def open(self) -> None:
        """Check the endpoint: it must answer and serve the expected chain."""
        reported = decode_uint(await self.rpc_call("eth_chainId", []))
        if reported != self.chain_id:
            raise RpcError(
                self._url, f"serves chain {reported}, expected {self.chain_id}"
            )
        logger.debug("RPC endpoint %s is live for chain %d", self._url, self.chain_id)

    async def get_balance(self, address: str) -> int:
        """Native balance in wei at the latest block."""
        return decode_uint(await self.rpc_call("eth_getBalance", [address, "latest"]))

    async def erc20_balance_of(self, token_address: str, owner: str) -> int:
        """ERC-20 ``balanceOf`` via ``eth_call``."""
        result = await self.rpc_call(
            "eth_call",
            [{"to": token_address, "data": encode_balance_of(owner)}, "latest"],
        )
        return decode_uint(result)

    async def erc20_metadata(self, token_address: str) -> tuple[str, str, int]:
        """Read ``(symbol, name, decimals)`` from an ERC-20 contract."""

        async def call(selector: str) -> Any:
            return await self.rpc_call(
                "eth_call", [{"to": token_address, "data": selector}, "latest"]
            )

        symbol, name, decimals = await asyncio.gather(
            call(_SYMBOL_SELECTOR), call(_NAME_SELECTOR), call(_DECIMALS_SELECTOR)
        )
        return decode_string(symbol), decode_string(name), decode_uint(decimals)
