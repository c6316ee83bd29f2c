"""JSON-RPC client for the source Tendermint chain."""

import itertools
import logging
from typing import Any

import httpx

from ..errors import ChainConnectionError, RPCError


class TendermintClient:
    """
    Session with a Tendermint RPC node over HTTP.

    Calls fail with ChainConnectionError while no session is open and with
    RPCError when the node answers badly.
    """

    def __init__(self, rpc_url: str, connect_timeout: float = 5.0):
        """
        Initialize the client.

        Args:
            rpc_url: HTTP RPC endpoint URL
            connect_timeout: Timeout in seconds for the health check
        """
        self.rpc_url = rpc_url.rstrip("/")
        self.connect_timeout = connect_timeout
        self._client: httpx.AsyncClient | None = None
        self._ids = itertools.count(1)

        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def is_connected(self) -> bool:
        return self._client is not None and not self._client.is_closed

    async def connect(self) -> None:
        """
        Open the session and check the node's health endpoint.

        Raises:
            ChainConnectionError: If the node cannot be reached
        """
        await self.close()
        self._client = httpx.AsyncClient(base_url=self.rpc_url, timeout=None)
        try:
            await self._call("health", {}, timeout=self.connect_timeout)
        except RPCError as e:
            await self.close()
            raise ChainConnectionError(f"Failed to connect to {self.rpc_url}: {e}") from e
        self.logger.info(f"Connected to source chain at {self.rpc_url}")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _call(
        self,
        method: str,
        params: dict[str, Any],
        timeout: float | None = None,
    ) -> Any:
        if not self.is_connected:
            raise ChainConnectionError(f"Session to {self.rpc_url} is not open")

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            response = await self._client.post("/", json=payload, timeout=timeout)
            response.raise_for_status()
            body = response.json()
        except httpx.TransportError as e:
            raise RPCError(f"{method} transport error: {e}") from e
        except httpx.HTTPStatusError as e:
            raise RPCError(f"{method} returned HTTP {e.response.status_code}") from e
        except ValueError as e:
            raise RPCError(f"{method} returned invalid JSON: {e}") from e

        if error := body.get("error"):
            raise RPCError(f"{method} failed: {error}")
        return body.get("result")

    async def latest_height(self, timeout: float | None = None) -> int:
        """Return the node's latest block height."""
        result = await self._call("status", {}, timeout=timeout)
        try:
            return int(result["sync_info"]["latest_block_height"])
        except (KeyError, TypeError, ValueError) as e:
            raise RPCError(f"Malformed status response: {e}") from e

    async def block_results(self, height: int) -> dict[str, Any]:
        """
        Fetch the transaction results of one block.

        Block fetches carry no timeout.

        Raises:
            RPCError: If the block cannot be fetched
        """
        result = await self._call("block_results", {"height": str(height)})
        if not isinstance(result, dict):
            raise RPCError(f"Malformed block_results response at height {height}")
        return result

    def get_status(self) -> dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "is_connected": self.is_connected,
        }
