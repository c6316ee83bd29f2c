"""
REST client for the destination chain's ethbridge query service.
"""

import logging
from typing import Any

import httpx

from ..errors import RPCError

logger = logging.getLogger(__name__)


class DestinationQueryClient:
    """Queries witness and global nonces from the destination chain."""

    WITNESS_NONCE_PATH = "/sifchain/ethbridge/v1/witness_lock_burn_nonce/{network}/{validator}"
    GLOBAL_NONCE_BLOCK_PATH = "/sifchain/ethbridge/v1/global_nonce_block_number/{network}/{nonce}"

    def __init__(self, api_url: str, timeout: float = 1.0):
        """
        Initialize the client.

        Args:
            api_url: Base URL of the destination REST gateway
            timeout: Timeout in seconds applied to every query
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    async def _get(self, path: str) -> dict[str, Any]:
        async with httpx.AsyncClient(base_url=self.api_url) as client:
            try:
                response = await client.get(path, timeout=self.timeout)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                raise RPCError(f"GET {path} returned HTTP {e.response.status_code}") from e
            except httpx.HTTPError as e:
                raise RPCError(f"GET {path} failed: {e}") from e
            except ValueError as e:
                raise RPCError(f"GET {path} returned invalid JSON: {e}") from e

    @staticmethod
    def _parse_uint(body: dict[str, Any], key: str) -> int:
        try:
            value = int(body[key])
        except (KeyError, TypeError, ValueError) as e:
            raise RPCError(f"Malformed response, bad {key}: {body}") from e
        if value < 0:
            raise RPCError(f"Malformed response, negative {key}: {value}")
        return value

    async def witness_lock_burn_nonce(self, network_descriptor: int, validator_address: str) -> int:
        """Return how many Lock/Burn events the validator has witnessed on a network."""
        body = await self._get(self.WITNESS_NONCE_PATH.format(
            network=int(network_descriptor), validator=validator_address
        ))
        nonce = self._parse_uint(body, "witness_lock_burn_nonce")
        logger.debug(f"Witness nonce for {validator_address} on network {int(network_descriptor)}: {nonce}")
        return nonce

    async def global_nonce_block_number(self, network_descriptor: int, global_nonce: int) -> int:
        """Return the source block height at which a global nonce was emitted, 0 if unknown."""
        body = await self._get(self.GLOBAL_NONCE_BLOCK_PATH.format(
            network=int(network_descriptor), nonce=global_nonce
        ))
        return self._parse_uint(body, "block_number")
