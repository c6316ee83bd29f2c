import httpx
import json
import logging
import typing
from typing import Any

from ..errors import SigningError, SubmissionError

logger = logging.getLogger(__name__)


class BroadcasterUtility:
    """
    Client for the local broadcaster daemon.

    The daemon holds the validator's destination-chain keyring; it signs and
    broadcasts transactions and hands out the witness signing key.
    """

    BROADCASTER_SOCKET_PATH = "/run/witness-broadcaster.sock"

    def __init__(self, url: str = ''):
        self.url = url

    async def _daemon_post(self, path: str, payload: typing.Any) -> typing.Any:
        transport = None
        if self.url and not self.url.startswith('http'):
            transport = httpx.AsyncHTTPTransport(uds=self.url)
            logger.debug(f"Using unix domain socket: {self.url}")
        elif not self.url:
            transport = httpx.AsyncHTTPTransport(uds=self.BROADCASTER_SOCKET_PATH)
            logger.debug(f"Using unix domain socket: {self.BROADCASTER_SOCKET_PATH}")

        async with httpx.AsyncClient(transport=transport) as client:
            url = self.url if self.url and self.url.startswith('http') else "http://localhost"
            logger.debug(f"Posting to {url+path}: {json.dumps(payload)}")
            response = await client.post(url + path, json=payload, timeout=None)
            response.raise_for_status()
            return response.json()

    async def fetch_key(self, key_id: str) -> str:
        """
        Fetch the witness signing key held by the daemon.

        Raises:
            SigningError: If the daemon cannot provide the key
        """
        payload = {
            "key_id": key_id,
            "kind": "secp256k1"
        }

        path = '/keys/v1/get'

        try:
            response = await self._daemon_post(path, payload)
            return response["key"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise SigningError(f"Could not fetch signing key {key_id!r}: {e}") from e

    async def broadcast(self, msgs: list[dict[str, Any]], from_name: str) -> str:
        """
        Sign and broadcast messages as one destination-chain transaction.

        Args:
            msgs: Amino-JSON messages to include in the transaction
            from_name: Keyring name of the signing validator

        Returns:
            Transaction hash reported by the daemon

        Raises:
            SubmissionError: If the daemon is unreachable or the chain rejects the tx
        """
        payload = {
            "msgs": msgs,
            "from": from_name,
        }

        path = '/broadcast/v1/sign-submit'

        try:
            response = await self._daemon_post(path, payload)
        except httpx.HTTPError as e:
            raise SubmissionError(f"Broadcaster unreachable: {e}") from e
        except ValueError as e:
            raise SubmissionError(f"Broadcaster returned invalid JSON: {e}") from e

        logger.debug(f"Broadcaster raw response: {response}")

        match response:
            case {"code": 0, "txhash": str() as tx_hash}:
                logger.info(f"Transaction broadcast successfully: {tx_hash}")
                return tx_hash
            case {"code": int() as code, **rest}:
                raw_log = rest.get("raw_log", "")
                logger.error(f"Transaction rejected with code={code}: {raw_log}")
                raise SubmissionError(f"Transaction rejected with code {code}: {raw_log}")
            case _:
                logger.warning(f"Unknown broadcaster response format: {response}")
                raise SubmissionError(f"Unknown broadcaster response: {response}")
