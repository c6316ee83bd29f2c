"""
Nonce-gap tracking for catch-up scans.

The destination chain records how many Lock/Burn events each validator has
witnessed per network, and the source height at which every global nonce was
emitted. The gap between the two tells a witness where to resume scanning.
"""

import logging

from .models import NetworkDescriptor, ScanRange
from .utils.destination_client import DestinationQueryClient
from .utils.tendermint_client import TendermintClient

logger = logging.getLogger(__name__)


class NonceTracker:
    """Computes the block range a validator still has to witness."""

    def __init__(
        self,
        query_client: DestinationQueryClient,
        source_client: TendermintClient,
        timeout: float = 1.0,
    ) -> None:
        """
        Initialize the NonceTracker.

        Args:
            query_client: Destination chain query client
            source_client: Source chain session, used for the head height
            timeout: Timeout in seconds for the head height query
        """
        self.query_client = query_client
        self.source_client = source_client
        self.timeout = timeout

    async def witness_nonce(self, network_descriptor: NetworkDescriptor, validator_address: str) -> int:
        return await self.query_client.witness_lock_burn_nonce(network_descriptor, validator_address)

    async def next_event_height(self, network_descriptor: NetworkDescriptor, validator_address: str) -> tuple[int, int]:
        """
        Find the source height of the first event the validator has not witnessed.

        Returns:
            Tuple of (witness nonce, height of global nonce witness_nonce + 1),
            height being 0 when that nonce has not been emitted yet

        Raises:
            RPCError: If either query fails
        """
        nonce = await self.witness_nonce(network_descriptor, validator_address)
        height = await self.query_client.global_nonce_block_number(network_descriptor, nonce + 1)
        return nonce, height

    async def scan_range(self, network_descriptor: NetworkDescriptor, validator_address: str) -> ScanRange | None:
        """
        Compute the inclusive height range to scan.

        Args:
            network_descriptor: Network whose events are witnessed
            validator_address: Validator operator address

        Returns:
            ScanRange from the first unwitnessed event to the source head, or
            None when there is nothing to scan

        Raises:
            RPCError: If any query fails; the caller retries the whole tick
        """
        nonce, from_height = await self.next_event_height(network_descriptor, validator_address)
        if from_height == 0:
            logger.debug(
                f"Network {network_descriptor.name}: witness nonce {nonce} is caught up"
            )
            return None

        to_height = await self.source_client.latest_height(timeout=self.timeout)
        if from_height > to_height:
            logger.debug(
                f"Network {network_descriptor.name}: next event at {from_height} "
                f"is beyond head {to_height}"
            )
            return None

        logger.info(
            f"Network {network_descriptor.name}: witness nonce {nonce}, "
            f"scanning blocks {from_height}-{to_height}"
        )
        return ScanRange(from_height=from_height, to_height=to_height)
