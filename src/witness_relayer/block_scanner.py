"""Block range scanning for the source chain."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .errors import RPCError, ScanStalledError
from .event_classifier import decode_block_events
from .models import ChainEvent, ScanRange
from .utils.tendermint_client import TendermintClient

TxEventsHandler = Callable[[list[ChainEvent]], Awaitable[Any]]


class BlockRangeScanner:
    """
    Walks a height range in ascending order and forwards every transaction's
    events to a handler.

    A height whose fetch failed is retried, never skipped.
    """

    def __init__(
        self,
        client: TendermintClient,
        retry_delay: float = 1.0,
        max_height_retries: int = 5,
        base64_attributes: bool = False,
    ):
        """
        Initialize the scanner.

        Args:
            client: Source chain session
            retry_delay: Seconds to wait before refetching a failed height
            max_height_retries: Consecutive failures at one height before the
                scan is abandoned for this tick
            base64_attributes: Whether the node base64 encodes event attributes
        """
        self.client = client
        self.retry_delay = retry_delay
        self.max_height_retries = max_height_retries
        self.base64_attributes = base64_attributes

        self.last_scanned_height: int | None = None

        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def fetch_block(self, height: int) -> list[list[ChainEvent]]:
        """
        Fetch and decode one block, retrying the same height on failure.

        Raises:
            ScanStalledError: If the height failed max_height_retries times in a row
        """
        attempts = 0
        while True:
            try:
                block_results = await self.client.block_results(height)
                return decode_block_events(block_results, self.base64_attributes)
            except RPCError as e:
                attempts += 1
                self.logger.error(f"Failed to get block {height} (attempt {attempts}): {e}")
                if attempts >= self.max_height_retries:
                    self.logger.error(
                        f"Scan stalled at block {height}; it will be retried next tick"
                    )
                    raise ScanStalledError(height, attempts) from e
                await asyncio.sleep(self.retry_delay)

    async def scan(self, scan_range: ScanRange, handler: TxEventsHandler) -> int:
        """
        Scan an inclusive height range.

        Args:
            scan_range: Heights to scan
            handler: Async function called with each transaction's event list

        Returns:
            Number of blocks scanned

        Raises:
            ScanStalledError: If a height cannot be fetched; later heights are
                not touched
        """
        scanned = 0
        for height in scan_range:
            transactions = await self.fetch_block(height)
            for events in transactions:
                await handler(events)
            self.last_scanned_height = height
            scanned += 1

        if scanned:
            self.logger.debug(
                f"Scanned {scanned} blocks {scan_range.from_height}-{scan_range.to_height}"
            )
        return scanned

    def get_status(self) -> dict[str, Any]:
        return {
            "last_scanned_height": self.last_scanned_height,
            "max_height_retries": self.max_height_retries,
        }
