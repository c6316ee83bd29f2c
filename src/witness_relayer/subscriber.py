"""
Chain subscription for one monitored network.

This module owns the source chain session, the reconnect loop and the
tick-driven catch-up loop, delegating event handling to the WitnessProcessor.
"""

import asyncio
import logging
from typing import Any

from .block_scanner import BlockRangeScanner
from .config import MonitoringConfig
from .errors import ChainConnectionError, RPCError, ScanStalledError
from .models import NetworkDescriptor, SubscriberState
from .nonce_tracker import NonceTracker
from .utils.destination_client import DestinationQueryClient
from .utils.tendermint_client import TendermintClient
from .witness_processor import WitnessProcessor

logger = logging.getLogger(__name__)


class ChainSubscriber:
    """
    Witnesses one network's Lock/Burn events on the source chain.

    The subscriber reconnects forever with bounded exponential backoff, and
    once connected runs a catch-up scan on every tick. A stop request is
    honoured between ticks and during backoff waits; a scan in progress
    always runs to completion.
    """

    def __init__(
        self,
        network_descriptor: NetworkDescriptor,
        validator_address: str,
        source_client: TendermintClient,
        query_client: DestinationQueryClient,
        processor: WitnessProcessor,
        monitoring: MonitoringConfig | None = None,
        base64_attributes: bool = False,
    ) -> None:
        """
        Initialize the subscriber.

        Args:
            network_descriptor: Network whose events this subscriber witnesses
            validator_address: Operator address of the witnessing validator
            source_client: Source chain session
            query_client: Destination chain nonce query client
            processor: Processor that signs and submits witnessed events
            monitoring: Loop and retry settings
            base64_attributes: Whether the node base64 encodes event attributes
        """
        self.network_descriptor = network_descriptor
        self.validator_address = validator_address
        self.monitoring = monitoring or MonitoringConfig()

        self.source_client = source_client
        self.processor = processor
        self.nonce_tracker = NonceTracker(
            query_client=query_client,
            source_client=source_client,
            timeout=self.monitoring.nonce_query_timeout,
        )
        self.scanner = BlockRangeScanner(
            client=source_client,
            retry_delay=self.monitoring.retry_delay,
            max_height_retries=self.monitoring.max_height_retries,
            base64_attributes=base64_attributes,
        )

        self.state = SubscriberState.DISCONNECTED
        self.ticks = 0
        self.connect_attempts = 0

        # Async coordination
        self.shutdown_event = asyncio.Event()

    @property
    def name(self) -> str:
        return self.network_descriptor.name

    async def _wait_for_shutdown(self, timeout: float) -> bool:
        """Sleep up to timeout seconds; return True if shutdown was requested."""
        try:
            await asyncio.wait_for(self.shutdown_event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    async def connect(self) -> bool:
        """
        Open the source chain session, retrying until connected or stopped.

        Returns:
            True once connected, False if shutdown was requested first
        """
        delay = self.monitoring.reconnect_delay
        while not self.shutdown_event.is_set():
            self.state = SubscriberState.CONNECTING
            self.connect_attempts += 1
            try:
                await self.source_client.connect()
                self.state = SubscriberState.SUBSCRIBED
                logger.info(f"[{self.name}] Subscribed to source chain")
                return True
            except ChainConnectionError as e:
                self.state = SubscriberState.DISCONNECTED
                logger.error(f"[{self.name}] Failed to start source chain client: {e}")
                logger.info(f"[{self.name}] Reconnecting in {delay:.1f}s")

            if await self._wait_for_shutdown(delay):
                break
            delay = min(delay * 2, self.monitoring.max_reconnect_delay)
        return False

    async def check_nonce_and_process(self) -> int:
        """
        Run one catch-up pass: retry pending submissions, compute the nonce gap
        and scan it.

        Returns:
            Number of blocks scanned

        Raises:
            ChainConnectionError: If the source session was lost
        """
        self.state = SubscriberState.CATCHING_UP
        try:
            await self.processor.retry_pending()

            try:
                scan_range = await self.nonce_tracker.scan_range(
                    self.network_descriptor, self.validator_address
                )
            except RPCError as e:
                logger.error(f"[{self.name}] Failed to get the lock burn nonce: {e}")
                return 0

            if scan_range is None:
                return 0

            try:
                return await self.scanner.scan(scan_range, self.processor.process_tx_events)
            except ScanStalledError as e:
                logger.error(f"[{self.name}] {e}; reopening source chain session")
                raise ChainConnectionError(str(e)) from e
        finally:
            if self.state is SubscriberState.CATCHING_UP:
                self.state = SubscriberState.IDLE

    async def run(self) -> None:
        """Main loop: connect, then catch up on every tick until stopped."""
        logger.info(
            f"[{self.name}] Subscriber starting, tick interval "
            f"{self.monitoring.tick_interval}s"
        )
        try:
            while not self.shutdown_event.is_set():
                if not await self.connect():
                    break

                while not self.shutdown_event.is_set():
                    if await self._wait_for_shutdown(self.monitoring.tick_interval):
                        break

                    self.ticks += 1
                    try:
                        await self.check_nonce_and_process()
                    except ChainConnectionError as e:
                        logger.error(f"[{self.name}] Source chain session lost: {e}")
                        await self.source_client.close()
                        self.state = SubscriberState.DISCONNECTED
                        break
                    except Exception as e:
                        logger.error(f"[{self.name}] Error in tick: {e}", exc_info=True)
        finally:
            self.state = SubscriberState.SHUTTING_DOWN
            await self.source_client.close()
            logger.info(f"[{self.name}] Subscriber stopped")

    def stop(self) -> None:
        """Request shutdown; observed at the next tick boundary."""
        self.shutdown_event.set()

    def get_status(self) -> dict[str, Any]:
        return {
            "network": self.name,
            "state": self.state.value,
            "ticks": self.ticks,
            "connect_attempts": self.connect_attempts,
            "scanner": self.scanner.get_status(),
            "processor": self.processor.get_stats(),
        }
