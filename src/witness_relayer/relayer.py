"""
Witness relayer implementation.

This module contains the main relayer service that runs one ChainSubscriber
per configured network and coordinates their shutdown.
"""

import asyncio
import logging
import signal

from .config import RelayerConfig
from .models import NetworkDescriptor
from .signer import Signer
from .submitter import Submitter
from .subscriber import ChainSubscriber
from .utils.broadcaster_utility import BroadcasterUtility
from .utils.destination_client import DestinationQueryClient
from .utils.tendermint_client import TendermintClient
from .witness_processor import WitnessProcessor

logger = logging.getLogger(__name__)


class WitnessRelayer:
    """
    Main relayer service that runs and supervises the per-network subscribers.

    This class focuses on lifecycle management; the subscribers share nothing
    but the signer and the broadcaster client.
    """

    STATUS_LOG_INTERVAL = 30  # seconds
    WITNESS_KEY_ID = "witness"

    def __init__(self, config: RelayerConfig):
        """
        Initialize the witness relayer.

        Args:
            config: Relayer configuration
        """
        self.config = config
        self.local_mode = config.local_mode
        self.running = False

        self.broadcaster = BroadcasterUtility(config.destination_chain.broadcaster_url)
        self.submitter = Submitter(self.broadcaster, config.validator.name)
        self.signer: Signer | None = None
        self.subscribers: dict[NetworkDescriptor, ChainSubscriber] = {}

    @classmethod
    def from_env(cls, local_mode: bool = False) -> "WitnessRelayer":
        """
        Create a WitnessRelayer instance from environment variables.

        Raises:
            ValueError: If required environment variables are missing
        """
        config = RelayerConfig.from_env(local_mode=local_mode)
        config.log_config()
        return cls(config)

    async def init_signer(self) -> Signer:
        """
        Load the witness signing key.

        In local mode the key comes from configuration, otherwise it is
        fetched from the broadcaster daemon.

        Raises:
            SigningError: If the key cannot be obtained or is unusable
        """
        if self.local_mode:
            secret = self.config.validator.private_key
        else:
            logger.debug("Fetching witness key from broadcaster daemon...")
            secret = await self.broadcaster.fetch_key(
                f"{self.config.validator.name}-{self.WITNESS_KEY_ID}"
            )

        self.signer = Signer(secret)
        logger.info(f"Witness signer address: {self.signer.address}")
        return self.signer

    def create_subscriber(self, network_descriptor: NetworkDescriptor, signer: Signer) -> ChainSubscriber:
        """Build an independent subscriber for one network."""
        processor = WitnessProcessor(
            network_descriptor=network_descriptor,
            validator_address=self.config.validator.address,
            signer=signer,
            submitter=self.submitter,
        )
        return ChainSubscriber(
            network_descriptor=network_descriptor,
            validator_address=self.config.validator.address,
            source_client=TendermintClient(self.config.source_chain.rpc_url),
            query_client=DestinationQueryClient(
                self.config.destination_chain.api_url,
                timeout=self.config.monitoring.nonce_query_timeout,
            ),
            processor=processor,
            monitoring=self.config.monitoring,
            base64_attributes=self.config.source_chain.base64_attributes,
        )

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except (NotImplementedError, RuntimeError):
                # Not available on this platform or outside the main thread
                logger.debug(f"Signal handler for {sig.name} not installed")

    async def _periodic_status_logger(self) -> None:
        """Log status periodically while running."""
        while self.running:
            await asyncio.sleep(self.STATUS_LOG_INTERVAL)
            for subscriber in self.subscribers.values():
                status = subscriber.get_status()
                stats = status["processor"]
                logger.info(
                    f"Status [{status['network']}]: {status['state']}, "
                    f"{stats['events_processed']} witnessed, "
                    f"{stats['pending_submissions']} pending submissions"
                )

    async def run(self) -> None:
        """Run every subscriber until all of them have exited."""
        self.running = True
        logger.info("Witness relayer starting...")

        signer = self.signer or await self.init_signer()
        self.subscribers = {
            network: self.create_subscriber(network, signer)
            for network in self.config.networks
        }
        self._install_signal_handlers()

        status_task = asyncio.create_task(self._periodic_status_logger())
        try:
            results = await asyncio.gather(
                *(subscriber.run() for subscriber in self.subscribers.values()),
                return_exceptions=True,
            )
            for network, result in zip(self.subscribers, results):
                if isinstance(result, Exception):
                    logger.error(f"Subscriber {network.name} failed: {result}", exc_info=result)
        finally:
            self.running = False
            status_task.cancel()
            try:
                await status_task
            except asyncio.CancelledError:
                pass  # Expected when cancelling
            logger.info("Witness relayer stopped")

    def stop(self) -> None:
        """Stop all subscribers at their next tick boundary."""
        logger.info("Received termination signal, stopping subscribers...")
        self.running = False
        for subscriber in self.subscribers.values():
            subscriber.stop()
