#!/usr/bin/env python3
"""Configuration management for the witness relayer.

This module provides type-safe configuration dataclasses with validation.
Configuration is loaded from environment variables with sensible defaults
where appropriate.
"""

import logging
import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

from .models import NetworkDescriptor

# Get logger for this module
logger = logging.getLogger(__name__)


def _validate_http_url(url: str, name: str) -> None:
    if not url:
        raise ValueError(f"{name} is required")
    parsed = urlparse(url)
    if parsed.scheme not in ('http', 'https'):
        raise ValueError(
            f"Invalid {name} scheme: {parsed.scheme}. Expected http or https"
        )


@dataclass(frozen=True, slots=True)
class SourceChainConfig:
    """Configuration for the source Tendermint chain.

    Attributes:
        rpc_url: HTTP(S) Tendermint RPC endpoint
        base64_attributes: Whether the node base64 encodes event attributes
    """

    rpc_url: str
    base64_attributes: bool = False

    def __post_init__(self) -> None:
        """Validate source chain configuration."""
        _validate_http_url(self.rpc_url, "Source RPC URL (SOURCE_RPC_URL)")


@dataclass(frozen=True, slots=True)
class DestinationChainConfig:
    """Configuration for the destination chain.

    Attributes:
        api_url: REST gateway used for nonce queries
        broadcaster_url: Broadcaster daemon URL or unix socket path, empty for
            the default socket
    """

    api_url: str
    broadcaster_url: str = ""

    def __post_init__(self) -> None:
        """Validate destination chain configuration."""
        _validate_http_url(self.api_url, "Destination API URL (DESTINATION_API_URL)")


@dataclass(frozen=True, slots=True)
class ValidatorConfig:
    """Identity of the witnessing validator.

    Attributes:
        name: Keyring name of the validator
        address: Validator operator address on the destination chain
        private_key: Witness signing key, None when fetched from the daemon
    """

    name: str
    address: str
    private_key: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate validator configuration."""
        if not self.name:
            raise ValueError("Validator name is required (VALIDATOR_NAME)")
        if not self.address:
            raise ValueError("Validator address is required (VALIDATOR_ADDRESS)")

        if self.private_key:
            # Basic private key validation (should be 64 hex chars, optionally with 0x prefix)
            key = self.private_key.removeprefix('0x')

            if len(key) != 64:
                raise ValueError(
                    f"Invalid private key length. Expected 64 hex characters, got {len(key)}"
                )

            try:
                int(key, 16)
            except ValueError:
                raise ValueError(
                    "Invalid private key format. Must be hexadecimal"
                ) from None


@dataclass(frozen=True, slots=True)
class MonitoringConfig:
    """Configuration for the subscription loop and retries."""
    tick_interval: float = 10  # seconds between nonce checks
    reconnect_delay: float = 1  # first reconnect backoff in seconds
    max_reconnect_delay: float = 60  # backoff cap in seconds
    nonce_query_timeout: float = 1  # timeout for nonce RPCs in seconds
    retry_delay: float = 1  # seconds before refetching a failed block
    max_height_retries: int = 5  # failures at one height before the tick gives up

    def __post_init__(self) -> None:
        """Validate monitoring configuration."""
        if self.tick_interval <= 0:
            raise ValueError(f"Tick interval must be positive, got {self.tick_interval}")
        if self.tick_interval > 300:
            raise ValueError(f"Tick interval too long (max 300s), got {self.tick_interval}")

        if self.reconnect_delay <= 0:
            raise ValueError(f"Reconnect delay must be positive, got {self.reconnect_delay}")
        if self.max_reconnect_delay < self.reconnect_delay:
            raise ValueError(
                f"Max reconnect delay ({self.max_reconnect_delay}) must not be "
                f"below reconnect delay ({self.reconnect_delay})"
            )

        if self.nonce_query_timeout <= 0:
            raise ValueError(f"Nonce query timeout must be positive, got {self.nonce_query_timeout}")
        if self.nonce_query_timeout > 30:
            raise ValueError(f"Nonce query timeout too long (max 30s), got {self.nonce_query_timeout}")

        if self.retry_delay < 0:
            raise ValueError(f"Retry delay must be non-negative, got {self.retry_delay}")
        if self.max_height_retries < 1:
            raise ValueError(f"Max height retries must be at least 1, got {self.max_height_retries}")


def parse_network_descriptors(value: str) -> tuple[NetworkDescriptor, ...]:
    """Parse a comma separated list of recognized network descriptors."""
    networks: list[NetworkDescriptor] = []
    for item in (part.strip() for part in value.split(",")):
        if not item:
            continue
        try:
            number = int(item)
        except ValueError:
            raise ValueError(f"Invalid network descriptor: {item!r}") from None
        if not NetworkDescriptor.is_valid(number):
            raise ValueError(
                f"Unsupported network descriptor: {number}. "
                f"Supported: {', '.join(str(n.value) for n in NetworkDescriptor)}"
            )
        if NetworkDescriptor(number) not in networks:
            networks.append(NetworkDescriptor(number))

    if not networks:
        raise ValueError("At least one network descriptor is required (NETWORK_DESCRIPTORS)")
    return tuple(networks)


@dataclass(frozen=True, slots=True)
class RelayerConfig:
    """Main configuration for the witness relayer.

    Attributes:
        source_chain: Source chain connection settings
        destination_chain: Destination chain connection settings
        validator: Witnessing validator identity
        networks: Networks to run one subscriber each for
        monitoring: Loop and retry settings
        local_mode: Whether the signing key comes from the environment
    """

    source_chain: SourceChainConfig
    destination_chain: DestinationChainConfig
    validator: ValidatorConfig
    networks: tuple[NetworkDescriptor, ...]
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    local_mode: bool = False

    def __post_init__(self) -> None:
        """Validate relayer configuration."""
        if self.local_mode and not self.validator.private_key:
            raise ValueError(
                "Local mode requires LOCAL_PRIVATE_KEY environment variable"
            )
        if not self.networks:
            raise ValueError("At least one network descriptor is required (NETWORK_DESCRIPTORS)")

    @classmethod
    def from_env(cls, local_mode: bool = False) -> "RelayerConfig":
        """Load configuration from environment variables.

        Args:
            local_mode: Whether the signing key is read from LOCAL_PRIVATE_KEY

        Returns:
            RelayerConfig instance with loaded values

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        source_config = SourceChainConfig(
            rpc_url=os.environ.get("SOURCE_RPC_URL", ""),
            base64_attributes=os.environ.get("BASE64_ATTRIBUTES", "false").lower() in ("1", "true", "yes"),
        )

        destination_config = DestinationChainConfig(
            api_url=os.environ.get("DESTINATION_API_URL", ""),
            broadcaster_url=os.environ.get("BROADCASTER_URL", ""),
        )

        validator_config = ValidatorConfig(
            name=os.environ.get("VALIDATOR_NAME", ""),
            address=os.environ.get("VALIDATOR_ADDRESS", ""),
            private_key=os.environ.get("LOCAL_PRIVATE_KEY") if local_mode else None,
        )

        networks = parse_network_descriptors(os.environ.get("NETWORK_DESCRIPTORS", "1"))

        try:
            monitoring_config = MonitoringConfig(
                tick_interval=float(os.environ.get("TICK_INTERVAL", "10")),
                reconnect_delay=float(os.environ.get("RECONNECT_DELAY", "1")),
                max_reconnect_delay=float(os.environ.get("MAX_RECONNECT_DELAY", "60")),
                nonce_query_timeout=float(os.environ.get("NONCE_QUERY_TIMEOUT", "1")),
                retry_delay=float(os.environ.get("RETRY_DELAY", "1")),
                max_height_retries=int(os.environ.get("MAX_HEIGHT_RETRIES", "5")),
            )
        except ValueError as e:
            raise ValueError(f"Invalid monitoring setting: {e}") from e

        return cls(
            source_chain=source_config,
            destination_chain=destination_config,
            validator=validator_config,
            networks=networks,
            monitoring=monitoring_config,
            local_mode=local_mode,
        )

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        logger.info("=" * 60)
        logger.info("Witness Relayer Configuration")
        logger.info("=" * 60)

        logger.info("Source Chain:")
        logger.info(f"  RPC URL: {self.source_chain.rpc_url}")
        logger.info(f"  Base64 Attributes: {self.source_chain.base64_attributes}")

        logger.info("Destination Chain:")
        logger.info(f"  API URL: {self.destination_chain.api_url}")
        logger.info(f"  Broadcaster: {self.destination_chain.broadcaster_url or '[DEFAULT SOCKET]'}")

        logger.info("Validator:")
        logger.info(f"  Name: {self.validator.name}")
        logger.info(f"  Address: {self.validator.address}")
        logger.info(f"  Private Key: {'[SET]' if self.validator.private_key else '[FROM DAEMON]'}")

        logger.info(f"Networks: {', '.join(n.name for n in self.networks)}")

        logger.info("Monitoring Settings:")
        logger.info(f"  Tick Interval: {self.monitoring.tick_interval} seconds")
        logger.info(f"  Reconnect Delay: {self.monitoring.reconnect_delay}-{self.monitoring.max_reconnect_delay} seconds")
        logger.info(f"  Nonce Query Timeout: {self.monitoring.nonce_query_timeout} seconds")
        logger.info(f"  Max Height Retries: {self.monitoring.max_height_retries}")

        logger.info(f"Mode: {'LOCAL' if self.local_mode else 'PRODUCTION'}")
        logger.info("=" * 60)
