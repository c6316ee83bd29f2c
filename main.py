#!/usr/bin/env python3
"""Entry point for the witness relayer service.

This module provides the main entry point for the relayer that runs in
either production mode (signing key held by the broadcaster daemon) or local
testing mode.
"""

import argparse
import asyncio
import logging
import os
import sys

from witness_relayer.errors import RelayerError
from witness_relayer.relayer import WitnessRelayer

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the relayer process.

    Args:
        level: Level name, e.g. "INFO" or "DEBUG"; unknown names fall back to INFO
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


async def main() -> None:
    """Main entry point for the witness relayer.

    Reads the CLI flags and environment configuration, then
    runs one subscriber per configured network until terminated.

    Raises:
        SystemExit: On configuration or startup errors
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Witness Relayer - Attest cross-chain Lock/Burn events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  SOURCE_RPC_URL        - Tendermint RPC endpoint of the source chain
  DESTINATION_API_URL   - REST gateway of the destination chain
  BROADCASTER_URL       - Broadcaster daemon URL or socket path (default: socket)
  NETWORK_DESCRIPTORS   - Comma separated networks to witness (default: 1)
  VALIDATOR_NAME        - Keyring name of the validator
  VALIDATOR_ADDRESS     - Validator operator address
  TICK_INTERVAL         - Seconds between nonce checks (default: 10)
  LOCAL_PRIVATE_KEY     - Witness signing key (required with --local)
  LOG_LEVEL             - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--local",
        action="store_true",
        default=False,
        help="Run in local mode with the signing key from LOCAL_PRIVATE_KEY"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    args: argparse.Namespace = parser.parse_args()

    setup_logging(args.log_level)

    logger.info(f"=== Witness Relayer Starting {'(LOCAL MODE)' if args.local else ''} ===")

    try:
        relayer: WitnessRelayer = WitnessRelayer.from_env(local_mode=args.local)
        await relayer.run()

    except ValueError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your environment variables:")
        logger.error("  - SOURCE_RPC_URL: Tendermint RPC endpoint of the source chain")
        logger.error("  - DESTINATION_API_URL: REST gateway of the destination chain")
        logger.error("  - VALIDATOR_NAME / VALIDATOR_ADDRESS: Witnessing validator")
        logger.error("  - NETWORK_DESCRIPTORS: Networks to witness (default: 1)")
        if args.local:
            logger.error("  - LOCAL_PRIVATE_KEY: Required for local mode")
        sys.exit(1)

    except RelayerError as e:
        logger.error(f"Startup Error: {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Interrupted, witness relayer exiting")
        sys.exit(0)

    except Exception as e:
        logger.error(f"Fatal Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
