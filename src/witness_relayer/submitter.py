"""Sign-prophecy submission for the witness relayer.

This module builds MsgSignProphecy messages and hands them to the broadcaster
daemon, which signs and broadcasts them on the destination chain.
"""

import base64
import logging
from typing import TYPE_CHECKING, Any

from .errors import SubmissionError
from .models import Attestation, NetworkDescriptor

if TYPE_CHECKING:
    from .utils.broadcaster_utility import BroadcasterUtility

logger = logging.getLogger(__name__)

MSG_SIGN_PROPHECY_TYPE = "sifnode/ethbridge/MsgSignProphecy"


def build_sign_prophecy_msg(
    validator_address: str,
    network_descriptor: NetworkDescriptor,
    prophecy_id: bytes,
    signer_address: str,
    signature: str,
) -> dict[str, Any]:
    """Build the amino-JSON MsgSignProphecy for one attestation."""
    return {
        "type": MSG_SIGN_PROPHECY_TYPE,
        "value": {
            "cosmos_sender": validator_address,
            "network_descriptor": int(network_descriptor),
            "prophecy_id": base64.b64encode(prophecy_id).decode("ascii"),
            "ethereum_address": signer_address,
            "signature": signature,
        },
    }


class Submitter:
    """Handles attestation submission to the destination chain."""

    def __init__(self, broadcaster: "BroadcasterUtility", validator_name: str) -> None:
        """
        Initialize the Submitter.

        Args:
            broadcaster: Broadcaster daemon client
            validator_name: Keyring name the daemon signs transactions with
        """
        self.broadcaster: BroadcasterUtility = broadcaster
        self.validator_name: str = validator_name

    async def submit(
        self,
        validator_address: str,
        network_descriptor: NetworkDescriptor,
        prophecy_id: bytes,
        signer_address: str,
        signature: str,
    ) -> bool:
        """
        Submit a sign-prophecy transaction.

        Failures are logged and reported through the return value; nothing is
        retried here.

        Returns:
            True if the transaction was accepted, False otherwise
        """
        msg = build_sign_prophecy_msg(
            validator_address, network_descriptor, prophecy_id, signer_address, signature
        )
        logger.info(
            f"Submitting sign prophecy for {prophecy_id[:10]!r}... "
            f"on network {network_descriptor.name}"
        )

        try:
            tx_hash = await self.broadcaster.broadcast([msg], self.validator_name)
        except SubmissionError as e:
            logger.error(f"✗ Sign prophecy submission failed: {e}")
            return False

        logger.info(f"✓ Sign prophecy submitted: {tx_hash}")
        return True

    async def submit_attestation(self, attestation: Attestation) -> bool:
        return await self.submit(
            attestation.validator_address,
            attestation.network_descriptor,
            attestation.prophecy_id,
            attestation.signer_address,
            attestation.signature,
        )
