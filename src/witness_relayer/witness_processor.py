"""
Witness processing for scanned source-chain events.

This module turns classified Lock/Burn events into signed attestations and
submits them, keeping the processing logic separate from the subscription
loop.
"""

import logging
from collections import OrderedDict

from .claim_builder import burn_lock_event_to_relay_message, message_processed
from .errors import RelayerError, SigningError
from .models import Attestation, ChainEvent, ClaimKind, NetworkDescriptor, RelayMessage
from .signer import Signer
from .submitter import Submitter

logger = logging.getLogger(__name__)


class WitnessProcessor:
    """Signs and submits attestations for one network's Lock/Burn events."""

    MAX_ATTESTED_PROPHECIES: int = 10_000
    MAX_PENDING_SUBMISSIONS: int = 10_000

    def __init__(
        self,
        network_descriptor: NetworkDescriptor,
        validator_address: str,
        signer: Signer,
        submitter: Submitter,
    ) -> None:
        """Initialize the witness processor.

        Args:
            network_descriptor: Network this processor witnesses events for
            validator_address: Operator address of the witnessing validator
            signer: Signer holding the validator's witness key
            submitter: Submitter for sign-prophecy transactions
        """
        self.network_descriptor = network_descriptor
        self.validator_address = validator_address
        self.signer = signer
        self.submitter = submitter

        # ProphecyIDs this instance has attested, oldest first
        self.attested_prophecies: OrderedDict[bytes, None] = OrderedDict()
        # Signed attestations whose submission failed, retried every tick
        self.pending_submissions: OrderedDict[bytes, Attestation] = OrderedDict()

        self.events_processed = 0
        self.events_filtered = 0
        self.events_duplicated = 0
        self.events_invalid = 0
        self.submissions_failed = 0

    async def process_tx_events(self, events: list[ChainEvent]) -> list[Attestation]:
        """
        Process one transaction's events.

        Semantic failures drop the offending event only.

        Args:
            events: Decoded events of a single transaction

        Returns:
            Attestations that were signed for this transaction
        """
        attestations: list[Attestation] = []
        for event in events:
            match event.kind:
                case ClaimKind.LOCK | ClaimKind.BURN:
                    if attestation := await self.process_burn_lock_event(event):
                        attestations.append(attestation)
                case _:
                    continue
        return attestations

    async def process_burn_lock_event(self, event: ChainEvent) -> Attestation | None:
        """
        Witness a single Lock/Burn event.

        Args:
            event: A LOCK or BURN ChainEvent

        Returns:
            The signed Attestation, or None if the event was dropped
        """
        try:
            message = burn_lock_event_to_relay_message(event.attributes)
        except RelayerError as e:
            self.events_invalid += 1
            logger.error(
                f"Dropping {event.kind.value} event at height {event.height}: {e}"
            )
            return None

        logger.info(f"Received message from source chain: {message}")

        if message.network_descriptor != self.network_descriptor:
            self.events_filtered += 1
            logger.debug(
                f"Filtered event for network {message.network_descriptor.name} "
                f"(configured for {self.network_descriptor.name})"
            )
            return None

        if message_processed(message.prophecy_id, self.attested_prophecies) or (
            message.prophecy_id in self.pending_submissions
        ):
            self.events_duplicated += 1
            logger.debug(f"Already witnessed ProphecyID {message.prophecy_id[:10]!r}...")
            return None

        attestation = self.witness_sign_prophecy_id(message)
        if attestation is None:
            return None

        self.events_processed += 1
        await self._submit(attestation)
        return attestation

    def witness_sign_prophecy_id(self, message: RelayMessage) -> Attestation | None:
        """Sign a relay message's ProphecyID, returning None if the key is unusable."""
        try:
            signature = self.signer.sign(message.prophecy_id)
        except SigningError as e:
            self.events_invalid += 1
            logger.error(f"Failed to sign the ProphecyID {message.prophecy_id[:10]!r}...: {e}")
            return None

        return Attestation(
            validator_address=self.validator_address,
            network_descriptor=message.network_descriptor,
            prophecy_id=message.prophecy_id,
            signer_address=self.signer.address,
            signature=signature,
        )

    async def _submit(self, attestation: Attestation) -> bool:
        if await self.submitter.submit_attestation(attestation):
            self.pending_submissions.pop(attestation.prophecy_id, None)
            self._track_attested(attestation.prophecy_id)
            return True

        self.submissions_failed += 1
        self._track_pending(attestation)
        return False

    async def retry_pending(self) -> int:
        """
        Resubmit attestations whose submission failed on an earlier tick.

        Returns:
            Number of attestations that are still pending
        """
        if not self.pending_submissions:
            return 0

        logger.info(f"Retrying {len(self.pending_submissions)} pending sign prophecy submissions")
        for attestation in list(self.pending_submissions.values()):
            await self._submit(attestation)
        return len(self.pending_submissions)

    def _track_attested(self, prophecy_id: bytes) -> None:
        """Track an attested ProphecyID, evicting the oldest at capacity."""
        if prophecy_id in self.attested_prophecies:
            self.attested_prophecies.move_to_end(prophecy_id)
            return
        if len(self.attested_prophecies) >= self.MAX_ATTESTED_PROPHECIES:
            self.attested_prophecies.popitem(last=False)
        self.attested_prophecies[prophecy_id] = None

    def _track_pending(self, attestation: Attestation) -> None:
        if attestation.prophecy_id in self.pending_submissions:
            return
        if len(self.pending_submissions) >= self.MAX_PENDING_SUBMISSIONS:
            dropped, _ = self.pending_submissions.popitem(last=False)
            logger.warning(f"Dropped oldest pending submission {dropped[:10]!r}... due to capacity")
        self.pending_submissions[attestation.prophecy_id] = attestation

    def get_stats(self) -> dict:
        """
        Get current processor statistics.

        Returns:
            Dictionary with current state metrics
        """
        return {
            'events_processed': self.events_processed,
            'events_filtered': self.events_filtered,
            'events_duplicated': self.events_duplicated,
            'events_invalid': self.events_invalid,
            'submissions_failed': self.submissions_failed,
            'pending_submissions': len(self.pending_submissions),
            'attested_prophecies': len(self.attested_prophecies),
        }
