"""
Witness signing of ProphecyIDs.

A witness signs keccak256(SIGNATURE_PREFIX || prophecy_id) with its EVM key so
the foreign bridge contract can verify the aggregated signatures with ecrecover.
"""

import logging

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from .errors import SigningError

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = b"\x19Ethereum Signed Message:\n32"


def prefix_message(prophecy_id: bytes) -> bytes:
    """Hash the ProphecyID behind the signed-message prefix."""
    return bytes(Web3.keccak(SIGNATURE_PREFIX + prophecy_id))


class Signer:
    """Signs ProphecyIDs with a validator's secp256k1 key."""

    def __init__(self, private_key: str):
        """
        Initialize the Signer.

        Args:
            private_key: Hex encoded secp256k1 private key

        Raises:
            SigningError: If the key is not a usable secp256k1 key
        """
        try:
            self._account: LocalAccount = Account.from_key(private_key)
        except Exception as e:
            raise SigningError(f"Signing key is unusable: {type(e).__name__}") from None

    @property
    def address(self) -> str:
        """Checksummed EVM address derived from the signing key."""
        return self._account.address

    def sign(self, prophecy_id: bytes) -> str:
        """
        Sign a ProphecyID.

        Args:
            prophecy_id: Raw ProphecyID bytes

        Returns:
            0x-prefixed 65 byte signature (r || s || v)

        Raises:
            SigningError: If the signature cannot be produced
        """
        if not prophecy_id:
            raise SigningError("Cannot sign an empty ProphecyID")

        try:
            signed = self._account.unsafe_sign_hash(prefix_message(prophecy_id))
        except Exception as e:
            raise SigningError(f"Failed to sign ProphecyID: {e}") from e

        signature = Web3.to_hex(signed.signature)
        logger.debug(f"Signed ProphecyID {prophecy_id[:10]!r}... as {self.address}")
        return signature
