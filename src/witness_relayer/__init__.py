"""
Witness Relayer package.

Witnesses Lock/Burn events on a source chain, signs their ProphecyIDs and
submits the attestations to the destination chain.
"""

from .config import RelayerConfig
from .models import Claim, ClaimKind, NetworkDescriptor, RelayMessage
from .relayer import WitnessRelayer
from .subscriber import ChainSubscriber
from .witness_processor import WitnessProcessor

__all__ = [
    "RelayerConfig",
    "WitnessRelayer",
    "ChainSubscriber",
    "WitnessProcessor",
    "Claim",
    "ClaimKind",
    "NetworkDescriptor",
    "RelayMessage",
]
__version__ = "0.1.0"
