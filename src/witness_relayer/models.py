"""
Shared data models for the witness relayer.

This module contains the immutable records passed between the scanner,
claim builder, signer and submitter.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


class NetworkDescriptor(IntEnum):
    """Chains the destination ledger recognizes."""
    ETHEREUM = 1
    BINANCE_SMART_CHAIN = 2
    ETHEREUM_TESTNET_ROPSTEN = 3
    BINANCE_SMART_CHAIN_TESTNET = 4
    HARDHAT = 9999

    @classmethod
    def is_valid(cls, value: int) -> bool:
        try:
            cls(value)
        except ValueError:
            return False
        return True


class ClaimKind(Enum):
    """Canonical kind of a witnessed source-chain event."""
    LOCK = "lock"
    BURN = "burn"
    PROPHECY_COMPLETED = "prophecy_completed"
    UNSUPPORTED = "unsupported"


class SubscriberState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    CATCHING_UP = "catching_up"
    IDLE = "idle"
    SHUTTING_DOWN = "shutting_down"


@dataclass(frozen=True, slots=True)
class ChainEvent:
    """A source-chain event decoded once at the ingestion boundary.

    Attributes:
        kind: Classified claim kind of the raw event type
        event_type: The raw event type string as emitted by the chain
        attributes: Decoded (key, value) attribute pairs in emission order
        height: Block height the event was emitted at
    """
    kind: ClaimKind
    event_type: str
    attributes: tuple[tuple[str, str], ...]
    height: int


@dataclass(frozen=True, slots=True)
class RelayMessage:
    """Minimal message extracted from a Lock/Burn event on the source chain."""
    network_descriptor: NetworkDescriptor
    prophecy_id: bytes

    def __str__(self) -> str:
        return (
            f"RelayMessage(network={self.network_descriptor.value}, "
            f"prophecy_id={self.prophecy_id!r})"
        )


@dataclass(frozen=True, slots=True)
class CosmosSignProphecyClaim:
    """A validator's sign-prophecy as announced on the source chain."""
    cosmos_sender: str
    network_descriptor: NetworkDescriptor
    prophecy_id: bytes


@dataclass(frozen=True, slots=True)
class EthereumBridgeClaim:
    """A validator's claim about a foreign-chain sender and its nonce."""
    ethereum_sender: str
    cosmos_sender: str
    nonce: int


@dataclass(frozen=True, slots=True)
class EthereumEvent:
    """A LogLock/LogBurn event as emitted by the foreign bridge contract.

    Attributes:
        network_descriptor: Network the bridge contract lives on
        bridge_contract_address: Address of the bridge contract
        sender: Address that locked or burned the asset
        receiver: Raw receiver bytes (a bech32 address on the destination)
        token: Token contract address, the null address for the native asset
        symbol: Token symbol as reported on chain
        name: Token name as reported on chain
        decimals: Token decimals
        value: Transferred amount in the token's base unit
        nonce: Bridge nonce of the event
        claim_kind: LOCK or BURN
    """
    network_descriptor: int
    bridge_contract_address: str
    sender: str
    receiver: bytes
    token: str
    symbol: str
    name: str
    decimals: int
    value: int
    nonce: int
    claim_kind: ClaimKind


@dataclass(frozen=True, slots=True)
class Claim:
    """Canonical, chain-agnostic record of one witnessed transfer."""
    network_descriptor: NetworkDescriptor
    bridge_contract_address: str
    nonce: int
    token_contract_address: str
    symbol: str
    ethereum_sender: str
    validator_address: str
    cosmos_receiver: str
    amount: int
    claim_kind: ClaimKind
    decimals: int
    token_name: str
    denom_hash: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "network_descriptor": self.network_descriptor.value,
            "bridge_contract_address": self.bridge_contract_address,
            "nonce": str(self.nonce),
            "token_contract_address": self.token_contract_address,
            "symbol": self.symbol,
            "ethereum_sender": self.ethereum_sender,
            "validator_address": self.validator_address,
            "cosmos_receiver": self.cosmos_receiver,
            "amount": str(self.amount),
            "claim_type": self.claim_kind.value,
            "decimals": self.decimals,
            "token_name": self.token_name,
            "denom_hash": self.denom_hash,
        }


@dataclass(frozen=True, slots=True)
class Attestation:
    """A validator's signature over one ProphecyID."""
    validator_address: str
    network_descriptor: NetworkDescriptor
    prophecy_id: bytes
    signer_address: str
    signature: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class ScanRange:
    """Inclusive block height range that still needs scanning."""
    from_height: int
    to_height: int

    def __iter__(self):
        return iter(range(self.from_height, self.to_height + 1))

    def __len__(self) -> int:
        return max(0, self.to_height - self.from_height + 1)
