"""
Claim extraction for witnessed bridge events.

Two directions are supported:
- Lock/Burn events on the source chain carry only a ProphecyID and a network
  descriptor, which is all a witness needs to sign.
- LogLock/LogBurn events on a foreign EVM chain carry the full transfer, which
  is turned into a canonical Claim.
"""

import hashlib
import logging
from collections.abc import Collection, Iterable, Mapping
from typing import Any

import bech32
from web3 import Web3
from web3.types import EventData

from .errors import (
    IncompleteMessageError,
    InvalidNetworkError,
    InvalidRecipientError,
    ParseError,
    SpoofedNativeAssetError,
)
from .models import (
    Claim,
    ClaimKind,
    CosmosSignProphecyClaim,
    EthereumBridgeClaim,
    EthereumEvent,
    NetworkDescriptor,
    RelayMessage,
)
from .symbol_translator import SymbolTranslator

logger = logging.getLogger(__name__)

NULL_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_ASSET_SYMBOL = "eth"
DESTINATION_ADDRESS_PREFIX = "sif"
VALIDATOR_ADDRESS_PREFIX = "sifvaloper"

PROPHECY_ID_KEY = "prophecy_id"
NETWORK_DESCRIPTOR_KEY = "network_descriptor"
COSMOS_SENDER_KEY = "cosmos_sender"
ETHEREUM_SENDER_KEY = "ethereum_sender"
ETHEREUM_SENDER_NONCE_KEY = "ethereum_sender_nonce"

MAX_UINT32 = 2**32 - 1


def parse_network_descriptor(value: str) -> NetworkDescriptor:
    """
    Parse a base-10 unsigned 32-bit network descriptor and check it is recognized.

    Raises:
        InvalidNetworkError: If the value is not an unsigned 32-bit integer
            or not a recognized network
    """
    if not value.isascii() or not value.isdigit():
        raise InvalidNetworkError(f"Network descriptor can't be parsed: {value!r}")

    number = int(value)
    if number > MAX_UINT32:
        raise InvalidNetworkError(f"Network descriptor out of range: {value!r}")

    if not NetworkDescriptor.is_valid(number):
        raise InvalidNetworkError(f"Network descriptor {number} is not recognized")

    return NetworkDescriptor(number)


def burn_lock_event_to_relay_message(attributes: Iterable[tuple[str, str]]) -> RelayMessage:
    """
    Extract the relay message from a source-chain Lock/Burn event.

    Args:
        attributes: Decoded (key, value) attribute pairs of the event

    Returns:
        RelayMessage holding the network descriptor and ProphecyID

    Raises:
        IncompleteMessageError: If prophecy_id or network_descriptor is absent
        InvalidNetworkError: If network_descriptor is not an unsigned integer
            or not recognized
    """
    prophecy_id: bytes | None = None
    network_descriptor: NetworkDescriptor | None = None

    for key, value in attributes:
        match key:
            case "prophecy_id":
                prophecy_id = value.encode("utf-8")
            case "network_descriptor":
                network_descriptor = parse_network_descriptor(value)

    if prophecy_id is None or network_descriptor is None:
        missing = [
            name for name, found in (
                (PROPHECY_ID_KEY, prophecy_id),
                (NETWORK_DESCRIPTOR_KEY, network_descriptor),
            ) if found is None
        ]
        raise IncompleteMessageError(f"Message not complete, missing: {', '.join(missing)}")

    return RelayMessage(network_descriptor=network_descriptor, prophecy_id=prophecy_id)


def get_denom_hash(
    network_descriptor: int,
    token_contract_address: str,
    decimals: int,
    token_name: str,
    token_symbol: str,
) -> str:
    """
    Derive the destination denom of a bridged asset.

    The destination chain computes the same value to recognize an asset
    across claims, so the layout must not change. Fields are concatenated
    without a separator, so tuples that differ only in where decimals end and
    the name begins (decimals=1, name="8Token" vs decimals=18, name="Token")
    share a hash.
    """
    denom_source = (
        f"{int(network_descriptor)}{token_contract_address.lower()}"
        f"{decimals}{token_name}{token_symbol}"
    )
    return "sif" + hashlib.sha256(denom_source.encode("utf-8")).hexdigest()


def is_zero_address(address: str) -> bool:
    return Web3.to_checksum_address(address) == NULL_ADDRESS


def _checksum(address: str, field_name: str) -> str:
    if not Web3.is_address(address):
        raise ParseError(f"Invalid {field_name} address: {address}")
    return Web3.to_checksum_address(address)


def decode_recipient(receiver: bytes | str, prefix: str = DESTINATION_ADDRESS_PREFIX) -> str:
    """
    Decode a destination-chain bech32 account address.

    Raises:
        InvalidRecipientError: If the address does not decode, has the wrong
            prefix, or has an empty payload
    """
    try:
        address = receiver.decode("utf-8") if isinstance(receiver, bytes) else receiver
    except UnicodeDecodeError:
        raise InvalidRecipientError(f"Recipient is not valid UTF-8: {receiver!r}") from None

    hrp, data = bech32.bech32_decode(address)
    if hrp is None or data is None:
        raise InvalidRecipientError(f"Recipient is not a bech32 address: {address!r}")
    if hrp != prefix:
        raise InvalidRecipientError(f"Recipient prefix {hrp!r} is not {prefix!r}")

    payload = bech32.convertbits(data, 5, 8, False)
    if not payload:
        raise InvalidRecipientError("Empty recipient address")

    return address


def _missing_keys(found: Mapping[str, object]) -> list[str]:
    return [key for key, value in found.items() if value is None]


def attributes_to_cosmos_sign_prophecy_claim(
    attributes: Iterable[tuple[str, str]],
) -> CosmosSignProphecyClaim:
    """
    Extract a sign-prophecy claim from source-chain event attributes.

    Raises:
        IncompleteMessageError: If cosmos_sender, network_descriptor or
            prophecy_id is absent
        InvalidRecipientError: If cosmos_sender is not a validator address
        InvalidNetworkError: If network_descriptor is unparseable or not recognized
    """
    found: dict[str, Any] = dict.fromkeys(
        (COSMOS_SENDER_KEY, NETWORK_DESCRIPTOR_KEY, PROPHECY_ID_KEY)
    )

    for key, value in attributes:
        match key:
            case "cosmos_sender":
                found[key] = decode_recipient(value, prefix=VALIDATOR_ADDRESS_PREFIX)
            case "network_descriptor":
                found[key] = parse_network_descriptor(value)
            case "prophecy_id":
                found[key] = value.encode("utf-8")

    if missing := _missing_keys(found):
        raise IncompleteMessageError(f"Message not complete, missing: {', '.join(missing)}")

    return CosmosSignProphecyClaim(
        cosmos_sender=found[COSMOS_SENDER_KEY],
        network_descriptor=found[NETWORK_DESCRIPTOR_KEY],
        prophecy_id=found[PROPHECY_ID_KEY],
    )


def attributes_to_ethereum_bridge_claim(
    attributes: Iterable[tuple[str, str]],
) -> EthereumBridgeClaim:
    """
    Extract an Ethereum bridge claim from source-chain event attributes.

    The nonce is kept as an arbitrary precision integer.

    Raises:
        IncompleteMessageError: If cosmos_sender, ethereum_sender or
            ethereum_sender_nonce is absent
        InvalidRecipientError: If cosmos_sender is not a validator address
        ParseError: If ethereum_sender is not a hex address or the nonce is
            not an unsigned integer
    """
    found: dict[str, Any] = dict.fromkeys(
        (COSMOS_SENDER_KEY, ETHEREUM_SENDER_KEY, ETHEREUM_SENDER_NONCE_KEY)
    )

    for key, value in attributes:
        match key:
            case "cosmos_sender":
                found[key] = decode_recipient(value, prefix=VALIDATOR_ADDRESS_PREFIX)
            case "ethereum_sender":
                found[key] = _checksum(value, "ethereum sender")
            case "ethereum_sender_nonce":
                if not value.isascii() or not value.isdigit():
                    raise ParseError(f"Invalid nonce: {value!r}")
                found[key] = int(value)

    if missing := _missing_keys(found):
        raise IncompleteMessageError(f"Message not complete, missing: {', '.join(missing)}")

    return EthereumBridgeClaim(
        ethereum_sender=found[ETHEREUM_SENDER_KEY],
        cosmos_sender=found[COSMOS_SENDER_KEY],
        nonce=found[ETHEREUM_SENDER_NONCE_KEY],
    )


def ethereum_event_to_claim(
    validator_address: str,
    event: EthereumEvent,
    symbol_translator: SymbolTranslator,
) -> Claim:
    """
    Build a canonical Claim from a foreign-chain LogLock/LogBurn event.

    Args:
        validator_address: Address of the witnessing validator
        event: The decoded foreign-chain event
        symbol_translator: Table used to rewrite Burn symbols

    Returns:
        The canonical Claim

    Raises:
        InvalidRecipientError: If the receiver is not a destination address
        SpoofedNativeAssetError: If the native symbol points at a token contract
        InvalidNetworkError: If the network descriptor is not recognized
        ParseError: If an address or the amount is malformed
    """
    if not NetworkDescriptor.is_valid(event.network_descriptor):
        raise InvalidNetworkError(
            f"Network descriptor {event.network_descriptor} is not recognized"
        )
    network_descriptor = NetworkDescriptor(event.network_descriptor)

    if event.claim_kind not in (ClaimKind.LOCK, ClaimKind.BURN):
        raise ParseError(f"Unsupported claim kind for a transfer: {event.claim_kind.value}")

    bridge_contract_address = _checksum(event.bridge_contract_address, "bridge contract")
    sender = _checksum(event.sender, "sender")
    token_contract_address = _checksum(event.token, "token contract")
    recipient = decode_recipient(event.receiver)

    symbol = event.symbol.lower()
    if symbol == NATIVE_ASSET_SYMBOL and not is_zero_address(token_contract_address):
        raise SpoofedNativeAssetError(
            f'Symbol "{NATIVE_ASSET_SYMBOL}" must have null address set as token address, '
            f"got {token_contract_address}"
        )

    if event.claim_kind is ClaimKind.BURN:
        symbol = symbol_translator.ethereum_to_sifchain(symbol)
        logger.debug(f"Burn symbol {event.symbol!r} translated to {symbol!r}")

    if not isinstance(event.value, int) or event.value < 0:
        raise ParseError(f"Amount must be a nonnegative integer, got {event.value!r}")
    if not isinstance(event.nonce, int) or event.nonce < 0:
        raise ParseError(f"Nonce must be a nonnegative integer, got {event.nonce!r}")

    return Claim(
        network_descriptor=network_descriptor,
        bridge_contract_address=bridge_contract_address,
        nonce=event.nonce,
        token_contract_address=token_contract_address,
        symbol=symbol,
        ethereum_sender=sender,
        validator_address=validator_address,
        cosmos_receiver=recipient,
        amount=event.value,
        claim_kind=event.claim_kind,
        decimals=event.decimals,
        token_name=event.name,
        denom_hash=get_denom_hash(
            network_descriptor,
            token_contract_address,
            event.decimals,
            event.name,
            event.symbol,
        ),
    )


def ethereum_event_from_log(event: EventData, claim_kind: ClaimKind) -> EthereumEvent:
    """
    Decode a bridge contract LogLock/LogBurn log into an EthereumEvent.

    Args:
        event: Decoded web3 event data
        claim_kind: LOCK for LogLock, BURN for LogBurn

    Raises:
        IncompleteMessageError: If the emitting contract or a required event
            argument is missing
    """
    if not event.get("address"):
        raise IncompleteMessageError("Bridge event missing emitting contract address")

    args: Mapping[str, Any] = event.get("args", {})
    required = ("_from", "_to", "_token", "_value", "_nonce", "_decimals",
                "_symbol", "_name", "_networkDescriptor")
    if missing := [name for name in required if name not in args]:
        raise IncompleteMessageError(f"Bridge event missing arguments: {', '.join(missing)}")

    match args["_to"]:
        case bytes() as receiver:
            pass
        case str() as receiver_text:
            receiver = receiver_text.encode("utf-8")
        case other:
            raise ParseError(f"Unexpected receiver type: {type(other).__name__}")

    return EthereumEvent(
        network_descriptor=int(args["_networkDescriptor"]),
        bridge_contract_address=str(event["address"]),
        sender=str(args["_from"]),
        receiver=receiver,
        token=str(args["_token"]),
        symbol=str(args["_symbol"]),
        name=str(args["_name"]),
        decimals=int(args["_decimals"]),
        value=int(args["_value"]),
        nonce=int(args["_nonce"]),
        claim_kind=claim_kind,
    )


def message_processed(prophecy_id: bytes, attested: Collection[bytes]) -> bool:
    """Return True if the ProphecyID is among already attested ones."""
    return prophecy_id in attested
