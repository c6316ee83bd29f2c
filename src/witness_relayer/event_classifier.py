"""
Event classification for source-chain block results.

Raw event type strings are mapped to a ClaimKind once, when a block's
results are decoded, so the rest of the pipeline only sees ChainEvent values.
"""

import base64
import binascii
import logging
from collections.abc import Mapping
from typing import Any

from .models import ChainEvent, ClaimKind

logger = logging.getLogger(__name__)

_EVENT_TYPES: dict[str, ClaimKind] = {
    ClaimKind.LOCK.value: ClaimKind.LOCK,
    ClaimKind.BURN.value: ClaimKind.BURN,
    ClaimKind.PROPHECY_COMPLETED.value: ClaimKind.PROPHECY_COMPLETED,
}


def classify(event_type: str) -> ClaimKind:
    """Map a raw event type to its claim kind; unknown types are UNSUPPORTED."""
    return _EVENT_TYPES.get(event_type, ClaimKind.UNSUPPORTED)


def _decode_attribute_text(value: Any, base64_encoded: bool) -> str:
    match value:
        case None:
            return ""
        case bytes() as raw:
            return raw.decode("utf-8", errors="replace")
        case str() as text if base64_encoded:
            try:
                return base64.b64decode(text, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError):
                return text
        case str() as text:
            return text
        case _:
            return str(value)


def decode_attributes(
    attributes: list[Mapping[str, Any]] | None,
    base64_encoded: bool = False,
) -> tuple[tuple[str, str], ...]:
    """
    Decode Tendermint event attributes into (key, value) pairs.

    Older Tendermint releases base64 encode attribute keys and values in
    block_results; newer ones return plain strings.

    Args:
        attributes: Raw attribute list, each item holding 'key' and 'value'
        base64_encoded: Whether keys and values are base64 encoded

    Returns:
        Tuple of decoded (key, value) pairs in emission order
    """
    decoded: list[tuple[str, str]] = []
    for attribute in attributes or []:
        key = _decode_attribute_text(attribute.get("key"), base64_encoded)
        value = _decode_attribute_text(attribute.get("value"), base64_encoded)
        decoded.append((key, value))
    return tuple(decoded)


def decode_tx_events(
    events: list[Mapping[str, Any]] | None,
    height: int,
    base64_encoded: bool = False,
) -> list[ChainEvent]:
    """
    Decode one transaction's event list into classified ChainEvents.

    Args:
        events: Raw events of a single transaction result
        height: Height of the block the transaction was included in
        base64_encoded: Whether attribute keys and values are base64 encoded

    Returns:
        List of ChainEvent, including UNSUPPORTED ones
    """
    decoded: list[ChainEvent] = []
    for event in events or []:
        event_type = str(event.get("type", ""))
        decoded.append(
            ChainEvent(
                kind=classify(event_type),
                event_type=event_type,
                attributes=decode_attributes(event.get("attributes"), base64_encoded),
                height=height,
            )
        )
    return decoded


def decode_block_events(
    block_results: Mapping[str, Any],
    base64_encoded: bool = False,
) -> list[list[ChainEvent]]:
    """
    Decode a block_results payload into per-transaction event lists.

    Args:
        block_results: The 'result' object of a block_results RPC response
        base64_encoded: Whether attribute keys and values are base64 encoded

    Returns:
        One list of ChainEvent per transaction, in block order
    """
    height = int(block_results.get("height", 0))
    txs_results = block_results.get("txs_results") or []
    logger.debug(f"Decoding {len(txs_results)} transaction results at height {height}")
    return [
        decode_tx_events(tx_result.get("events"), height, base64_encoded)
        for tx_result in txs_results
    ]
