#!/usr/bin/env python3
"""Unit tests for event classification and attribute decoding."""

import base64

import pytest

from witness_relayer.event_classifier import (
    classify,
    decode_attributes,
    decode_block_events,
    decode_tx_events,
)
from witness_relayer.models import ClaimKind


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class TestClassify:
    """Tests for mapping event types to claim kinds."""

    @pytest.mark.parametrize("event_type,kind", [
        ("lock", ClaimKind.LOCK),
        ("burn", ClaimKind.BURN),
        ("prophecy_completed", ClaimKind.PROPHECY_COMPLETED),
    ])
    def test_known_types(self, event_type, kind):
        """Test that the recognized event types map to their kind."""
        assert classify(event_type) is kind

    @pytest.mark.parametrize("event_type", ["transfer", "message", "LOCK", "", "lock "])
    def test_unknown_types(self, event_type):
        """Test that anything else is unsupported."""
        assert classify(event_type) is ClaimKind.UNSUPPORTED


class TestDecodeAttributes:
    """Tests for decoding Tendermint attribute lists."""

    def test_plain_attributes(self):
        """Test that plain string attributes are kept in order."""
        decoded = decode_attributes([
            {"key": "prophecy_id", "value": "abc123"},
            {"key": "network_descriptor", "value": "1"},
        ])

        assert decoded == (("prophecy_id", "abc123"), ("network_descriptor", "1"))

    def test_base64_attributes(self):
        """Test that base64 encoded keys and values are decoded."""
        decoded = decode_attributes(
            [{"key": b64("prophecy_id"), "value": b64("abc123")}],
            base64_encoded=True,
        )

        assert decoded == (("prophecy_id", "abc123"),)

    def test_missing_value(self):
        """Test that a null value decodes to an empty string."""
        assert decode_attributes([{"key": "amount", "value": None}]) == (("amount", ""),)

    def test_empty(self):
        """Test that missing attribute lists decode to nothing."""
        assert decode_attributes(None) == ()
        assert decode_attributes([]) == ()


class TestDecodeBlockEvents:
    """Tests for decoding whole block_results payloads."""

    def test_per_transaction_lists(self):
        """Test that events are grouped per transaction in block order."""
        block_results = {
            "height": "42",
            "txs_results": [
                {"events": [
                    {"type": "message", "attributes": [{"key": "action", "value": "lock"}]},
                    {"type": "lock", "attributes": [
                        {"key": "prophecy_id", "value": "abc123"},
                        {"key": "network_descriptor", "value": "1"},
                    ]},
                ]},
                {"events": []},
                {"events": [{"type": "burn", "attributes": []}]},
            ],
        }

        txs = decode_block_events(block_results)

        assert len(txs) == 3
        assert [event.kind for event in txs[0]] == [ClaimKind.UNSUPPORTED, ClaimKind.LOCK]
        assert txs[0][1].attributes == (("prophecy_id", "abc123"), ("network_descriptor", "1"))
        assert txs[0][1].height == 42
        assert txs[1] == []
        assert txs[2][0].kind is ClaimKind.BURN
        assert txs[2][0].event_type == "burn"

    def test_block_without_transactions(self):
        """Test that empty blocks decode to no transactions."""
        assert decode_block_events({"height": "7", "txs_results": None}) == []
        assert decode_block_events({"height": "7"}) == []

    def test_tx_events_height(self):
        """Test that the block height is carried on each event."""
        events = decode_tx_events([{"type": "lock"}], height=9)

        assert events[0].height == 9
        assert events[0].attributes == ()
