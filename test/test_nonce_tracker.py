#!/usr/bin/env python3
"""Unit tests for nonce-gap tracking."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from witness_relayer.errors import RPCError
from witness_relayer.models import NetworkDescriptor, ScanRange
from witness_relayer.nonce_tracker import NonceTracker

VALIDATOR_ADDRESS = "sifvaloper1l7hypmqk2yc334vc6vmdwzp5sdefygj2ad93p5"


@pytest.fixture
def query_client():
    client = MagicMock()
    client.witness_lock_burn_nonce = AsyncMock(return_value=5)
    client.global_nonce_block_number = AsyncMock(return_value=100)
    return client


@pytest.fixture
def source_client():
    client = MagicMock()
    client.latest_height = AsyncMock(return_value=120)
    return client


@pytest.fixture
def tracker(query_client, source_client):
    return NonceTracker(query_client, source_client, timeout=1.0)


class TestNonceTracker:
    """Tests for NonceTracker."""

    @pytest.mark.asyncio
    async def test_next_event_height_queries_next_nonce(self, tracker, query_client):
        """Test that the height of witness nonce + 1 is looked up."""
        nonce, height = await tracker.next_event_height(NetworkDescriptor.ETHEREUM, VALIDATOR_ADDRESS)

        assert (nonce, height) == (5, 100)
        query_client.witness_lock_burn_nonce.assert_awaited_once_with(
            NetworkDescriptor.ETHEREUM, VALIDATOR_ADDRESS
        )
        query_client.global_nonce_block_number.assert_awaited_once_with(NetworkDescriptor.ETHEREUM, 6)

    @pytest.mark.asyncio
    async def test_scan_range(self, tracker, source_client):
        """Test the range from the next event to the head."""
        scan_range = await tracker.scan_range(NetworkDescriptor.ETHEREUM, VALIDATOR_ADDRESS)

        assert scan_range == ScanRange(100, 120)
        assert len(scan_range) == 21
        source_client.latest_height.assert_awaited_once_with(timeout=1.0)

    @pytest.mark.asyncio
    async def test_caught_up(self, tracker, query_client, source_client):
        """Test that height 0 means there is nothing to scan."""
        query_client.global_nonce_block_number.return_value = 0

        assert await tracker.scan_range(NetworkDescriptor.ETHEREUM, VALIDATOR_ADDRESS) is None
        source_client.latest_height.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_next_event_beyond_head(self, tracker, source_client):
        """Test that a next event above the head is not scanned yet."""
        source_client.latest_height.return_value = 99

        assert await tracker.scan_range(NetworkDescriptor.ETHEREUM, VALIDATOR_ADDRESS) is None

    @pytest.mark.asyncio
    async def test_single_block_range(self, tracker, source_client):
        """Test that the head block alone is a valid range."""
        source_client.latest_height.return_value = 100

        scan_range = await tracker.scan_range(NetworkDescriptor.ETHEREUM, VALIDATOR_ADDRESS)

        assert list(scan_range) == [100]

    @pytest.mark.asyncio
    async def test_query_failure_propagates(self, tracker, query_client):
        """Test that query failures are left to the caller."""
        query_client.witness_lock_burn_nonce.side_effect = RPCError("timeout")

        with pytest.raises(RPCError):
            await tracker.scan_range(NetworkDescriptor.ETHEREUM, VALIDATOR_ADDRESS)
