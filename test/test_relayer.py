#!/usr/bin/env python3
"""
Test suite for the WitnessRelayer lifecycle.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from witness_relayer.config import (
    DestinationChainConfig,
    MonitoringConfig,
    RelayerConfig,
    SourceChainConfig,
    ValidatorConfig,
)
from witness_relayer.errors import SigningError
from witness_relayer.models import NetworkDescriptor
from witness_relayer.relayer import WitnessRelayer
from witness_relayer.subscriber import ChainSubscriber

TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def make_config(local_mode: bool = True, networks=(NetworkDescriptor.ETHEREUM, NetworkDescriptor.BINANCE_SMART_CHAIN)):
    return RelayerConfig(
        source_chain=SourceChainConfig(rpc_url="http://localhost:26657"),
        destination_chain=DestinationChainConfig(api_url="http://localhost:1317"),
        validator=ValidatorConfig(
            name="akasha",
            address="sifvaloper1xyz",
            private_key=TEST_PRIVATE_KEY if local_mode else None,
        ),
        networks=networks,
        monitoring=MonitoringConfig(tick_interval=0.01),
        local_mode=local_mode,
    )


class TestWitnessRelayer:
    """Tests for WitnessRelayer."""

    @pytest.mark.asyncio
    async def test_init_signer_local(self):
        """Test that local mode signs with the configured key."""
        relayer = WitnessRelayer(make_config())

        signer = await relayer.init_signer()

        assert signer.address == TEST_ADDRESS

    @pytest.mark.asyncio
    async def test_init_signer_from_daemon(self):
        """Test that production mode fetches the key from the broadcaster."""
        relayer = WitnessRelayer(make_config(local_mode=False))
        relayer.broadcaster.fetch_key = AsyncMock(return_value=TEST_PRIVATE_KEY)

        signer = await relayer.init_signer()

        relayer.broadcaster.fetch_key.assert_awaited_once_with("akasha-witness")
        assert signer.address == TEST_ADDRESS

    @pytest.mark.asyncio
    async def test_init_signer_failure(self):
        """Test that a missing daemon key is a startup error."""
        relayer = WitnessRelayer(make_config(local_mode=False))
        relayer.broadcaster.fetch_key = AsyncMock(side_effect=SigningError("no key"))

        with pytest.raises(SigningError):
            await relayer.init_signer()

    @pytest.mark.asyncio
    async def test_create_subscriber(self):
        """Test that each subscriber gets its own sessions and processor."""
        relayer = WitnessRelayer(make_config())
        signer = await relayer.init_signer()

        first = relayer.create_subscriber(NetworkDescriptor.ETHEREUM, signer)
        second = relayer.create_subscriber(NetworkDescriptor.BINANCE_SMART_CHAIN, signer)

        assert first.source_client is not second.source_client
        assert first.processor is not second.processor
        assert first.processor.network_descriptor is NetworkDescriptor.ETHEREUM
        assert second.processor.network_descriptor is NetworkDescriptor.BINANCE_SMART_CHAIN
        assert first.processor.submitter is relayer.submitter

    @pytest.mark.asyncio
    async def test_run_until_stopped(self):
        """Test that run starts one subscriber per network and returns after stop."""
        relayer = WitnessRelayer(make_config())
        started = []

        async def fake_run(subscriber_self):
            started.append(subscriber_self.network_descriptor)
            await subscriber_self.shutdown_event.wait()

        with patch.object(ChainSubscriber, "run", fake_run), \
                patch.object(WitnessRelayer, "_install_signal_handlers"):
            task = asyncio.create_task(relayer.run())
            while len(started) < 2:
                await asyncio.sleep(0)
            relayer.stop()
            await asyncio.wait_for(task, timeout=1)

        assert started == [NetworkDescriptor.ETHEREUM, NetworkDescriptor.BINANCE_SMART_CHAIN]
        assert relayer.running is False

    @pytest.mark.asyncio
    async def test_run_survives_subscriber_failure(self):
        """Test that one failing subscriber does not take down the others."""
        relayer = WitnessRelayer(make_config())
        finished = []

        async def fake_run(subscriber_self):
            if subscriber_self.network_descriptor is NetworkDescriptor.ETHEREUM:
                raise RuntimeError("boom")
            finished.append(subscriber_self.network_descriptor)

        with patch.object(ChainSubscriber, "run", fake_run), \
                patch.object(WitnessRelayer, "_install_signal_handlers"):
            await asyncio.wait_for(relayer.run(), timeout=1)

        assert finished == [NetworkDescriptor.BINANCE_SMART_CHAIN]
