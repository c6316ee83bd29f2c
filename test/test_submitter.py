#!/usr/bin/env python3
"""Unit tests for sign-prophecy submission."""

import base64
from unittest.mock import AsyncMock, MagicMock

import pytest

from witness_relayer.errors import SubmissionError
from witness_relayer.models import Attestation, NetworkDescriptor
from witness_relayer.submitter import MSG_SIGN_PROPHECY_TYPE, Submitter, build_sign_prophecy_msg

VALIDATOR_ADDRESS = "sifvaloper1l7hypmqk2yc334vc6vmdwzp5sdefygj2ad93p5"
SIGNER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


@pytest.fixture
def broadcaster():
    """Create a mock broadcaster."""
    broadcaster = MagicMock()
    broadcaster.broadcast = AsyncMock(return_value="ABCDEF")
    return broadcaster


@pytest.fixture
def submitter(broadcaster):
    return Submitter(broadcaster, "validator")


def test_build_sign_prophecy_msg():
    """Test the MsgSignProphecy layout."""
    msg = build_sign_prophecy_msg(
        VALIDATOR_ADDRESS, NetworkDescriptor.ETHEREUM, b"abc123", SIGNER_ADDRESS, "0xsig"
    )

    assert msg == {
        "type": MSG_SIGN_PROPHECY_TYPE,
        "value": {
            "cosmos_sender": VALIDATOR_ADDRESS,
            "network_descriptor": 1,
            "prophecy_id": base64.b64encode(b"abc123").decode("ascii"),
            "ethereum_address": SIGNER_ADDRESS,
            "signature": "0xsig",
        },
    }


class TestSubmitter:
    """Tests for the Submitter class."""

    @pytest.mark.asyncio
    async def test_submit_success(self, submitter, broadcaster):
        """Test that an accepted transaction reports success."""
        result = await submitter.submit(
            VALIDATOR_ADDRESS, NetworkDescriptor.ETHEREUM, b"abc123", SIGNER_ADDRESS, "0xsig"
        )

        assert result is True
        broadcaster.broadcast.assert_awaited_once()
        msgs, from_name = broadcaster.broadcast.call_args[0]
        assert from_name == "validator"
        assert len(msgs) == 1
        assert msgs[0]["value"]["signature"] == "0xsig"

    @pytest.mark.asyncio
    async def test_submit_failure(self, submitter, broadcaster):
        """Test that a rejected transaction is reported, not raised."""
        broadcaster.broadcast.side_effect = SubmissionError("rejected")

        result = await submitter.submit(
            VALIDATOR_ADDRESS, NetworkDescriptor.ETHEREUM, b"abc123", SIGNER_ADDRESS, "0xsig"
        )

        assert result is False
        broadcaster.broadcast.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_submit_attestation(self, submitter, broadcaster):
        """Test submitting a stored attestation."""
        attestation = Attestation(
            validator_address=VALIDATOR_ADDRESS,
            network_descriptor=NetworkDescriptor.HARDHAT,
            prophecy_id=b"abc123",
            signer_address=SIGNER_ADDRESS,
            signature="0xsig",
        )

        assert await submitter.submit_attestation(attestation) is True
        msg = broadcaster.broadcast.call_args[0][0][0]
        assert msg["value"]["network_descriptor"] == 9999
