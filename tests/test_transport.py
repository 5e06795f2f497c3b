"""Tests for the UDP request/response transaction."""

from __future__ import annotations

import asyncio
import json
import socket
from unittest.mock import AsyncMock, patch

import pytest

from marstek_udp.command_builder import discover
from marstek_udp.exceptions import TransportError
from marstek_udp.transport import async_send_request

from tests.conftest import MockMarstekDevice


class TestSendRequest:
    """Tests for async_send_request."""

    async def test_returns_reply_bytes(self, mock_device: MockMarstekDevice) -> None:
        """Test the reply datagram is returned unchanged."""
        reply = await async_send_request(
            "127.0.0.1", mock_device.port, discover(), timeout_ms=2000
        )

        assert reply is not None
        envelope = json.loads(reply)
        assert envelope["result"]["device"] == "VenusE"
        assert mock_device.methods == ["Marstek.GetDevice"]

    async def test_sends_payload_verbatim(self, mock_device: MockMarstekDevice) -> None:
        """Test the device receives exactly the encoded request."""
        await async_send_request(
            "127.0.0.1", mock_device.port, discover(), timeout_ms=2000
        )

        assert mock_device.requests == [
            {"id": 0, "method": "Marstek.GetDevice", "params": {}}
        ]

    async def test_timeout_returns_none(self, mock_device: MockMarstekDevice) -> None:
        """Test a silent device yields None instead of an exception."""
        mock_device.replies["Marstek.GetDevice"] = None

        reply = await async_send_request(
            "127.0.0.1", mock_device.port, discover(), timeout_ms=50
        )

        assert reply is None
        assert mock_device.methods == ["Marstek.GetDevice"]

    async def test_zero_timeout_uses_minimum(self, mock_device: MockMarstekDevice) -> None:
        """Test a non-positive timeout is raised to 1 ms instead of blocking."""
        mock_device.replies["Marstek.GetDevice"] = None

        reply = await asyncio.wait_for(
            async_send_request("127.0.0.1", mock_device.port, discover(), timeout_ms=0),
            timeout=1.0,
        )

        assert reply is None

    async def test_consecutive_requests(
        self, mock_device: MockMarstekDevice
    ) -> None:
        """Test back-to-back transactions each get their own reply."""
        replies = [
            await async_send_request(
                "127.0.0.1", mock_device.port, discover(), timeout_ms=2000
            )
            for _ in range(2)
        ]

        assert all(reply is not None for reply in replies)
        assert mock_device.methods == ["Marstek.GetDevice", "Marstek.GetDevice"]

    async def test_resolve_failure_raises(self) -> None:
        """Test an unresolvable host raises TransportError."""
        loop = asyncio.get_running_loop()
        with (
            patch.object(
                loop,
                "getaddrinfo",
                AsyncMock(side_effect=socket.gaierror(-2, "Name or service not known")),
            ),
            pytest.raises(TransportError, match="Cannot resolve"),
        ):
            await async_send_request("no-such-host", 30000, discover(), timeout_ms=100)

    async def test_send_failure_raises(self, mock_device: MockMarstekDevice) -> None:
        """Test a socket error while sending raises TransportError."""
        loop = asyncio.get_running_loop()
        with (
            patch.object(
                loop, "sock_sendto", AsyncMock(side_effect=OSError("Network unreachable"))
            ),
            pytest.raises(TransportError, match="Cannot send"),
        ):
            await async_send_request(
                "127.0.0.1", mock_device.port, discover(), timeout_ms=100
            )

    async def test_socket_closed_after_timeout(
        self, mock_device: MockMarstekDevice
    ) -> None:
        """Test the socket is released when no reply arrives."""
        mock_device.replies["Marstek.GetDevice"] = None
        created: list[socket.socket] = []
        real_socket = socket.socket

        def _tracking_socket(*args, **kwargs) -> socket.socket:
            sock = real_socket(*args, **kwargs)
            created.append(sock)
            return sock

        with patch("marstek_udp.transport.socket.socket", side_effect=_tracking_socket):
            await async_send_request(
                "127.0.0.1", mock_device.port, discover(), timeout_ms=20
            )

        assert len(created) == 1
        assert created[0].fileno() == -1
