"""Tests for the command line interface."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from marstek_udp.__main__ import PrintingPublisher, build_parser, main
from marstek_udp.device_info import DeviceInfo
from marstek_udp.exceptions import TransportError
from marstek_udp.models import CommandResult, DeviceStatus, Quantity


class TestParser:
    """Tests for build_parser."""

    def test_probe_defaults(self) -> None:
        """Test probe uses the default port and timeout."""
        args = build_parser().parse_args(["probe", "192.168.1.50"])

        assert args.host == "192.168.1.50"
        assert args.port == 30000
        assert args.timeout == 5000

    def test_set_mode_choices(self) -> None:
        """Test only selectable modes are accepted."""
        args = build_parser().parse_args(["set-mode", "h", "UPS", "--port", "30001"])
        assert args.mode == "UPS"
        assert args.port == 30001

        with pytest.raises(SystemExit):
            build_parser().parse_args(["set-mode", "h", "Passive"])

    def test_command_required(self) -> None:
        """Test a subcommand must be given."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    """Tests for main."""

    def test_probe(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test probe prints the device identity."""
        info = DeviceInfo(device_type="VenusE", firmware="155", ble_mac="aabbccddeeff")
        with patch(
            "marstek_udp.__main__.async_probe_device", AsyncMock(return_value=info)
        ):
            assert main(["probe", "192.168.1.50"]) == 0

        out = capsys.readouterr().out
        assert '"ble_mac": "aabbccddeeff"' in out
        assert "Model: Venus E" in out

    def test_probe_no_reply(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test a silent device gives exit code 1."""
        with patch(
            "marstek_udp.__main__.async_probe_device", AsyncMock(return_value=None)
        ):
            assert main(["probe", "192.168.1.50"]) == 1

        assert "No valid response" in capsys.readouterr().out

    def test_transport_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test driver errors are reported without a traceback."""
        with patch(
            "marstek_udp.__main__.async_probe_device",
            AsyncMock(side_effect=TransportError("Cannot resolve nowhere")),
        ):
            assert main(["probe", "nowhere"]) == 2

        assert "Cannot resolve nowhere" in capsys.readouterr().err

    def test_set_mode(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test set-mode reports the device answer."""
        with patch(
            "marstek_udp.sequencer.CommandSequencer.async_select_mode",
            AsyncMock(return_value=CommandResult(1, 1)),
        ) as mock_select:
            assert main(["set-mode", "192.168.1.50", "AI"]) == 0

        mock_select.assert_awaited_once_with("AI")
        assert "AI: accepted" in capsys.readouterr().out

    def test_poll_failure(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test a failed poll gives exit code 1."""
        with patch(
            "marstek_udp.poller.StatusPoller.async_poll", AsyncMock(return_value=False)
        ):
            assert main(["poll", "192.168.1.50"]) == 1

        assert "Poll failed" in capsys.readouterr().out


class TestPrintingPublisher:
    """Tests for PrintingPublisher."""

    def test_dump(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test values are printed sorted with units."""
        publisher = PrintingPublisher()
        publisher.publish("pvPower", Quantity(320.0, "W"))
        publisher.publish("batterySoc", Quantity(87.5, "%"))
        publisher.publish("wifiSsid", "marstek")

        publisher.dump()

        lines = capsys.readouterr().out.splitlines()
        assert lines[0].split() == ["batterySoc", "87.5", "%"]
        assert lines[1].split() == ["pvPower", "320", "W"]
        assert lines[2].split() == ["wifiSsid", "marstek"]

    def test_status_printed(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test status changes are printed with their detail."""
        publisher = PrintingPublisher()
        publisher.update_status(DeviceStatus.OFFLINE, "no reply")

        assert "Status: OFFLINE (no reply)" in capsys.readouterr().out
