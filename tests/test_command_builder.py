"""Tests for command_builder module."""

from __future__ import annotations

import json

import pytest

from marstek_udp.command_builder import (
    build_command,
    build_mode_config,
    discover,
    get_status_query,
    set_es_mode_manual_period,
    set_es_mode_passive,
    set_es_mode_select,
)
from marstek_udp.validators import ValidationError


def _decode(payload: bytes) -> dict:
    return json.loads(payload.decode("utf-8"))


class TestBuildCommand:
    """Tests for build_command."""

    def test_envelope_shape(self) -> None:
        """Test the request envelope carries id 0, method and params."""
        assert _decode(build_command("ES.GetMode", {"id": 0})) == {
            "id": 0,
            "method": "ES.GetMode",
            "params": {"id": 0},
        }

    def test_compact_encoding(self) -> None:
        """Test the payload has no whitespace between tokens."""
        assert build_command("Bat.GetStatus", {"id": 0}) == (
            b'{"id":0,"method":"Bat.GetStatus","params":{"id":0}}'
        )

    def test_missing_params_become_empty_object(self) -> None:
        """Test params default to an empty object."""
        assert _decode(build_command("Marstek.GetDevice"))["params"] == {}

    def test_unknown_method_rejected(self) -> None:
        """Test unknown methods are rejected before encoding."""
        with pytest.raises(ValidationError) as exc_info:
            build_command("ES.Reboot")
        assert exc_info.value.field == "method"

    def test_validation_can_be_skipped(self) -> None:
        """Test validate=False encodes without checking."""
        assert _decode(build_command("ES.Reboot", validate=False))["method"] == "ES.Reboot"

    def test_discover(self) -> None:
        """Test the probe command."""
        assert _decode(discover()) == {
            "id": 0,
            "method": "Marstek.GetDevice",
            "params": {},
        }

    @pytest.mark.parametrize(
        "method",
        [
            "Bat.GetStatus",
            "PV.GetStatus",
            "ES.GetStatus",
            "ES.GetMode",
            "EM.GetStatus",
            "Wifi.GetStatus",
        ],
    )
    def test_status_queries(self, method: str) -> None:
        """Test every status query is sent with params {"id": 0}."""
        assert _decode(get_status_query(method)) == {
            "id": 0,
            "method": method,
            "params": {"id": 0},
        }


class TestModeSelect:
    """Tests for mode select encodings."""

    def test_auto(self) -> None:
        """Test Auto mode config."""
        assert build_mode_config("Auto") == {"mode": "Auto", "auto_cfg": {"enable": 1}}

    def test_ai(self) -> None:
        """Test AI mode config."""
        assert build_mode_config("AI") == {"mode": "AI", "ai_cfg": {"enable": 1}}

    def test_ups_is_full_week_manual_slot(self) -> None:
        """Test UPS is encoded as a fixed Manual slot."""
        command = _decode(set_es_mode_select("UPS"))

        assert command["method"] == "ES.SetMode"
        assert command["params"] == {
            "id": 0,
            "config": {
                "mode": "Manual",
                "manual_cfg": {
                    "time_num": 1,
                    "start_time": "00:00",
                    "end_time": "23:59",
                    "week_set": 127,
                    "power": -2500,
                    "enable": 1,
                },
            },
        }

    @pytest.mark.parametrize("mode", ["Manual", "Passive", "auto", ""])
    def test_non_selectable_modes(self, mode: str) -> None:
        """Test modes that need extra settings cannot be selected directly."""
        with pytest.raises(ValueError, match="Unknown mode"):
            build_mode_config(mode)


class TestPassiveAndManual:
    """Tests for passive and manual SetMode commands."""

    def test_passive(self) -> None:
        """Test passive mode carries power and countdown."""
        command = _decode(set_es_mode_passive(-1200, 600))

        assert command["params"]["config"] == {
            "mode": "Passive",
            "passive_cfg": {"power": -1200, "cd_time": 600},
        }

    def test_passive_power_out_of_range(self) -> None:
        """Test passive power beyond the device limit is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            set_es_mode_passive(6000, 300)
        assert exc_info.value.field == "power"

    def test_manual_period(self) -> None:
        """Test a manual slot command."""
        command = _decode(
            set_es_mode_manual_period(
                time_num=0,
                start_time="08:00",
                end_time="20:00",
                week_set=127,
                power=-1000,
            )
        )

        assert command["params"]["config"] == {
            "mode": "Manual",
            "manual_cfg": {
                "time_num": 0,
                "start_time": "08:00",
                "end_time": "20:00",
                "week_set": 127,
                "power": -1000,
                "enable": 1,
            },
        }

    def test_manual_period_slot_out_of_range(self) -> None:
        """Test only slots 0-3 exist."""
        with pytest.raises(ValidationError) as exc_info:
            set_es_mode_manual_period(
                time_num=4,
                start_time="08:00",
                end_time="20:00",
                week_set=127,
                power=0,
            )
        assert exc_info.value.field == "time_num"
