"""Command builder utilities for marstek_udp.

All commands are validated before being built to protect devices from
malformed requests. See validators.py for validation rules.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .const import (
    API_MODE_AI,
    API_MODE_AUTO,
    API_MODE_MANUAL,
    API_MODE_PASSIVE,
    CMD_DISCOVER,
    CMD_ES_SET_MODE,
    MODE_UPS,
    UPS_POWER,
    UPS_TIME_NUM,
    WEEKDAYS_ALL,
)
from .validators import ValidationError, validate_command

_LOGGER = logging.getLogger(__name__)

# Every transaction uses its own socket, so replies never need correlating
REQUEST_ID = 0


def build_command(
    method: str, params: dict[str, Any] | None = None, *, validate: bool = True
) -> bytes:
    """Construct a JSON command payload.

    Args:
        method: API method name (e.g., "ES.GetStatus")
        params: Optional parameters dictionary
        validate: Whether to validate the command (default True)

    Returns:
        UTF-8 encoded JSON command

    Raises:
        ValidationError: If command validation fails and validate=True
    """
    command = {
        "id": REQUEST_ID,
        "method": method,
        "params": params or {},
    }

    if validate:
        try:
            validate_command(command)
        except ValidationError as err:
            _LOGGER.error("Command validation failed: %s", err.message)
            raise

    return json.dumps(command, separators=(",", ":")).encode("utf-8")


def discover() -> bytes:
    """Create a device identification (reachability probe) command."""
    return build_command(CMD_DISCOVER)


def get_status_query(method: str, device_id: int = 0) -> bytes:
    """Create a read-only status query for one of the status methods."""
    return build_command(method, {"id": device_id})


def build_manual_mode_config(
    *,
    time_num: int,
    start_time: str,
    end_time: str,
    week_set: int,
    power: int,
) -> dict[str, Any]:
    """Build the manual mode configuration for one schedule slot."""
    return {
        "mode": API_MODE_MANUAL,
        "manual_cfg": {
            "time_num": time_num,
            "start_time": start_time,
            "end_time": end_time,
            "week_set": week_set,
            "power": power,
            "enable": 1,
        },
    }


def build_passive_mode_config(power: int, cd_time: int) -> dict[str, Any]:
    """Build the passive mode configuration."""
    return {
        "mode": API_MODE_PASSIVE,
        "passive_cfg": {
            "power": power,
            "cd_time": cd_time,
        },
    }


def build_mode_config(mode: str) -> dict[str, Any]:
    """Build the configuration payload for a selectable mode.

    "UPS" is not a device mode: it is a Manual slot covering the whole week
    that charges at a fixed rate.

    Raises:
        ValueError: If the mode cannot be selected directly
    """
    if mode == API_MODE_AUTO:
        return {"mode": API_MODE_AUTO, "auto_cfg": {"enable": 1}}

    if mode == API_MODE_AI:
        return {"mode": API_MODE_AI, "ai_cfg": {"enable": 1}}

    if mode == MODE_UPS:
        return build_manual_mode_config(
            time_num=UPS_TIME_NUM,
            start_time="00:00",
            end_time="23:59",
            week_set=WEEKDAYS_ALL,
            power=UPS_POWER,
        )

    raise ValueError(f"Unknown mode: {mode}")


def set_es_mode(config: dict[str, Any], device_id: int = 0) -> bytes:
    """Create an ES.SetMode command for a mode configuration."""
    return build_command(CMD_ES_SET_MODE, {"id": device_id, "config": config})


def set_es_mode_select(mode: str) -> bytes:
    """Create an ES.SetMode command for Auto, AI or UPS."""
    return set_es_mode(build_mode_config(mode))


def set_es_mode_passive(power: int, cd_time: int) -> bytes:
    """Create an ES.SetMode command for passive mode."""
    return set_es_mode(build_passive_mode_config(power, cd_time))


def set_es_mode_manual_period(
    *,
    time_num: int,
    start_time: str,
    end_time: str,
    week_set: int,
    power: int,
) -> bytes:
    """Create an ES.SetMode command configuring one manual schedule slot."""
    return set_es_mode(
        build_manual_mode_config(
            time_num=time_num,
            start_time=start_time,
            end_time=end_time,
            week_set=week_set,
            power=power,
        )
    )
