"""Data parsing utilities for Marstek replies.

Replies are JSON objects shaped like ``{"id": 0, "result": {...}}``. Fields
missing from ``result`` (or set to null) are not reported, which is different
from a reported zero: absent fields must never overwrite a published value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
import logging
from typing import Any

from .const import (
    CHANNEL_BATTERY_CAPACITY,
    CHANNEL_BATTERY_POWER,
    CHANNEL_BATTERY_RATED_CAPACITY,
    CHANNEL_BATTERY_SOC,
    CHANNEL_BATTERY_TEMPERATURE,
    CHANNEL_CHARGING_FLAG,
    CHANNEL_CT_STATE,
    CHANNEL_DISCHARGING_FLAG,
    CHANNEL_IP_ADDRESS,
    CHANNEL_OFFGRID_POWER,
    CHANNEL_ONGRID_POWER,
    CHANNEL_OPERATING_MODE,
    CHANNEL_PHASE_A_POWER,
    CHANNEL_PHASE_B_POWER,
    CHANNEL_PHASE_C_POWER,
    CHANNEL_PV_CURRENT,
    CHANNEL_PV_POWER,
    CHANNEL_PV_VOLTAGE,
    CHANNEL_TOTAL_GRID_INPUT_ENERGY,
    CHANNEL_TOTAL_GRID_OUTPUT_ENERGY,
    CHANNEL_TOTAL_LOAD_ENERGY,
    CHANNEL_TOTAL_METER_POWER,
    CHANNEL_TOTAL_PV_ENERGY,
    CHANNEL_WIFI_RSSI,
    CHANNEL_WIFI_SSID,
    CMD_BATTERY_STATUS,
    CMD_EM_STATUS,
    CMD_ES_MODE,
    CMD_ES_STATUS,
    CMD_PV_GET_STATUS,
    CMD_WIFI_STATUS,
    UNIT_AMPERE,
    UNIT_CELSIUS,
    UNIT_PERCENT,
    UNIT_VOLT,
    UNIT_WATT,
    UNIT_WATT_HOUR,
)
from .exceptions import DecodeError
from .models import OnOff, Quantity, StateValue

_LOGGER = logging.getLogger(__name__)


class FieldKind(Enum):
    """How a result field is turned into a published value."""

    QUANTITY = "quantity"
    NUMBER = "number"
    SWITCH = "switch"
    CT_STATE = "ct_state"  # on only when the device reports exactly 1
    TEXT = "text"


@dataclass(frozen=True)
class FieldSpec:
    """Maps one result field to a channel."""

    key: str
    channel: str
    kind: FieldKind
    unit: str | None = None


def _quantity(key: str, channel: str, unit: str) -> FieldSpec:
    return FieldSpec(key, channel, FieldKind.QUANTITY, unit)


STATUS_FIELDS: dict[str, tuple[FieldSpec, ...]] = {
    CMD_BATTERY_STATUS: (
        _quantity("soc", CHANNEL_BATTERY_SOC, UNIT_PERCENT),
        _quantity("bat_temp", CHANNEL_BATTERY_TEMPERATURE, UNIT_CELSIUS),
        _quantity("bat_capacity", CHANNEL_BATTERY_CAPACITY, UNIT_WATT_HOUR),
        _quantity("rated_capacity", CHANNEL_BATTERY_RATED_CAPACITY, UNIT_WATT_HOUR),
        FieldSpec("charg_flag", CHANNEL_CHARGING_FLAG, FieldKind.SWITCH),
        FieldSpec("dischrg_flag", CHANNEL_DISCHARGING_FLAG, FieldKind.SWITCH),
    ),
    CMD_PV_GET_STATUS: (
        _quantity("pv_power", CHANNEL_PV_POWER, UNIT_WATT),
        _quantity("pv_voltage", CHANNEL_PV_VOLTAGE, UNIT_VOLT),
        _quantity("pv_current", CHANNEL_PV_CURRENT, UNIT_AMPERE),
    ),
    CMD_ES_STATUS: (
        _quantity("ongrid_power", CHANNEL_ONGRID_POWER, UNIT_WATT),
        _quantity("offgrid_power", CHANNEL_OFFGRID_POWER, UNIT_WATT),
        _quantity("bat_power", CHANNEL_BATTERY_POWER, UNIT_WATT),
        _quantity("total_pv_energy", CHANNEL_TOTAL_PV_ENERGY, UNIT_WATT_HOUR),
        _quantity(
            "total_grid_output_energy", CHANNEL_TOTAL_GRID_OUTPUT_ENERGY, UNIT_WATT_HOUR
        ),
        _quantity(
            "total_grid_input_energy", CHANNEL_TOTAL_GRID_INPUT_ENERGY, UNIT_WATT_HOUR
        ),
        _quantity("total_load_energy", CHANNEL_TOTAL_LOAD_ENERGY, UNIT_WATT_HOUR),
    ),
    CMD_ES_MODE: (
        FieldSpec("mode", CHANNEL_OPERATING_MODE, FieldKind.TEXT),
    ),
    CMD_EM_STATUS: (
        FieldSpec("ct_state", CHANNEL_CT_STATE, FieldKind.CT_STATE),
        _quantity("a_power", CHANNEL_PHASE_A_POWER, UNIT_WATT),
        _quantity("b_power", CHANNEL_PHASE_B_POWER, UNIT_WATT),
        _quantity("c_power", CHANNEL_PHASE_C_POWER, UNIT_WATT),
        _quantity("total_power", CHANNEL_TOTAL_METER_POWER, UNIT_WATT),
    ),
    CMD_WIFI_STATUS: (
        FieldSpec("rssi", CHANNEL_WIFI_RSSI, FieldKind.NUMBER),
        FieldSpec("ssid", CHANNEL_WIFI_SSID, FieldKind.TEXT),
        FieldSpec("sta_ip", CHANNEL_IP_ADDRESS, FieldKind.TEXT),
    ),
}


def decode_result(payload: bytes | str) -> dict[str, Any]:
    """Parse a reply envelope and return its result object.

    Raises:
        DecodeError: If the payload is not JSON, carries an error member, or
            has no result object
    """
    raw = payload if isinstance(payload, bytes) else payload.encode("utf-8")
    try:
        envelope = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as err:
        raise DecodeError(f"Invalid JSON reply: {err}", raw) from err

    if not isinstance(envelope, dict):
        raise DecodeError(
            f"Reply must be a JSON object (got {type(envelope).__name__})", raw
        )

    error = envelope.get("error")
    if error is not None:
        raise DecodeError(f"Device returned an error: {error}", raw)

    result = envelope.get("result")
    if not isinstance(result, dict):
        raise DecodeError("Reply has no result object", raw)

    return result


def _to_float(value: Any) -> float | None:
    """Read any JSON number representation as a float."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _to_switch(value: Any) -> OnOff | None:
    if isinstance(value, bool):
        return OnOff.from_bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "on"):
            return OnOff.ON
        if lowered in ("false", "off"):
            return OnOff.OFF
    number = _to_float(value)
    if number is None:
        return None
    return OnOff.from_bool(number != 0)


def _convert(spec: FieldSpec, value: Any) -> StateValue | None:
    if spec.kind is FieldKind.QUANTITY:
        number = _to_float(value)
        if number is None or spec.unit is None:
            return None
        return Quantity(number, spec.unit)
    if spec.kind is FieldKind.NUMBER:
        return _to_float(value)
    if spec.kind is FieldKind.SWITCH:
        return _to_switch(value)
    if spec.kind is FieldKind.CT_STATE:
        number = _to_float(value)
        if number is None:
            return None
        return OnOff.from_bool(number == 1)
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def extract_updates(method: str, result: dict[str, Any]) -> dict[str, StateValue]:
    """Convert a status result into channel updates.

    Only fields present in the result (and not null) produce an update. A
    field with a value of the wrong shape is skipped without affecting the
    other fields of the same reply.
    """
    updates: dict[str, StateValue] = {}
    for spec in STATUS_FIELDS.get(method, ()):
        if spec.key not in result:
            continue
        raw_value = result[spec.key]
        if raw_value is None:
            continue
        value = _convert(spec, raw_value)
        if value is None:
            _LOGGER.debug(
                "%s: ignoring %s with unexpected value %r", method, spec.key, raw_value
            )
            continue
        updates[spec.channel] = value
    return updates


def parse_set_result(payload: bytes | str) -> bool:
    """Return True if an ES.SetMode reply reports the command as accepted.

    A reply without ``set_result`` counts as a rejection.

    Raises:
        DecodeError: If the reply cannot be decoded
    """
    result = decode_result(payload)
    set_result = result.get("set_result")
    if isinstance(set_result, bool):
        return set_result
    # Some firmware reports 1/0 instead of true/false
    return isinstance(set_result, int) and set_result == 1
