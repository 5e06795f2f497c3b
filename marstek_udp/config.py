"""Configuration schemas for the marstek_udp driver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import voluptuous as vol

from .const import (
    DEFAULT_FAILURE_THRESHOLD,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_UDP_PORT,
    MIN_REFRESH_INTERVAL,
    SELECTABLE_MODES,
)
from .models import OnOff, Quantity
from .validators import (
    MAX_PASSIVE_DURATION,
    MAX_POWER_VALUE,
    ValidationError,
    normalize_time_value,
    weekdays_to_bitmask,
)

CONF_HOST = "host"
CONF_PORT = "port"
CONF_LOCAL_PORT = "local_port"
CONF_REFRESH_INTERVAL = "refresh_interval"
CONF_FAILURE_THRESHOLD = "failure_threshold"

PORT_SCHEMA = vol.All(vol.Coerce(int), vol.Range(min=1, max=65535))

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_HOST): vol.All(str, vol.Strip, vol.Length(min=1)),
        vol.Optional(CONF_PORT, default=DEFAULT_UDP_PORT): PORT_SCHEMA,
        vol.Optional(CONF_LOCAL_PORT, default=0): vol.All(
            vol.Coerce(int), vol.Range(min=0, max=65535)
        ),
        # Values below the floor are raised to it rather than rejected
        vol.Optional(CONF_REFRESH_INTERVAL, default=DEFAULT_REFRESH_INTERVAL): vol.All(
            vol.Coerce(int), vol.Clamp(min=MIN_REFRESH_INTERVAL)
        ),
        vol.Optional(
            CONF_FAILURE_THRESHOLD, default=DEFAULT_FAILURE_THRESHOLD
        ): vol.All(vol.Coerce(int), vol.Range(min=1, max=10)),
    }
)


def _plain_value(value: Any) -> Any:
    """Unwrap a Quantity so "1500 W" and 1500 are treated alike."""
    if isinstance(value, Quantity):
        return value.value
    if isinstance(value, str):
        return value.strip()
    return value


def _time_value(value: Any) -> str:
    try:
        return normalize_time_value(value)
    except ValidationError as err:
        raise vol.Invalid(err.message) from err


def _weekdays_value(value: Any) -> int:
    try:
        return weekdays_to_bitmask(value)
    except ValidationError as err:
        raise vol.Invalid(err.message) from err


def _switch_value(value: Any) -> bool:
    if isinstance(value, OnOff):
        return value is OnOff.ON
    return vol.Boolean()(value)


# Command values arrive as strings, numbers or quantities from the host.
# The range check runs on the float so inf and nan never reach int().
POWER_VALUE = vol.All(
    _plain_value,
    vol.Coerce(float),
    vol.Range(min=-MAX_POWER_VALUE, max=MAX_POWER_VALUE),
    vol.Coerce(int),
)
COUNTDOWN_VALUE = vol.All(
    _plain_value,
    vol.Coerce(float),
    vol.Range(min=0, max=MAX_PASSIVE_DURATION),
    vol.Coerce(int),
)
TIME_VALUE = vol.All(_plain_value, _time_value)
WEEKDAYS_VALUE = vol.All(_plain_value, _weekdays_value)
SWITCH_VALUE = vol.All(_plain_value, _switch_value)
MODE_VALUE = vol.All(vol.Coerce(str), vol.Strip, vol.In(SELECTABLE_MODES))


@dataclass(frozen=True)
class MarstekConfig:
    """Validated driver configuration."""

    host: str
    port: int = DEFAULT_UDP_PORT
    local_port: int = 0
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL
    failure_threshold: int = DEFAULT_FAILURE_THRESHOLD

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MarstekConfig:
        """Validate a raw mapping and build a config.

        Raises:
            vol.Invalid: If the mapping does not match CONFIG_SCHEMA
        """
        return cls(**CONFIG_SCHEMA(dict(data)))
