"""Data model for the marstek_udp driver."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Union

from .const import (
    DEFAULT_PASSIVE_COUNTDOWN,
    DEFAULT_PASSIVE_POWER,
    DEFAULT_PERIOD_TIME,
    PERIOD_COUNT,
)


class DeviceStatus(StrEnum):
    """Reachability of the device as seen by the driver."""

    UNKNOWN = "UNKNOWN"
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"


class OnOff(StrEnum):
    """Two-valued switch state."""

    ON = "ON"
    OFF = "OFF"

    @classmethod
    def from_bool(cls, value: bool) -> OnOff:
        return cls.ON if value else cls.OFF


@dataclass(frozen=True)
class Quantity:
    """A numeric reading with its unit."""

    value: float
    unit: str


StateValue = Union[Quantity, OnOff, float, str, datetime]


@dataclass(frozen=True)
class Endpoint:
    """UDP address of a device."""

    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class TimePeriod:
    """One manual-mode schedule slot."""

    enabled: bool = False
    start: str = DEFAULT_PERIOD_TIME
    end: str = DEFAULT_PERIOD_TIME
    week_set: int = 0
    power: int = 0


def _default_periods() -> tuple[TimePeriod, ...]:
    return tuple(TimePeriod() for _ in range(PERIOD_COUNT))


@dataclass
class PassiveSetting:
    """Power target and countdown pushed when passive mode is activated."""

    power: int = DEFAULT_PASSIVE_POWER
    countdown: int = DEFAULT_PASSIVE_COUNTDOWN


@dataclass
class ControlSettings:
    """Writable settings collected from control channels.

    The device has exactly four manual slots, so the periods tuple never
    grows or shrinks; slots are mutated in place.
    """

    passive: PassiveSetting = field(default_factory=PassiveSetting)
    periods: tuple[TimePeriod, ...] = field(default_factory=_default_periods)

    def as_dict(self) -> dict[str, Any]:
        return {
            "passive": asdict(self.passive),
            "periods": [asdict(period) for period in self.periods],
        }


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a control command."""

    succeeded: int
    attempted: int

    @property
    def ok(self) -> bool:
        return self.attempted > 0 and self.succeeded == self.attempted
