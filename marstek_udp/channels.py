"""Parsing of writable channel ids.

Channel ids are parsed once into tagged values so command routing works on
types instead of string prefixes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .const import (
    CHANNEL_GROUP_PERIOD_PREFIX,
    CHANNEL_GROUP_SEPARATOR,
    CHANNEL_MANUAL_ACTIVATE,
    CHANNEL_MODE_SELECT,
    CHANNEL_PASSIVE_ACTIVATE,
    CHANNEL_PASSIVE_COUNTDOWN,
    CHANNEL_PASSIVE_POWER,
    CHANNEL_PERIOD_ENABLED,
    CHANNEL_PERIOD_END,
    CHANNEL_PERIOD_POWER,
    CHANNEL_PERIOD_START,
    CHANNEL_PERIOD_WEEKDAYS,
    PERIOD_COUNT,
)

# Command value meaning "re-read state from the device"
REFRESH = "REFRESH"


class ControlKind(StrEnum):
    MODE_SELECT = CHANNEL_MODE_SELECT
    PASSIVE_POWER = CHANNEL_PASSIVE_POWER
    PASSIVE_COUNTDOWN = CHANNEL_PASSIVE_COUNTDOWN
    PASSIVE_ACTIVATE = CHANNEL_PASSIVE_ACTIVATE
    MANUAL_ACTIVATE = CHANNEL_MANUAL_ACTIVATE


class PeriodField(StrEnum):
    ENABLED = CHANNEL_PERIOD_ENABLED
    START = CHANNEL_PERIOD_START
    END = CHANNEL_PERIOD_END
    WEEKDAYS = CHANNEL_PERIOD_WEEKDAYS
    POWER = CHANNEL_PERIOD_POWER


@dataclass(frozen=True)
class ControlChannel:
    """A device-wide control channel such as modeSelect."""

    kind: ControlKind

    @property
    def channel_id(self) -> str:
        return str(self.kind)


@dataclass(frozen=True)
class PeriodChannel:
    """One field of a manual-mode slot, e.g. timePeriod2#start."""

    index: int
    field: PeriodField

    @property
    def channel_id(self) -> str:
        return period_channel_id(self.index, self.field)


Channel = ControlChannel | PeriodChannel


def period_channel_id(index: int, field: PeriodField | str) -> str:
    return f"{CHANNEL_GROUP_PERIOD_PREFIX}{index}{CHANNEL_GROUP_SEPARATOR}{field}"


def parse_channel(channel_id: str) -> Channel | None:
    """Parse a writable channel id, or return None if it is not writable."""
    try:
        return ControlChannel(ControlKind(channel_id))
    except ValueError:
        pass

    group, separator, field_name = channel_id.partition(CHANNEL_GROUP_SEPARATOR)
    if not separator or not group.startswith(CHANNEL_GROUP_PERIOD_PREFIX):
        return None

    index_text = group[len(CHANNEL_GROUP_PERIOD_PREFIX) :]
    if not index_text.isdigit():
        return None
    index = int(index_text)
    if index >= PERIOD_COUNT:
        return None

    try:
        return PeriodChannel(index, PeriodField(field_name))
    except ValueError:
        return None
