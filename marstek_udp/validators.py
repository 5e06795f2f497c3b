"""Request validation to protect devices from invalid commands.

Marstek devices are sensitive to malformed requests. Every command is checked
here before it is encoded, and control-channel input (times, weekdays) is
normalized with the same rules.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Any, Final

from .const import (
    API_MODE_AI,
    API_MODE_AUTO,
    API_MODE_MANUAL,
    API_MODE_PASSIVE,
    CMD_BATTERY_STATUS,
    CMD_DISCOVER,
    CMD_EM_STATUS,
    CMD_ES_MODE,
    CMD_ES_SET_MODE,
    CMD_ES_STATUS,
    CMD_PV_GET_STATUS,
    CMD_WIFI_STATUS,
    PERIOD_COUNT,
    WEEKDAY_MAP,
    WEEKDAYS_ALL,
    WEEKDAYS_WEEKEND,
)
from .exceptions import MarstekError

# Validation limits - keep in sync with device capabilities
MAX_POWER_VALUE: Final = 5000  # 5kW max (matches device specs)
MAX_DEVICE_ID: Final = 255
MAX_TIME_SLOTS: Final = PERIOD_COUNT
MAX_WEEK_SET: Final = WEEKDAYS_ALL
MAX_PASSIVE_DURATION: Final = 86400  # 24 hours in seconds


class ValidationError(MarstekError):
    """Raised when a request or control value fails validation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Error description
            field: Optional field name that failed validation
        """
        super().__init__(message)
        self.field = field
        self.message = message


@dataclass(frozen=True)
class MethodSpec:
    """Specification for a valid API method."""

    method: str
    required_params: frozenset[str]
    optional_params: frozenset[str] = frozenset()
    is_write_command: bool = False


_STATUS_PARAMS: Final = frozenset({"id"})

VALID_METHODS: dict[str, MethodSpec] = {
    CMD_DISCOVER: MethodSpec(
        method=CMD_DISCOVER,
        required_params=frozenset(),
        optional_params=frozenset({"ble_mac"}),
    ),
    CMD_BATTERY_STATUS: MethodSpec(
        method=CMD_BATTERY_STATUS,
        required_params=frozenset(),
        optional_params=_STATUS_PARAMS,
    ),
    CMD_PV_GET_STATUS: MethodSpec(
        method=CMD_PV_GET_STATUS,
        required_params=frozenset(),
        optional_params=_STATUS_PARAMS,
    ),
    CMD_ES_STATUS: MethodSpec(
        method=CMD_ES_STATUS,
        required_params=frozenset(),
        optional_params=_STATUS_PARAMS,
    ),
    CMD_ES_MODE: MethodSpec(
        method=CMD_ES_MODE,
        required_params=frozenset(),
        optional_params=_STATUS_PARAMS,
    ),
    CMD_EM_STATUS: MethodSpec(
        method=CMD_EM_STATUS,
        required_params=frozenset(),
        optional_params=_STATUS_PARAMS,
    ),
    CMD_WIFI_STATUS: MethodSpec(
        method=CMD_WIFI_STATUS,
        required_params=frozenset(),
        optional_params=_STATUS_PARAMS,
    ),
    CMD_ES_SET_MODE: MethodSpec(
        method=CMD_ES_SET_MODE,
        required_params=frozenset({"id", "config"}),
        is_write_command=True,
    ),
}

VALID_MODES: Final[frozenset[str]] = frozenset(
    {API_MODE_AUTO, API_MODE_AI, API_MODE_MANUAL, API_MODE_PASSIVE}
)

# Time format pattern HH:MM
TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")

_DAY_ORDER: Final[tuple[str, ...]] = tuple(WEEKDAY_MAP)
_WEEKDAY_ALIASES: Final[dict[str, int]] = {
    "daily": WEEKDAYS_ALL,
    "weekend": WEEKDAYS_WEEKEND,
}
_FULL_DAY_NAMES: Final = frozenset(
    {"monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"}
)


def validate_time_format(time_str: Any, field_name: str = "time") -> None:
    """Validate time string is in HH:MM format.

    Raises:
        ValidationError: If format is invalid
    """
    if not isinstance(time_str, str):
        raise ValidationError(f"{field_name} must be a string", field_name)
    if not TIME_PATTERN.match(time_str):
        raise ValidationError(
            f"{field_name} must be in HH:MM format (got '{time_str}')", field_name
        )


def normalize_time_value(value: Any, field_name: str = "time") -> str:
    """Return a validated time as zero-padded HH:MM."""
    if isinstance(value, str):
        value = value.strip()
    validate_time_format(value, field_name)
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


def weekdays_to_bitmask(value: str) -> int:
    """Convert a weekday description to the device week_set bitmask.

    Accepts "Daily", "Weekend", comma separated three-letter day codes
    ("Mon,Wed,Fri"), day ranges ("Mon-Fri") or a mix of both. Matching is
    case-insensitive; bit 0 is Monday.

    Raises:
        ValidationError: If a token is not a known day or alias
    """
    if not isinstance(value, str):
        raise ValidationError(
            f"weekdays must be a string (got {type(value).__name__})", "weekdays"
        )

    week_set = 0
    for raw_token in value.split(","):
        token = raw_token.strip().lower()
        if not token:
            continue
        if token in _WEEKDAY_ALIASES:
            week_set |= _WEEKDAY_ALIASES[token]
        elif "-" in token:
            week_set |= _day_range_to_bitmask(token)
        elif token[:3] in WEEKDAY_MAP and _is_day_name(token):
            week_set |= WEEKDAY_MAP[token[:3]]
        else:
            raise ValidationError(f"Unknown weekday '{raw_token.strip()}'", "weekdays")
    return week_set


def _is_day_name(token: str) -> bool:
    """Accept three-letter codes and full names such as 'monday'."""
    return len(token) == 3 or token in _FULL_DAY_NAMES


def _day_range_to_bitmask(token: str) -> int:
    start_raw, _, end_raw = token.partition("-")
    start, end = start_raw.strip()[:3], end_raw.strip()[:3]
    if start not in WEEKDAY_MAP or end not in WEEKDAY_MAP:
        raise ValidationError(f"Unknown weekday range '{token}'", "weekdays")
    first, last = _DAY_ORDER.index(start), _DAY_ORDER.index(end)
    if first > last:
        raise ValidationError(
            f"Weekday range must run Monday to Sunday (got '{token}')", "weekdays"
        )
    week_set = 0
    for day in _DAY_ORDER[first : last + 1]:
        week_set |= WEEKDAY_MAP[day]
    return week_set


def validate_device_id(device_id: Any, field_name: str = "id") -> None:
    """Validate device ID is a valid integer.

    Raises:
        ValidationError: If device_id is invalid
    """
    if not isinstance(device_id, int) or isinstance(device_id, bool):
        raise ValidationError(
            f"{field_name} must be an integer (got {type(device_id).__name__})",
            field_name,
        )
    if device_id < 0 or device_id > MAX_DEVICE_ID:
        raise ValidationError(
            f"{field_name} must be between 0 and {MAX_DEVICE_ID} (got {device_id})",
            field_name,
        )


def validate_power_value(power: Any, field_name: str = "power") -> None:
    """Validate power value is within reasonable range.

    Raises:
        ValidationError: If power value is invalid
    """
    if not isinstance(power, int) or isinstance(power, bool):
        raise ValidationError(
            f"{field_name} must be an integer (got {type(power).__name__})",
            field_name,
        )
    if abs(power) > MAX_POWER_VALUE:
        raise ValidationError(
            f"{field_name} must be between -{MAX_POWER_VALUE} and {MAX_POWER_VALUE} (got {power})",
            field_name,
        )


def validate_week_set(week_set: Any, field_name: str = "week_set") -> None:
    """Validate week_set bitmask.

    Raises:
        ValidationError: If week_set is invalid
    """
    if not isinstance(week_set, int) or isinstance(week_set, bool):
        raise ValidationError(
            f"{field_name} must be an integer (got {type(week_set).__name__})",
            field_name,
        )
    if week_set < 0 or week_set > MAX_WEEK_SET:
        raise ValidationError(
            f"{field_name} must be between 0 and {MAX_WEEK_SET} (got {week_set})",
            field_name,
        )


def validate_countdown(cd_time: Any, field_name: str = "cd_time") -> None:
    """Validate passive mode countdown duration in seconds."""
    if not isinstance(cd_time, int) or isinstance(cd_time, bool):
        raise ValidationError(
            f"{field_name} must be an integer (got {type(cd_time).__name__})",
            field_name,
        )
    if cd_time < 0 or cd_time > MAX_PASSIVE_DURATION:
        raise ValidationError(
            f"{field_name} must be between 0 and {MAX_PASSIVE_DURATION} seconds (got {cd_time})",
            field_name,
        )


def validate_manual_config(config: dict[str, Any]) -> None:
    """Validate manual mode configuration.

    Overnight slots (end before start) are allowed; the device handles the
    wrap itself.

    Raises:
        ValidationError: If configuration is invalid
    """
    required_fields = {"time_num", "start_time", "end_time", "week_set", "power", "enable"}

    missing = required_fields - set(config.keys())
    if missing:
        raise ValidationError(
            f"manual_cfg missing required fields: {', '.join(sorted(missing))}",
            "manual_cfg",
        )

    time_num = config.get("time_num")
    if (
        not isinstance(time_num, int)
        or isinstance(time_num, bool)
        or time_num < 0
        or time_num >= MAX_TIME_SLOTS
    ):
        raise ValidationError(
            f"time_num must be between 0 and {MAX_TIME_SLOTS - 1} (got {time_num})",
            "time_num",
        )

    validate_time_format(config["start_time"], "start_time")
    validate_time_format(config["end_time"], "end_time")
    validate_week_set(config["week_set"])
    validate_power_value(config["power"])

    enable = config.get("enable")
    if enable not in (0, 1) or isinstance(enable, bool):
        raise ValidationError(
            f"enable must be 0 or 1 (got {enable})",
            "enable",
        )


def validate_passive_config(config: dict[str, Any]) -> None:
    """Validate passive mode configuration.

    Raises:
        ValidationError: If configuration is invalid
    """
    required_fields = {"power", "cd_time"}

    missing = required_fields - set(config.keys())
    if missing:
        raise ValidationError(
            f"passive_cfg missing required fields: {', '.join(sorted(missing))}",
            "passive_cfg",
        )

    validate_power_value(config["power"])
    validate_countdown(config["cd_time"])


def _require_section(config: dict[str, Any], key: str, mode: str) -> dict[str, Any]:
    section = config.get(key)
    if section is None:
        raise ValidationError(f"{key} is required when mode is '{mode}'", key)
    if not isinstance(section, dict):
        raise ValidationError(
            f"{key} must be a dictionary (got {type(section).__name__})", key
        )
    return section


def validate_es_set_mode_config(config: Any) -> None:
    """Validate ES.SetMode config parameter.

    Raises:
        ValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValidationError(
            f"config must be a dictionary (got {type(config).__name__})",
            "config",
        )

    mode = config.get("mode")
    if mode not in VALID_MODES:
        raise ValidationError(
            f"mode must be one of {sorted(VALID_MODES)} (got '{mode}')",
            "mode",
        )

    if mode == API_MODE_MANUAL:
        validate_manual_config(_require_section(config, "manual_cfg", mode))
    elif mode == API_MODE_PASSIVE:
        validate_passive_config(_require_section(config, "passive_cfg", mode))
    elif mode == API_MODE_AUTO:
        _require_section(config, "auto_cfg", mode)
    elif mode == API_MODE_AI:
        _require_section(config, "ai_cfg", mode)


def validate_method(method: Any) -> MethodSpec:
    """Validate that a method is known and allowed.

    Raises:
        ValidationError: If method is unknown
    """
    if not isinstance(method, str):
        raise ValidationError(
            f"method must be a string (got {type(method).__name__})",
            "method",
        )

    spec = VALID_METHODS.get(method)
    if spec is None:
        raise ValidationError(
            f"Unknown method '{method}'. Valid methods: {', '.join(sorted(VALID_METHODS.keys()))}",
            "method",
        )

    return spec


def validate_params(method: str, params: Any) -> None:
    """Validate parameters for a specific method.

    Raises:
        ValidationError: If parameters are invalid
    """
    spec = validate_method(method)

    if not isinstance(params, dict):
        raise ValidationError(
            f"params must be a dictionary (got {type(params).__name__})",
            "params",
        )

    missing = spec.required_params - set(params.keys())
    if missing:
        raise ValidationError(
            f"Missing required parameters for {method}: {', '.join(sorted(missing))}",
            "params",
        )

    allowed = spec.required_params | spec.optional_params
    unknown = set(params.keys()) - allowed
    if unknown:
        raise ValidationError(
            f"Unknown parameters for {method}: {', '.join(sorted(unknown))}",
            "params",
        )

    if "id" in params:
        validate_device_id(params["id"])

    if method == CMD_ES_SET_MODE:
        validate_es_set_mode_config(params["config"])


def validate_command(command: Any) -> None:
    """Validate a complete command structure.

    Raises:
        ValidationError: If command structure is invalid
    """
    if not isinstance(command, dict):
        raise ValidationError(
            f"command must be a dictionary (got {type(command).__name__})",
            "command",
        )

    if "id" not in command:
        raise ValidationError("command missing required field 'id'", "id")
    if "method" not in command:
        raise ValidationError("command missing required field 'method'", "method")

    request_id = command.get("id")
    if not isinstance(request_id, int) or request_id < 0:
        raise ValidationError(
            f"command id must be a non-negative integer (got {request_id})",
            "id",
        )

    validate_params(command["method"], command.get("params", {}))
