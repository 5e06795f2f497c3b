"""Constants for the marstek_udp driver."""

from __future__ import annotations

from typing import Final

DEFAULT_UDP_PORT: Final = 30000
DEFAULT_REFRESH_INTERVAL: Final = 60  # seconds
MIN_REFRESH_INTERVAL: Final = 1

RECV_BUFFER_SIZE: Final = 4096

# API methods
CMD_DISCOVER: Final = "Marstek.GetDevice"
CMD_BATTERY_STATUS: Final = "Bat.GetStatus"
CMD_PV_GET_STATUS: Final = "PV.GetStatus"
CMD_ES_STATUS: Final = "ES.GetStatus"
CMD_ES_MODE: Final = "ES.GetMode"
CMD_EM_STATUS: Final = "EM.GetStatus"
CMD_WIFI_STATUS: Final = "Wifi.GetStatus"
CMD_ES_SET_MODE: Final = "ES.SetMode"

# Status queries in the order they run during a poll cycle
STATUS_QUERIES: Final[tuple[str, ...]] = (
    CMD_BATTERY_STATUS,
    CMD_PV_GET_STATUS,
    CMD_ES_STATUS,
    CMD_ES_MODE,
    CMD_EM_STATUS,
    CMD_WIFI_STATUS,
)

# Timeouts (milliseconds)
INITIAL_PROBE_TIMEOUT_MS: Final = 5000  # device may still be booting
PROBE_TIMEOUT_MS: Final = 2000
QUERY_TIMEOUT_MS: Final = 2000
COMMAND_TIMEOUT_MS: Final = 2000
MANUAL_PERIOD_TIMEOUT_MS: Final = 3000

# Command sequencing (seconds)
REPOLL_DELAY: Final = 1.0
MANUAL_PERIOD_DELAY: Final = 0.3

DEFAULT_FAILURE_THRESHOLD: Final = 3

# API mode values (as expected by Marstek device)
API_MODE_AUTO: Final = "Auto"
API_MODE_AI: Final = "AI"
API_MODE_MANUAL: Final = "Manual"
API_MODE_PASSIVE: Final = "Passive"

# Client-side alias built from a full-week Manual slot, not a device mode
MODE_UPS: Final = "UPS"
UPS_TIME_NUM: Final = 1
UPS_POWER: Final = -2500

SELECTABLE_MODES: Final[tuple[str, ...]] = (API_MODE_AUTO, API_MODE_AI, MODE_UPS)

# Manual mode schedule
PERIOD_COUNT: Final = 4  # device exposes time_num 0-3
DEFAULT_PERIOD_TIME: Final = "00:00"
DEFAULT_PASSIVE_POWER: Final = 0
DEFAULT_PASSIVE_COUNTDOWN: Final = 300

# Weekday bitmask mapping for manual schedules
# mon=1, tue=2, wed=4, thu=8, fri=16, sat=32, sun=64
WEEKDAY_MAP: Final[dict[str, int]] = {
    "mon": 1,
    "tue": 2,
    "wed": 4,
    "thu": 8,
    "fri": 16,
    "sat": 32,
    "sun": 64,
}
WEEKDAYS_ALL: Final = 127
WEEKDAYS_WEEKEND: Final = 96

# Units attached to published quantities
UNIT_PERCENT: Final = "%"
UNIT_CELSIUS: Final = "°C"
UNIT_WATT: Final = "W"
UNIT_WATT_HOUR: Final = "Wh"
UNIT_VOLT: Final = "V"
UNIT_AMPERE: Final = "A"

# Battery channels
CHANNEL_BATTERY_SOC: Final = "batterySoc"
CHANNEL_BATTERY_TEMPERATURE: Final = "batteryTemperature"
CHANNEL_BATTERY_CAPACITY: Final = "batteryCapacity"
CHANNEL_BATTERY_RATED_CAPACITY: Final = "batteryRatedCapacity"
CHANNEL_CHARGING_FLAG: Final = "chargingFlag"
CHANNEL_DISCHARGING_FLAG: Final = "dischargingFlag"

# PV channels
CHANNEL_PV_POWER: Final = "pvPower"
CHANNEL_PV_VOLTAGE: Final = "pvVoltage"
CHANNEL_PV_CURRENT: Final = "pvCurrent"

# Energy system channels
CHANNEL_ONGRID_POWER: Final = "ongridPower"
CHANNEL_OFFGRID_POWER: Final = "offgridPower"
CHANNEL_BATTERY_POWER: Final = "batteryPower"
CHANNEL_TOTAL_PV_ENERGY: Final = "totalPvEnergy"
CHANNEL_TOTAL_GRID_OUTPUT_ENERGY: Final = "totalGridOutputEnergy"
CHANNEL_TOTAL_GRID_INPUT_ENERGY: Final = "totalGridInputEnergy"
CHANNEL_TOTAL_LOAD_ENERGY: Final = "totalLoadEnergy"
CHANNEL_OPERATING_MODE: Final = "operatingMode"

# Writable control channels
CHANNEL_MODE_SELECT: Final = "modeSelect"
CHANNEL_PASSIVE_POWER: Final = "passivePower"
CHANNEL_PASSIVE_COUNTDOWN: Final = "passiveCountdown"
CHANNEL_PASSIVE_ACTIVATE: Final = "passiveActivate"
CHANNEL_MANUAL_ACTIVATE: Final = "manualActivate"

# Manual mode period channels, e.g. "timePeriod2#start"
CHANNEL_GROUP_PERIOD_PREFIX: Final = "timePeriod"
CHANNEL_GROUP_SEPARATOR: Final = "#"
CHANNEL_PERIOD_ENABLED: Final = "enabled"
CHANNEL_PERIOD_START: Final = "start"
CHANNEL_PERIOD_END: Final = "end"
CHANNEL_PERIOD_WEEKDAYS: Final = "weekdays"
CHANNEL_PERIOD_POWER: Final = "power"

# Energy meter channels
CHANNEL_CT_STATE: Final = "ctState"
CHANNEL_PHASE_A_POWER: Final = "phaseAPower"
CHANNEL_PHASE_B_POWER: Final = "phaseBPower"
CHANNEL_PHASE_C_POWER: Final = "phaseCPower"
CHANNEL_TOTAL_METER_POWER: Final = "totalMeterPower"

# WiFi channels
CHANNEL_WIFI_RSSI: Final = "wifiRssi"
CHANNEL_WIFI_SSID: Final = "wifiSsid"
CHANNEL_IP_ADDRESS: Final = "ipAddress"

CHANNEL_LAST_UPDATE: Final = "lastUpdate"
