"""Device identity helpers built on the Marstek.GetDevice reply."""

from __future__ import annotations

from dataclasses import asdict, dataclass
import logging
import re
from typing import Any

from .command_builder import discover
from .const import DEFAULT_UDP_PORT, INITIAL_PROBE_TIMEOUT_MS
from .data_parser import decode_result
from .exceptions import DecodeError
from .transport import async_send_request

_LOGGER = logging.getLogger(__name__)

_IDENTITY_KEYS = ("device", "ip", "ble_mac", "wifi_mac")


@dataclass(frozen=True)
class DeviceInfo:
    """Identity reported by a device."""

    device_type: str
    firmware: str
    ble_mac: str = ""
    wifi_mac: str = ""
    wifi_name: str = ""
    ip: str = ""

    @property
    def mac(self) -> str:
        return self.wifi_mac or self.ble_mac

    @property
    def model(self) -> str:
        return format_device_type(self.device_type)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def is_device_result(result: dict[str, Any]) -> bool:
    """Return True if result carries at least one device identifier."""
    return any(key in result for key in _IDENTITY_KEYS)


def parse_device_info(result: dict[str, Any]) -> DeviceInfo | None:
    """Build a DeviceInfo from a GetDevice result, or None if it has no identity."""
    if not is_device_result(result):
        return None
    return DeviceInfo(
        device_type=str(result.get("device") or "Unknown"),
        firmware=str(result.get("ver", 0)),
        ble_mac=str(result.get("ble_mac") or ""),
        wifi_mac=str(result.get("wifi_mac") or ""),
        wifi_name=str(result.get("wifi_name") or ""),
        ip=str(result.get("ip") or ""),
    )


def format_device_type(device_type: str | None) -> str:
    """Format device type into a short, user-friendly name.

    Examples:
        VenusA 3.0 -> Venus A (3.0)
        VenusE -> Venus E
        Venus v3 -> Venus (3)
    """
    if not device_type:
        return "Device"

    raw = str(device_type).strip()
    if not raw:
        return "Device"

    base = raw
    version: str | None = None
    match = re.match(r"^(?P<base>.+?)\s+(?P<ver>[vV]?\d+(?:\.\d+)*)$", raw)
    if match:
        base = match.group("base")
        version = match.group("ver")

    base = re.sub(r"^(Venus)([A-Za-z])\b", r"\1 \2", base)
    base = " ".join(base.split()) or "Device"

    if version:
        cleaned_version = version.lstrip("vV")
        if cleaned_version:
            return f"{base} ({cleaned_version})"

    return base


async def async_probe_device(
    host: str,
    port: int = DEFAULT_UDP_PORT,
    *,
    timeout_ms: int = INITIAL_PROBE_TIMEOUT_MS,
    local_port: int = 0,
) -> DeviceInfo | None:
    """Ask a single device for its identity.

    Returns None if the device does not answer or the reply carries no
    identity.

    Raises:
        TransportError: If the request cannot be sent
    """
    reply = await async_send_request(
        host, port, discover(), local_port=local_port, timeout_ms=timeout_ms
    )
    if reply is None:
        _LOGGER.debug("No GetDevice reply from %s:%d", host, port)
        return None
    try:
        result = decode_result(reply)
    except DecodeError as err:
        _LOGGER.debug("Unusable GetDevice reply from %s:%d: %s", host, port, err)
        return None
    return parse_device_info(result)
