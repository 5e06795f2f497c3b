"""Local UDP driver for Marstek energy storage devices."""

from .client_protocol import Scheduler, StatePublisher
from .config import CONFIG_SCHEMA, MarstekConfig
from .device_info import DeviceInfo, async_probe_device
from .exceptions import DecodeError, MarstekError, TransportError
from .handler import MarstekDeviceHandler
from .health import HealthTracker
from .models import CommandResult, DeviceStatus, OnOff, Quantity
from .scheduler import AsyncioScheduler
from .transport import async_send_request
from .validators import ValidationError

__all__ = [
    "CONFIG_SCHEMA",
    "AsyncioScheduler",
    "CommandResult",
    "DecodeError",
    "DeviceInfo",
    "DeviceStatus",
    "HealthTracker",
    "MarstekConfig",
    "MarstekDeviceHandler",
    "MarstekError",
    "OnOff",
    "Quantity",
    "Scheduler",
    "StatePublisher",
    "TransportError",
    "ValidationError",
    "async_probe_device",
    "async_send_request",
]
