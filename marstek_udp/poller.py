"""Periodic status polling for a Marstek device."""

from __future__ import annotations

from datetime import datetime
import logging

from .client_protocol import StatePublisher
from .command_builder import discover, get_status_query
from .const import (
    CHANNEL_LAST_UPDATE,
    PROBE_TIMEOUT_MS,
    QUERY_TIMEOUT_MS,
    STATUS_QUERIES,
)
from .data_parser import decode_result, extract_updates
from .device_info import DeviceInfo, parse_device_info
from .exceptions import DecodeError, TransportError
from .health import HealthTracker
from .models import DeviceStatus, Endpoint, StateValue
from .transport import async_send_request

_LOGGER = logging.getLogger(__name__)


class GatedPublisher:
    """Forward values to the host publisher unless the driver is shut down.

    Values are only published while the device is ONLINE.
    """

    def __init__(self, publisher: StatePublisher, tracker: HealthTracker) -> None:
        self._publisher = publisher
        self._tracker = tracker
        self.disposed = False

    def publish(self, channel_id: str, value: StateValue) -> bool:
        if self.disposed or not self._tracker.is_online:
            return False
        self._publisher.publish(channel_id, value)
        return True

    def update_status(self, status: DeviceStatus, detail: str | None = None) -> None:
        if self.disposed:
            return
        self._publisher.update_status(status, detail)


class StatusPoller:
    """Run probe + status query cycles against one device."""

    def __init__(
        self,
        endpoint: Endpoint,
        tracker: HealthTracker,
        publisher: GatedPublisher,
        *,
        local_port: int = 0,
    ) -> None:
        self.endpoint = endpoint
        self.tracker = tracker
        self.publisher = publisher
        self.local_port = local_port
        self.device_info: DeviceInfo | None = None
        self.last_update: datetime | None = None
        self.last_error: str | None = None

    async def _async_send(self, payload: bytes, timeout_ms: int) -> bytes | None:
        return await async_send_request(
            self.endpoint.host,
            self.endpoint.port,
            payload,
            local_port=self.local_port,
            timeout_ms=timeout_ms,
        )

    async def async_probe(self, timeout_ms: int = PROBE_TIMEOUT_MS) -> bool:
        """Check reachability with Marstek.GetDevice and record the outcome.

        Raises:
            TransportError: If the probe cannot be sent
        """
        reply = await self._async_send(discover(), timeout_ms)
        reachable = bool(reply)
        self.tracker.record(reachable)
        if not reachable:
            _LOGGER.debug("No probe reply from %s", self.endpoint)
            return False

        try:
            info = parse_device_info(decode_result(reply))
        except DecodeError as err:
            _LOGGER.debug("Probe reply from %s has no device info: %s", self.endpoint, err)
        else:
            if info is not None:
                self.device_info = info
        return True

    async def _async_query(self, method: str) -> int:
        """Run one status query and publish its fields; return the publish count."""
        reply = await self._async_send(get_status_query(method), QUERY_TIMEOUT_MS)
        if reply is None:
            _LOGGER.debug("%s: no reply from %s", method, self.endpoint)
            return 0

        try:
            result = decode_result(reply)
        except DecodeError as err:
            _LOGGER.warning("%s: invalid reply from %s: %s", method, self.endpoint, err)
            return 0

        published = 0
        for channel_id, value in extract_updates(method, result).items():
            if self.publisher.publish(channel_id, value):
                published += 1
        return published

    async def async_poll(self) -> bool:
        """Run one poll cycle.

        Returns True if the device answered the probe and every query ran.
        Never raises: failures are logged and counted against the device.
        """
        if self.publisher.disposed:
            return False

        try:
            if not await self.async_probe(PROBE_TIMEOUT_MS):
                return False

            for method in STATUS_QUERIES:
                if self.publisher.disposed:
                    return False
                await self._async_query(method)

            self.last_update = datetime.now().astimezone()
            self.last_error = None
            self.publisher.publish(CHANNEL_LAST_UPDATE, self.last_update)
            return True
        except TransportError as err:
            _LOGGER.warning("Polling %s failed: %s", self.endpoint, err)
            self.last_error = str(err)
        except Exception as err:
            _LOGGER.exception("Unexpected error polling %s", self.endpoint)
            self.last_error = repr(err)

        self.tracker.record(False)
        return False
