"""Reachability tracking for a Marstek device."""

from __future__ import annotations

from collections.abc import Callable
import logging

from .const import DEFAULT_FAILURE_THRESHOLD
from .models import DeviceStatus

_LOGGER = logging.getLogger(__name__)

StatusListener = Callable[[DeviceStatus, DeviceStatus, int], None]


class HealthTracker:
    """Track consecutive failures and derive the device status.

    A single missed probe does not mark the device offline: the status only
    becomes OFFLINE once ``failure_threshold`` consecutive failures have been
    recorded. Any success restores ONLINE and clears the counter.
    """

    def __init__(
        self,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        on_change: StatusListener | None = None,
    ) -> None:
        self.failure_threshold = max(1, failure_threshold)
        self.status = DeviceStatus.UNKNOWN
        self.consecutive_failures = 0
        self._on_change = on_change

    @property
    def is_online(self) -> bool:
        return self.status is DeviceStatus.ONLINE

    def record(self, reachable: bool) -> DeviceStatus:
        """Record the outcome of one reachability check and return the status."""
        previous = self.status

        if reachable:
            self.consecutive_failures = 0
            self.status = DeviceStatus.ONLINE
        else:
            self.consecutive_failures += 1
            if (
                self.consecutive_failures >= self.failure_threshold
                and self.status is not DeviceStatus.OFFLINE
            ):
                self.status = DeviceStatus.OFFLINE
            elif self.status is not DeviceStatus.OFFLINE:
                _LOGGER.debug(
                    "Reachability check failed (attempt #%d of %d), keeping %s",
                    self.consecutive_failures,
                    self.failure_threshold,
                    self.status,
                )

        if self.status is not previous:
            _LOGGER.info(
                "Device status changed: %s -> %s (failures: %d)",
                previous,
                self.status,
                self.consecutive_failures,
            )
            if self._on_change is not None:
                self._on_change(previous, self.status, self.consecutive_failures)

        return self.status
