"""Device handler: lifecycle and command routing for one Marstek device."""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from .channels import (
    REFRESH,
    ControlChannel,
    ControlKind,
    PeriodChannel,
    PeriodField,
    parse_channel,
)
from .client_protocol import CancelHandle, Scheduler, StatePublisher
from .config import (
    COUNTDOWN_VALUE,
    MODE_VALUE,
    POWER_VALUE,
    SWITCH_VALUE,
    TIME_VALUE,
    WEEKDAYS_VALUE,
    MarstekConfig,
)
from .const import INITIAL_PROBE_TIMEOUT_MS
from .device_info import DeviceInfo
from .exceptions import TransportError
from .health import HealthTracker
from .models import CommandResult, ControlSettings, DeviceStatus, Endpoint
from .poller import GatedPublisher, StatusPoller
from .scheduler import AsyncioScheduler
from .sequencer import CommandSequencer

_LOGGER = logging.getLogger(__name__)

_PERIOD_VALIDATORS = {
    PeriodField.ENABLED: SWITCH_VALUE,
    PeriodField.START: TIME_VALUE,
    PeriodField.END: TIME_VALUE,
    PeriodField.WEEKDAYS: WEEKDAYS_VALUE,
    PeriodField.POWER: POWER_VALUE,
}

_PERIOD_ATTRIBUTES = {
    PeriodField.ENABLED: "enabled",
    PeriodField.START: "start",
    PeriodField.END: "end",
    PeriodField.WEEKDAYS: "week_set",
    PeriodField.POWER: "power",
}


class MarstekDeviceHandler:
    """Drive one device: probe, poll periodically and execute commands.

    The host supplies a StatePublisher and, optionally, a Scheduler. Without
    a scheduler the handler runs its jobs on the current event loop and
    stops them on dispose.
    """

    def __init__(
        self,
        config: MarstekConfig,
        publisher: StatePublisher,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.config = config
        self.endpoint = Endpoint(config.host, config.port)
        self.settings = ControlSettings()

        self._owns_scheduler = scheduler is None
        self.scheduler: Scheduler = scheduler or AsyncioScheduler(
            f"marstek-{config.host}"
        )
        self.tracker = HealthTracker(config.failure_threshold, self._on_status_change)
        self.publisher = GatedPublisher(publisher, self.tracker)
        self.poller = StatusPoller(
            self.endpoint, self.tracker, self.publisher, local_port=config.local_port
        )
        self.sequencer = CommandSequencer(
            self.endpoint,
            self.publisher,
            self.scheduler,
            self.poller.async_poll,
            local_port=config.local_port,
        )
        self._poll_handle: CancelHandle | None = None

    @property
    def status(self) -> DeviceStatus:
        return self.tracker.status

    @property
    def device_info(self) -> DeviceInfo | None:
        return self.poller.device_info

    @property
    def disposed(self) -> bool:
        return self.publisher.disposed

    def _on_status_change(
        self, previous: DeviceStatus, status: DeviceStatus, failures: int
    ) -> None:
        detail = None
        if status is DeviceStatus.OFFLINE:
            detail = (
                f"Communication error: no response from {self.endpoint} "
                f"after {failures} attempts"
            )
        self.publisher.update_status(status, detail)

    async def async_initialize(self) -> None:
        """Probe the device and start periodic polling.

        Polling starts whether or not the first probe succeeds, so a device
        that is still booting comes online on a later cycle.
        """
        self.publisher.update_status(DeviceStatus.UNKNOWN)
        try:
            reachable = await self.poller.async_probe(INITIAL_PROBE_TIMEOUT_MS)
        except TransportError as err:
            _LOGGER.warning("Initial probe of %s failed: %s", self.endpoint, err)
            self.tracker.record(False)
            reachable = False

        if reachable:
            _LOGGER.info("Marstek device at %s is reachable", self.endpoint)
        else:
            _LOGGER.warning(
                "Marstek device at %s did not answer, will keep polling every %ds",
                self.endpoint,
                self.config.refresh_interval,
            )

        if self.disposed:
            return
        self._poll_handle = self.scheduler.run_every(
            self.config.refresh_interval, self.poller.async_poll
        )

    async def async_dispose(self) -> None:
        """Stop polling and drop pending work; in-flight requests finish."""
        self.publisher.disposed = True
        if self._poll_handle is not None:
            self._poll_handle.cancel()
            self._poll_handle = None
        self.sequencer.cancel_pending()
        if self._owns_scheduler and isinstance(self.scheduler, AsyncioScheduler):
            await self.scheduler.shutdown()
        _LOGGER.debug("Handler for %s disposed", self.endpoint)

    def request_refresh(self) -> CancelHandle | None:
        """Run a poll cycle as soon as possible."""
        if self.disposed:
            return None
        return self.scheduler.run_once(self.poller.async_poll)

    def handle_command(self, channel_id: str, value: Any) -> CancelHandle | None:
        """Schedule a command without waiting for it to complete."""
        if self.disposed:
            return None

        async def _run() -> None:
            await self.async_handle_command(channel_id, value)

        return self.scheduler.run_once(_run)

    async def async_handle_command(
        self, channel_id: str, value: Any
    ) -> CommandResult | None:
        """Apply a command and wait for it.

        Returns the command result for activations and mode changes, None for
        setting updates, refreshes and ignored input.
        """
        if self.disposed:
            return None

        if isinstance(value, str) and value == REFRESH:
            await self.poller.async_poll()
            return None

        channel = parse_channel(channel_id)
        if channel is None:
            _LOGGER.debug("Ignoring command for read-only channel %s", channel_id)
            return None

        try:
            if isinstance(channel, PeriodChannel):
                self._apply_period_value(channel, value)
                return None
            return await self._async_apply_control(channel, value)
        except vol.Invalid as err:
            _LOGGER.error("Invalid value %r for %s: %s", value, channel_id, err)
            return None

    def _apply_period_value(self, channel: PeriodChannel, value: Any) -> None:
        converted = _PERIOD_VALIDATORS[channel.field](value)
        period = self.settings.periods[channel.index]
        setattr(period, _PERIOD_ATTRIBUTES[channel.field], converted)
        _LOGGER.debug("Time period %d %s set to %s", channel.index, channel.field, converted)

    async def _async_apply_control(
        self, channel: ControlChannel, value: Any
    ) -> CommandResult | None:
        kind = channel.kind
        if kind is ControlKind.MODE_SELECT:
            return await self.sequencer.async_select_mode(MODE_VALUE(value))

        if kind is ControlKind.PASSIVE_POWER:
            self.settings.passive.power = POWER_VALUE(value)
            return None

        if kind is ControlKind.PASSIVE_COUNTDOWN:
            self.settings.passive.countdown = COUNTDOWN_VALUE(value)
            return None

        if not SWITCH_VALUE(value):
            # Activation toggles only act on ON
            return None

        if kind is ControlKind.PASSIVE_ACTIVATE:
            return await self.sequencer.async_activate_passive(self.settings.passive)
        return await self.sequencer.async_activate_manual(self.settings.periods)

    def diagnostics(self) -> dict[str, Any]:
        """Return a snapshot of the handler state for troubleshooting."""
        last_result = self.sequencer.last_result
        return {
            "endpoint": str(self.endpoint),
            "status": str(self.tracker.status),
            "consecutive_failures": self.tracker.consecutive_failures,
            "failure_threshold": self.tracker.failure_threshold,
            "refresh_interval": self.config.refresh_interval,
            "last_update": (
                self.poller.last_update.isoformat() if self.poller.last_update else None
            ),
            "last_error": self.poller.last_error,
            "last_command": (
                {
                    "succeeded": last_result.succeeded,
                    "attempted": last_result.attempted,
                    "ok": last_result.ok,
                }
                if last_result
                else None
            ),
            "settings": self.settings.as_dict(),
            "device_info": self.device_info.as_dict() if self.device_info else None,
            "disposed": self.disposed,
        }
