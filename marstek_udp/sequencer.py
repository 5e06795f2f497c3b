"""Execution of ES.SetMode control commands."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
import logging

from .client_protocol import CancelHandle, Job, Scheduler
from .command_builder import (
    set_es_mode_manual_period,
    set_es_mode_passive,
    set_es_mode_select,
)
from .const import (
    CHANNEL_MANUAL_ACTIVATE,
    CHANNEL_PASSIVE_ACTIVATE,
    COMMAND_TIMEOUT_MS,
    MANUAL_PERIOD_DELAY,
    MANUAL_PERIOD_TIMEOUT_MS,
    REPOLL_DELAY,
)
from .data_parser import parse_set_result
from .exceptions import DecodeError, TransportError
from .models import CommandResult, Endpoint, OnOff, PassiveSetting, TimePeriod
from .poller import GatedPublisher
from .transport import async_send_request
from .validators import ValidationError

_LOGGER = logging.getLogger(__name__)


class CommandSequencer:
    """Send control commands and follow them up with a state refresh.

    Commands run one at a time. A command that the device accepts schedules
    a refresh after REPOLL_DELAY; its activation toggle is switched back off
    once that refresh has run. A rejected command resets the toggle at once
    and skips the refresh.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        publisher: GatedPublisher,
        scheduler: Scheduler,
        refresh: Job,
        *,
        local_port: int = 0,
    ) -> None:
        self.endpoint = endpoint
        self.publisher = publisher
        self.scheduler = scheduler
        self.local_port = local_port
        self._refresh = refresh
        self._lock = asyncio.Lock()
        self._pending: set[CancelHandle] = set()
        self.last_result: CommandResult | None = None

    async def _async_send_set_mode(self, payload: bytes, timeout_ms: int) -> bool:
        reply = await async_send_request(
            self.endpoint.host,
            self.endpoint.port,
            payload,
            local_port=self.local_port,
            timeout_ms=timeout_ms,
        )
        if reply is None:
            _LOGGER.warning("No response to ES.SetMode from %s", self.endpoint)
            return False
        return parse_set_result(reply)

    def _reset_toggle(self, toggle: str | None) -> None:
        if toggle is not None:
            self.publisher.publish(toggle, OnOff.OFF)

    def _schedule_refresh(self, toggle: str | None) -> None:
        handle: CancelHandle | None = None

        async def _refresh_then_reset() -> None:
            try:
                await self._refresh()
            finally:
                self._pending.discard(handle)
                self._reset_toggle(toggle)

        handle = self.scheduler.run_after(REPOLL_DELAY, _refresh_then_reset)
        self._pending.add(handle)

    def cancel_pending(self) -> None:
        """Cancel refreshes scheduled by earlier commands."""
        for handle in list(self._pending):
            handle.cancel()
        self._pending.clear()

    def _finish(self, result: CommandResult, toggle: str | None) -> CommandResult:
        self.last_result = result
        if result.ok:
            self._schedule_refresh(toggle)
        else:
            self._reset_toggle(toggle)
        return result

    async def _async_single_shot(
        self, label: str, payload: bytes, toggle: str | None
    ) -> CommandResult:
        async with self._lock:
            if self.publisher.disposed:
                return CommandResult(0, 0)
            try:
                accepted = await self._async_send_set_mode(payload, COMMAND_TIMEOUT_MS)
            except (TransportError, DecodeError) as err:
                _LOGGER.warning("%s on %s failed: %s", label, self.endpoint, err)
                accepted = False
            except Exception:
                _LOGGER.exception("Unexpected error during %s on %s", label, self.endpoint)
                accepted = False

            if accepted:
                _LOGGER.info("%s accepted by %s", label, self.endpoint)
            else:
                _LOGGER.warning("%s rejected by %s", label, self.endpoint)
            return self._finish(CommandResult(int(accepted), 1), toggle)

    async def async_select_mode(self, mode: str) -> CommandResult:
        """Switch the device to Auto, AI or UPS."""
        try:
            payload = set_es_mode_select(mode)
        except (ValueError, ValidationError) as err:
            _LOGGER.error("Cannot select mode %r: %s", mode, err)
            self.last_result = CommandResult(0, 0)
            return self.last_result
        return await self._async_single_shot(f"Mode {mode}", payload, None)

    async def async_activate_passive(self, setting: PassiveSetting) -> CommandResult:
        """Put the device in passive mode with the given power and countdown."""
        try:
            payload = set_es_mode_passive(setting.power, setting.countdown)
        except ValidationError as err:
            _LOGGER.error("Invalid passive setting %s: %s", setting, err.message)
            self._reset_toggle(CHANNEL_PASSIVE_ACTIVATE)
            self.last_result = CommandResult(0, 0)
            return self.last_result
        label = f"Passive mode ({setting.power} W, {setting.countdown} s)"
        return await self._async_single_shot(label, payload, CHANNEL_PASSIVE_ACTIVATE)

    async def async_activate_manual(
        self, periods: Sequence[TimePeriod]
    ) -> CommandResult:
        """Write every enabled slot to the device.

        Slots are sent in index order with a short pause between them. The
        result counts how many of the enabled slots the device accepted.
        """
        toggle = CHANNEL_MANUAL_ACTIVATE
        async with self._lock:
            if self.publisher.disposed:
                return CommandResult(0, 0)

            enabled = [
                (index, period)
                for index, period in enumerate(periods)
                if period.enabled
            ]
            if not enabled:
                _LOGGER.warning("Manual mode not activated: no time period is enabled")
                return self._finish(CommandResult(0, 0), toggle)

            succeeded = 0
            for position, (index, period) in enumerate(enabled):
                if position:
                    await asyncio.sleep(MANUAL_PERIOD_DELAY)
                try:
                    payload = set_es_mode_manual_period(
                        time_num=index,
                        start_time=period.start,
                        end_time=period.end,
                        week_set=period.week_set,
                        power=period.power,
                    )
                    accepted = await self._async_send_set_mode(
                        payload, MANUAL_PERIOD_TIMEOUT_MS
                    )
                except (TransportError, DecodeError, ValidationError) as err:
                    _LOGGER.warning(
                        "Time period %d on %s failed: %s", index, self.endpoint, err
                    )
                    accepted = False
                except Exception:
                    _LOGGER.exception(
                        "Unexpected error writing time period %d on %s",
                        index,
                        self.endpoint,
                    )
                    accepted = False

                if accepted:
                    succeeded += 1
                else:
                    _LOGGER.warning(
                        "Time period %d rejected by %s", index, self.endpoint
                    )

            result = CommandResult(succeeded, len(enabled))
            if result.ok:
                _LOGGER.info(
                    "Manual mode activated on %s (%d time period(s))",
                    self.endpoint,
                    succeeded,
                )
            else:
                _LOGGER.warning(
                    "Manual mode partially applied on %s: %d/%d time periods accepted",
                    self.endpoint,
                    succeeded,
                    len(enabled),
                )
            return self._finish(result, toggle)
