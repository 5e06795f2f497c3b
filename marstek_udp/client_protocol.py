"""Interfaces the host application provides to the driver.

The driver never talks to a host framework directly: it publishes values
through a StatePublisher and runs its timed work through a Scheduler. Any
object with matching methods can be used.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from .models import DeviceStatus, StateValue

Job = Callable[[], Awaitable[None]]


@runtime_checkable
class StatePublisher(Protocol):
    """Receives channel values and device status from the driver."""

    def publish(self, channel_id: str, value: StateValue) -> None:  # pragma: no cover
        """Publish a new value for channel_id."""
        ...

    def update_status(
        self, status: DeviceStatus, detail: str | None = None
    ) -> None:  # pragma: no cover
        """Report a device status change."""
        ...


@runtime_checkable
class CancelHandle(Protocol):
    """Handle returned for scheduled work."""

    def cancel(self) -> bool:  # pragma: no cover
        """Cancel the scheduled work."""
        ...


@runtime_checkable
class Scheduler(Protocol):
    """Runs coroutine jobs now, later or periodically."""

    def run_once(self, job: Job) -> CancelHandle:  # pragma: no cover
        """Run job as soon as possible."""
        ...

    def run_after(self, delay: float, job: Job) -> CancelHandle:  # pragma: no cover
        """Run job once after delay seconds."""
        ...

    def run_every(self, interval: float, job: Job) -> CancelHandle:  # pragma: no cover
        """Run job now, then again interval seconds after each run completes."""
        ...
