"""Fixtures for marstek_udp tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Callable
import json
from typing import Any

import pytest

from marstek_udp.config import MarstekConfig
from marstek_udp.models import DeviceStatus, StateValue

DEVICE_RESULT: dict[str, Any] = {
    "device": "VenusE",
    "ver": 155,
    "ble_mac": "aabbccddeeff",
    "wifi_mac": "112233445566",
    "wifi_name": "marstek",
    "ip": "127.0.0.1",
}

STATUS_RESULTS: dict[str, dict[str, Any]] = {
    "Bat.GetStatus": {
        "id": 0,
        "soc": 87.5,
        "bat_temp": 25.0,
        "bat_capacity": 4480,
        "rated_capacity": 5120,
        "charg_flag": 1,
        "dischrg_flag": 0,
    },
    "PV.GetStatus": {"id": 0, "pv_power": 320, "pv_voltage": 38.4, "pv_current": 8.3},
    "ES.GetStatus": {
        "id": 0,
        "bat_power": -400,
        "ongrid_power": 150,
        "offgrid_power": 0,
        "total_pv_energy": 12000,
        "total_grid_output_energy": 5300,
        "total_grid_input_energy": 6100,
        "total_load_energy": 900,
    },
    "ES.GetMode": {"id": 0, "mode": "Auto"},
    "EM.GetStatus": {
        "id": 0,
        "ct_state": 1,
        "a_power": 120,
        "b_power": 80,
        "c_power": 40,
        "total_power": 240,
    },
    "Wifi.GetStatus": {
        "id": 0,
        "rssi": -55,
        "ssid": "marstek",
        "sta_ip": "127.0.0.1",
    },
}

# Reply for a method: result dict, raw bytes, None (stay silent) or a
# callable receiving the request params and returning one of those
Reply = dict[str, Any] | bytes | None | Callable[[dict[str, Any]], Any]


class MockMarstekDevice(asyncio.DatagramProtocol):
    """In-process device answering requests on a loopback UDP port."""

    def __init__(self, replies: dict[str, Reply] | None = None) -> None:
        self.replies: dict[str, Reply] = {
            "Marstek.GetDevice": DEVICE_RESULT,
            **STATUS_RESULTS,
            "ES.SetMode": {"id": 0, "set_result": True},
        }
        if replies:
            self.replies.update(replies)
        self.requests: list[dict[str, Any]] = []
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        request = json.loads(data)
        self.requests.append(request)
        reply = self.replies.get(request.get("method"))
        if callable(reply):
            reply = reply(request.get("params", {}))
        if reply is None or self.transport is None:
            return
        if isinstance(reply, bytes):
            payload = reply
        else:
            payload = json.dumps(
                {"id": request.get("id", 0), "src": "VenusE-mock", "result": reply}
            ).encode()
        self.transport.sendto(payload, addr)

    @property
    def port(self) -> int:
        assert self.transport is not None
        return self.transport.get_extra_info("sockname")[1]

    @property
    def methods(self) -> list[str]:
        return [request["method"] for request in self.requests]

    def set_mode_configs(self) -> list[dict[str, Any]]:
        return [
            request["params"]["config"]
            for request in self.requests
            if request["method"] == "ES.SetMode"
        ]


class RecordingPublisher:
    """StatePublisher that records every call."""

    def __init__(self) -> None:
        self.published: list[tuple[str, StateValue]] = []
        self.statuses: list[tuple[DeviceStatus, str | None]] = []

    def publish(self, channel_id: str, value: StateValue) -> None:
        self.published.append((channel_id, value))

    def update_status(self, status: DeviceStatus, detail: str | None = None) -> None:
        self.statuses.append((status, detail))

    @property
    def values(self) -> dict[str, StateValue]:
        return dict(self.published)

    def channels(self) -> list[str]:
        return [channel_id for channel_id, _ in self.published]


class ScheduledJob:
    """Handle for a job registered with ManualScheduler."""

    def __init__(self, kind: str, delay: float, job: Callable[[], Any]) -> None:
        self.kind = kind
        self.delay = delay
        self.job = job
        self.cancelled = False

    def cancel(self) -> bool:
        self.cancelled = True
        return True


class ManualScheduler:
    """Scheduler that only records jobs; tests decide when they run."""

    def __init__(self) -> None:
        self.jobs: list[ScheduledJob] = []

    def _add(self, kind: str, delay: float, job: Callable[[], Any]) -> ScheduledJob:
        scheduled = ScheduledJob(kind, delay, job)
        self.jobs.append(scheduled)
        return scheduled

    def run_once(self, job: Callable[[], Any]) -> ScheduledJob:
        return self._add("once", 0.0, job)

    def run_after(self, delay: float, job: Callable[[], Any]) -> ScheduledJob:
        return self._add("after", delay, job)

    def run_every(self, interval: float, job: Callable[[], Any]) -> ScheduledJob:
        return self._add("every", interval, job)

    def of_kind(self, kind: str) -> list[ScheduledJob]:
        return [job for job in self.jobs if job.kind == kind]

    async def run_pending(self) -> int:
        """Run and drop every one-shot job that was not cancelled."""
        ran = 0
        while True:
            pending = [
                job for job in self.jobs if job.kind != "every" and not job.cancelled
            ]
            if not pending:
                return ran
            for job in pending:
                self.jobs.remove(job)
                await job.job()
                ran += 1


@pytest.fixture
async def mock_device() -> AsyncGenerator[MockMarstekDevice, None]:
    """Start a mock device on an ephemeral loopback port."""
    loop = asyncio.get_running_loop()
    device = MockMarstekDevice()
    transport, _ = await loop.create_datagram_endpoint(
        lambda: device, local_addr=("127.0.0.1", 0)
    )
    yield device
    transport.close()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def device_config(mock_device: MockMarstekDevice) -> MarstekConfig:
    return MarstekConfig(host="127.0.0.1", port=mock_device.port)
