"""Command line access to a Marstek device.

Usage:
    python -m marstek_udp probe 192.168.1.50
    python -m marstek_udp poll 192.168.1.50 --port 30000
    python -m marstek_udp set-mode 192.168.1.50 Auto
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import voluptuous as vol

from .config import MarstekConfig
from .const import DEFAULT_UDP_PORT, INITIAL_PROBE_TIMEOUT_MS, SELECTABLE_MODES
from .device_info import async_probe_device
from .exceptions import MarstekError
from .handler import MarstekDeviceHandler
from .models import DeviceStatus, Quantity, StateValue


class PrintingPublisher:
    """StatePublisher that collects values and prints them."""

    def __init__(self) -> None:
        self.values: dict[str, StateValue] = {}

    def publish(self, channel_id: str, value: StateValue) -> None:
        self.values[channel_id] = value

    def update_status(self, status: DeviceStatus, detail: str | None = None) -> None:
        suffix = f" ({detail})" if detail else ""
        print(f"Status: {status}{suffix}")

    def dump(self) -> None:
        for channel_id in sorted(self.values):
            print(f"  {channel_id:<24} {_format_value(self.values[channel_id])}")


def _format_value(value: StateValue) -> str:
    if isinstance(value, Quantity):
        return f"{value.value:g} {value.unit}"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


async def _async_probe(args: argparse.Namespace) -> int:
    print(f"Querying {args.host}:{args.port}...")
    info = await async_probe_device(args.host, args.port, timeout_ms=args.timeout)
    if info is None:
        print("No valid response received")
        return 1
    print(json.dumps(info.as_dict(), indent=2))
    print(f"Model: {info.model}")
    return 0


async def _async_poll(args: argparse.Namespace) -> int:
    config = _build_config(args)
    publisher = PrintingPublisher()
    handler = MarstekDeviceHandler(config, publisher)
    try:
        # A single cycle; no recurring poll
        if not await handler.poller.async_poll():
            print("Poll failed")
            return 1
        publisher.dump()
        return 0
    finally:
        await handler.async_dispose()


async def _async_set_mode(args: argparse.Namespace) -> int:
    config = _build_config(args)
    publisher = PrintingPublisher()
    handler = MarstekDeviceHandler(config, publisher)
    try:
        result = await handler.sequencer.async_select_mode(args.mode)
        print(f"{args.mode}: {'accepted' if result.ok else 'rejected'}")
        return 0 if result.ok else 1
    finally:
        await handler.async_dispose()


def _build_config(args: argparse.Namespace) -> MarstekConfig:
    return MarstekConfig.from_dict({"host": args.host, "port": args.port})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="marstek-udp", description="Talk to a Marstek device over UDP"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def _add_target(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("host", help="Device IP address or host name")
        sub.add_argument(
            "--port",
            type=int,
            default=DEFAULT_UDP_PORT,
            help=f"UDP port (default: {DEFAULT_UDP_PORT})",
        )

    probe = subparsers.add_parser("probe", help="Show device identity")
    _add_target(probe)
    probe.add_argument(
        "--timeout",
        type=int,
        default=INITIAL_PROBE_TIMEOUT_MS,
        help="Timeout in milliseconds",
    )
    probe.set_defaults(func=_async_probe)

    poll = subparsers.add_parser("poll", help="Run one poll cycle and print values")
    _add_target(poll)
    poll.set_defaults(func=_async_poll)

    set_mode = subparsers.add_parser("set-mode", help="Select the operating mode")
    _add_target(set_mode)
    set_mode.add_argument("mode", choices=SELECTABLE_MODES)
    set_mode.set_defaults(func=_async_set_mode)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(args.func(args))
    except vol.Invalid as err:
        print(f"Invalid configuration: {err}", file=sys.stderr)
    except MarstekError as err:
        print(f"Error: {err}", file=sys.stderr)
    except KeyboardInterrupt:
        pass
    return 2


if __name__ == "__main__":
    sys.exit(main())
