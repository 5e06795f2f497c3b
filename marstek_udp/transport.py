"""UDP request/response transaction for Marstek devices.

Each transaction opens its own socket, sends a single datagram and waits for
a single reply. Callers needing several requests issue several transactions.
"""

from __future__ import annotations

import asyncio
import logging
import socket

from .const import RECV_BUFFER_SIZE
from .exceptions import TransportError

_LOGGER = logging.getLogger(__name__)


async def _resolve(host: str, port: int) -> tuple[str, int]:
    """Resolve host to an IPv4 socket address."""
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(
            host, port, family=socket.AF_INET, type=socket.SOCK_DGRAM
        )
    except socket.gaierror as err:
        raise TransportError(f"Cannot resolve {host}: {err}") from err
    if not infos:
        raise TransportError(f"Cannot resolve {host}: no addresses")
    address = infos[0][4]
    return address[0], address[1]


async def async_send_request(
    host: str,
    port: int,
    payload: bytes,
    *,
    local_port: int = 0,
    timeout_ms: int,
) -> bytes | None:
    """Send one datagram and wait for one reply.

    Args:
        host: Device host name or IP address
        port: Device UDP port
        payload: Request bytes
        local_port: Local port to bind (0 = ephemeral)
        timeout_ms: Receive timeout in milliseconds (at least 1)

    Returns:
        Reply bytes, or None if the device did not answer in time

    Raises:
        TransportError: If the socket cannot be bound, the host cannot be
            resolved or the datagram cannot be sent
    """
    loop = asyncio.get_running_loop()
    target = await _resolve(host, port)
    timeout = max(1, timeout_ms) / 1000

    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    except OSError as err:
        raise TransportError(f"Cannot create UDP socket: {err}") from err

    with sock:
        try:
            sock.setblocking(False)
            sock.bind(("0.0.0.0", local_port))
            await loop.sock_sendto(sock, payload, target)
        except OSError as err:
            raise TransportError(
                f"Cannot send to {host}:{port}: {err}"
            ) from err
        _LOGGER.debug("Send: %s:%d | %s", host, port, payload)

        try:
            data, addr = await asyncio.wait_for(
                loop.sock_recvfrom(sock, RECV_BUFFER_SIZE), timeout=timeout
            )
        except TimeoutError:
            # TimeoutError is an OSError subclass, keep this branch first
            _LOGGER.debug("No reply from %s:%d within %.3fs", host, port, timeout)
            return None
        except OSError as err:
            raise TransportError(
                f"Error receiving from {host}:{port}: {err}"
            ) from err

    _LOGGER.debug("Recv: %s:%d | %s", addr[0], addr[1], data)
    return data
