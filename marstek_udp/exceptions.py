"""Exceptions raised by the marstek_udp driver."""

from __future__ import annotations


class MarstekError(Exception):
    """Base class for driver errors."""


class TransportError(MarstekError):
    """Raised when a UDP transaction cannot be carried out.

    A device that simply does not answer is not an error; the transport
    returns None in that case.
    """


class DecodeError(MarstekError):
    """Raised when a reply payload is malformed or carries no result."""

    def __init__(self, message: str, payload: bytes | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload
