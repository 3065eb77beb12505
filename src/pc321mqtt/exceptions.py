"""Exceptions raised by pc321mqtt.

All library errors inherit from :class:`Pc321Error` so callers can use a
single ``except Pc321Error`` to catch decode, encode and transport failures.
"""

from __future__ import annotations


class Pc321Error(Exception):
    """Base exception for all pc321mqtt errors."""

    pass


class DecodeError(Pc321Error):
    """Inbound payload could not be decoded into a register reading."""

    def __init__(self, message: str, payload: bytes | str = b"") -> None:
        """Initialize with the reason and the offending payload.

        Args:
            message: Why decoding failed
            payload: Raw payload as received, kept for logging
        """
        self.payload = payload
        super().__init__(message)


class EncodeError(Pc321Error):
    """Metric map could not be serialized for publication."""

    pass
