"""Transport-specific exceptions.

This module provides exception classes for MQTT transport operations,
allowing callers to tell fatal startup failures from recoverable publish
failures.

All transport exceptions inherit from :class:`~pc321mqtt.exceptions.Pc321Error`
so callers can use a single ``except Pc321Error`` to catch both payload and
transport failures.
"""

from __future__ import annotations

from pc321mqtt.exceptions import Pc321Error


class TransportError(Pc321Error):
    """Base exception for all transport errors."""

    pass


class TransportConnectionError(TransportError):
    """Failed to connect to the broker or subscribe to a topic."""

    pass


class TransportTimeoutError(TransportError):
    """Operation timed out."""

    pass


class TransportPublishError(TransportError):
    """Broker or client rejected a publish."""

    def __init__(self, topic: str, reason: str) -> None:
        """Initialize with topic and failure details.

        Args:
            topic: Topic the publish was addressed to
            reason: Client or broker reason string
        """
        self.topic = topic
        self.reason = reason
        super().__init__(f"Failed to publish to '{topic}': {reason}")
