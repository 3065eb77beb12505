"""Bridge configuration.

This module provides the BridgeConfig dataclass describing the broker
connection and the inbound topic, supporting validation, serialization
to/from dictionaries, and loading from environment variables.

Example:
    config = BridgeConfig(
        broker="tcp://10.10.1.1:1883",
        topic="zigbee2mqtt/pc321/raw",
        username="meter",
        password="secret",
    )
    config.validate()

    # Serialize to dict for storage
    data = config.to_dict()

    # Restore from dict
    restored = BridgeConfig.from_dict(data)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

DEFAULT_BROKER = "tcp://localhost:1883"
DEFAULT_CLIENT_ID = "pc321-bridge"
DEFAULT_TIMEOUT = 5.0
DEFAULT_QUEUE_SIZE = 16

ENV_PREFIX = "PC321_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


class BrokerScheme(str, Enum):
    """Supported broker URI schemes.

    String enum for easy serialization and comparison.
    """

    TCP = "tcp"
    MQTT = "mqtt"
    SSL = "ssl"
    MQTTS = "mqtts"
    WS = "ws"
    WSS = "wss"

    @property
    def default_port(self) -> int:
        """Conventional port for the scheme."""
        return {
            BrokerScheme.TCP: 1883,
            BrokerScheme.MQTT: 1883,
            BrokerScheme.SSL: 8883,
            BrokerScheme.MQTTS: 8883,
            BrokerScheme.WS: 80,
            BrokerScheme.WSS: 443,
        }[self]

    @property
    def uses_tls(self) -> bool:
        """Whether the connection is TLS-wrapped."""
        return self in (BrokerScheme.SSL, BrokerScheme.MQTTS, BrokerScheme.WSS)

    @property
    def uses_websockets(self) -> bool:
        """Whether the connection runs over websockets."""
        return self in (BrokerScheme.WS, BrokerScheme.WSS)


@dataclass(frozen=True)
class BrokerAddress:
    """Broker URI split into the parts the MQTT client needs."""

    scheme: BrokerScheme
    host: str
    port: int
    path: str = ""


def parse_broker_uri(uri: str) -> BrokerAddress:
    """Parse a broker URI such as ``tcp://10.10.1.1:1883``.

    A bare ``host`` or ``host:port`` is treated as ``tcp://``.

    Raises:
        ValueError: If the scheme is unsupported, the host is missing or the
            port is invalid
    """
    if "://" not in uri:
        uri = f"tcp://{uri}"
    parts = urlsplit(uri)
    try:
        scheme = BrokerScheme(parts.scheme.lower())
    except ValueError as err:
        raise ValueError(f"Unsupported broker scheme '{parts.scheme}' in {uri!r}") from err
    if not parts.hostname:
        raise ValueError(f"Broker URI {uri!r} has no host")
    try:
        port = parts.port
    except ValueError as err:
        raise ValueError(f"Broker URI {uri!r} has an invalid port") from err
    return BrokerAddress(
        scheme=scheme,
        host=parts.hostname,
        port=port if port is not None else scheme.default_port,
        path=parts.path,
    )


def _parse_bool(value: str, name: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass
class BridgeConfig:
    """Configuration for the PC321 bridge.

    Attributes:
        topic: Inbound topic carrying raw register payloads (required)
        broker: Broker URI, e.g. ``tcp://10.10.1.1:1883``
        username: Broker username (optional)
        password: Broker password (optional)
        client_id: MQTT client identifier
        clean_session: Start with a clean session instead of resuming the
            broker-side persistent session
        timeout: Connect/subscribe/publish timeout in seconds
        queue_size: Capacity of the hand-off queue between the MQTT network
            thread and the worker loop
        publish_discovery: Publish Home Assistant discovery configs at startup
    """

    topic: str
    broker: str = DEFAULT_BROKER
    username: str | None = None
    password: str | None = None
    client_id: str = DEFAULT_CLIENT_ID
    clean_session: bool = False
    timeout: float = DEFAULT_TIMEOUT
    queue_size: int = DEFAULT_QUEUE_SIZE
    publish_discovery: bool = True

    def validate(self) -> None:
        """Validate configuration completeness.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.topic:
            raise ValueError("topic must not be empty")
        if "\x00" in self.topic:
            raise ValueError("topic must not contain NUL characters")
        parse_broker_uri(self.broker)
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.queue_size < 1:
            raise ValueError("queue_size must be at least 1")
        if self.password and not self.username:
            raise ValueError("password requires a username")

    @property
    def broker_address(self) -> BrokerAddress:
        """Parsed broker URI."""
        return parse_broker_uri(self.broker)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        return {
            "topic": self.topic,
            "broker": self.broker,
            "username": self.username,
            "password": self.password,
            "client_id": self.client_id,
            "clean_session": self.clean_session,
            "timeout": self.timeout,
            "queue_size": self.queue_size,
            "publish_discovery": self.publish_discovery,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BridgeConfig:
        """Create configuration from dictionary.

        Args:
            data: Dictionary with configuration values (from to_dict())

        Returns:
            BridgeConfig instance with values from dictionary
        """
        return cls(
            topic=data["topic"],
            broker=data.get("broker", DEFAULT_BROKER),
            username=data.get("username"),
            password=data.get("password"),
            client_id=data.get("client_id", DEFAULT_CLIENT_ID),
            clean_session=bool(data.get("clean_session", False)),
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
            queue_size=int(data.get("queue_size", DEFAULT_QUEUE_SIZE)),
            publish_discovery=bool(data.get("publish_discovery", True)),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BridgeConfig:
        """Create configuration from ``PC321_*`` environment variables.

        Unset variables fall back to the dataclass defaults. The result is
        not validated; an unset ``PC321_TOPIC`` gives an empty topic.

        Raises:
            ValueError: If a numeric or boolean variable cannot be parsed
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            return env.get(f"{ENV_PREFIX}{name}")

        clean = get("CLEAN_SESSION")
        timeout = get("TIMEOUT")
        queue_size = get("QUEUE_SIZE")
        return cls(
            topic=get("TOPIC") or "",
            broker=get("BROKER") or DEFAULT_BROKER,
            username=get("USER") or None,
            password=get("PASSWORD") or None,
            client_id=get("CLIENT_ID") or DEFAULT_CLIENT_ID,
            clean_session=_parse_bool(clean, f"{ENV_PREFIX}CLEAN_SESSION")
            if clean is not None
            else False,
            timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
            queue_size=int(queue_size) if queue_size else DEFAULT_QUEUE_SIZE,
        )


__all__ = [
    "BridgeConfig",
    "BrokerAddress",
    "BrokerScheme",
    "parse_broker_uri",
]
