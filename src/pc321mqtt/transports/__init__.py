"""MQTT transport layer for pc321mqtt.

Usage:
    from pc321mqtt.transports import BridgeConfig, MqttTransport

    config = BridgeConfig(topic="zigbee2mqtt/pc321/raw", broker="tcp://10.10.1.1:1883")
    config.validate()

    async with MqttTransport.from_config(config) as transport:
        await transport.subscribe(config.topic)
        async for message in transport.messages():
            ...
"""

from __future__ import annotations

from .config import BridgeConfig, BrokerAddress, BrokerScheme, parse_broker_uri
from .exceptions import (
    TransportConnectionError,
    TransportError,
    TransportPublishError,
    TransportTimeoutError,
)
from .mqtt import Message, MqttTransport

__all__ = [
    # Transport
    "MqttTransport",
    "Message",
    # Configuration
    "BridgeConfig",
    "BrokerAddress",
    "BrokerScheme",
    "parse_broker_uri",
    # Exceptions
    "TransportError",
    "TransportConnectionError",
    "TransportTimeoutError",
    "TransportPublishError",
]
