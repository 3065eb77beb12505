"""PC321 bridge: decode inbound readings and republish them as metrics.

The bridge owns no state between messages. Each message is decoded,
rescaled, serialized and published in sequence; any failure along the way
is logged and the message is dropped without retry.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from .decoder import decode_payload
from .discovery import STATE_TOPIC, discovery_descriptors
from .exceptions import DecodeError, EncodeError
from .metrics import encode_metrics, rescale
from .transports.exceptions import TransportError

if TYPE_CHECKING:
    from .transports.mqtt import Message, MqttTransport

_LOGGER = logging.getLogger(__name__)


def process_payload(payload: bytes | str) -> bytes:
    """Decode, rescale and encode one payload.

    Raises:
        DecodeError: If the payload cannot be decoded
        EncodeError: If the metric map cannot be serialized
    """
    return encode_metrics(rescale(decode_payload(payload)))


class Pc321Bridge:
    """Republishes PC321 register readings as scaled metrics.

    Example:
        async with MqttTransport.from_config(config) as transport:
            bridge = Pc321Bridge(transport, config.topic)
            await bridge.start()
            await bridge.run()
    """

    def __init__(
        self,
        transport: MqttTransport,
        topic: str,
        *,
        state_topic: str = STATE_TOPIC,
        publish_discovery: bool = True,
    ) -> None:
        """Initialize the bridge.

        Args:
            transport: Connected MQTT transport
            topic: Inbound topic carrying raw register payloads
            state_topic: Outbound topic for metric maps
            publish_discovery: Publish discovery configs in start()
        """
        self._transport = transport
        self._topic = topic
        self._state_topic = state_topic
        self._publish_discovery = publish_discovery

    @property
    def topic(self) -> str:
        """Inbound topic."""
        return self._topic

    async def start(self) -> None:
        """Publish discovery configs, then subscribe to the inbound topic.

        Raises:
            TransportConnectionError: If the subscription fails
            TransportTimeoutError: If the subscription times out
        """
        if self._publish_discovery:
            await self.publish_discovery()
        await self._transport.subscribe(self._topic)

    async def publish_discovery(self) -> int:
        """Publish every discovery descriptor, retained.

        Returns:
            Number of descriptors published successfully
        """
        published = 0
        for descriptor in discovery_descriptors():
            payload = json.dumps(descriptor.to_payload())
            _LOGGER.debug("Publishing discovery config %s", descriptor.topic)
            try:
                await self._transport.publish(descriptor.topic, payload, retain=True)
            except TransportError as err:
                _LOGGER.error("Failed to publish discovery config %s: %s", descriptor.topic, err)
                continue
            published += 1
        return published

    async def handle_message(self, message: Message) -> bool:
        """Process a single inbound message.

        Returns:
            True if a metric map was published
        """
        _LOGGER.debug(
            "Received message on %s: %s",
            message.topic,
            message.payload.decode(errors="replace"),
        )
        try:
            output = process_payload(message.payload)
        except DecodeError as err:
            _LOGGER.error(
                "Failed to decode message on %s: %s (payload: %r)",
                message.topic,
                err,
                err.payload,
            )
            return False
        except EncodeError as err:
            _LOGGER.error("Failed to encode metrics for message on %s: %s", message.topic, err)
            return False

        _LOGGER.info("Publishing message to %s: %s", self._state_topic, output.decode())
        try:
            await self._transport.publish(self._state_topic, output)
        except TransportError as err:
            _LOGGER.error("Failed to publish message to %s: %s", self._state_topic, err)
            return False
        return True

    async def run(self) -> None:
        """Process inbound messages until cancelled."""
        async for message in self._transport.messages():
            await self.handle_message(message)


__all__ = ["Pc321Bridge", "process_payload"]
