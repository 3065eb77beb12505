"""MQTT transport implementation.

This module provides the MqttTransport class, an asyncio front-end for the
paho-mqtt client. paho runs its network loop in a background thread
(``loop_start``); every callback is handed over to the asyncio loop with
``call_soon_threadsafe`` so all transport state is only touched from the
event loop.

Incoming messages pass through a bounded queue. When the worker falls behind
and the queue is full, new messages are dropped with a warning rather than
stalling the paho network thread.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from types import TracebackType
from typing import Any

import paho.mqtt.client as mqtt
from paho.mqtt.enums import CallbackAPIVersion

from .config import DEFAULT_QUEUE_SIZE, DEFAULT_TIMEOUT, BridgeConfig, parse_broker_uri
from .exceptions import (
    TransportConnectionError,
    TransportError,
    TransportPublishError,
    TransportTimeoutError,
)

_LOGGER = logging.getLogger(__name__)

__all__ = ["Message", "MqttTransport"]


@dataclass(frozen=True)
class Message:
    """Single message received on a subscribed topic."""

    topic: str
    payload: bytes


class MqttTransport:
    """Asyncio wrapper around a paho-mqtt client.

    Example:
        transport = MqttTransport(
            broker="tcp://10.10.1.1:1883",
            client_id="pc321-bridge",
        )
        async with transport:
            await transport.subscribe("zigbee2mqtt/pc321/raw")
            async for message in transport.messages():
                ...

    Note:
        Requires the `paho-mqtt` package (2.x) to be installed.
    """

    def __init__(
        self,
        broker: str,
        *,
        client_id: str = "",
        username: str | None = None,
        password: str | None = None,
        clean_session: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        keepalive: int = 60,
    ) -> None:
        """Initialize MQTT transport.

        Args:
            broker: Broker URI, e.g. ``tcp://10.10.1.1:1883``
            client_id: MQTT client identifier
            username: Broker username (optional)
            password: Broker password (optional)
            clean_session: Discard the broker-side session on connect
            timeout: Connect/subscribe/publish timeout in seconds
            queue_size: Capacity of the inbound message queue
            keepalive: MQTT keepalive interval in seconds
        """
        self._address = parse_broker_uri(broker)
        self._client_id = client_id
        self._username = username
        self._password = password
        self._clean_session = clean_session
        self._timeout = timeout
        self._keepalive = keepalive
        self._queue: asyncio.Queue[Message] = asyncio.Queue(maxsize=queue_size)
        self._client: Any = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._connected = False
        self._closing = False
        self._connect_future: asyncio.Future[None] | None = None
        self._pending_subscribes: dict[int, asyncio.Future[list[Any]]] = {}
        self._dropped: int = 0

    @classmethod
    def from_config(cls, config: BridgeConfig) -> MqttTransport:
        """Create a transport from a BridgeConfig."""
        return cls(
            config.broker,
            client_id=config.client_id,
            username=config.username,
            password=config.password,
            clean_session=config.clean_session,
            timeout=config.timeout,
            queue_size=config.queue_size,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_connected(self) -> bool:
        """Whether the broker has acknowledged the connection."""
        return self._connected

    @property
    def host(self) -> str:
        """Broker host."""
        return self._address.host

    @property
    def port(self) -> int:
        """Broker port."""
        return self._address.port

    @property
    def dropped_messages(self) -> int:
        """Number of inbound messages dropped because the queue was full."""
        return self._dropped

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    async def __aenter__(self) -> MqttTransport:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.disconnect()

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def _create_client(self) -> Any:
        transport = "websockets" if self._address.scheme.uses_websockets else "tcp"
        client = mqtt.Client(
            callback_api_version=CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
            clean_session=self._clean_session,
            transport=transport,
        )
        if self._username:
            client.username_pw_set(self._username, self._password)
        if self._address.scheme.uses_tls:
            client.tls_set()
        if self._address.scheme.uses_websockets:
            client.ws_set_options(path=self._address.path or "/mqtt")

        client.on_connect = self._on_connect
        client.on_connect_fail = self._on_connect_fail
        client.on_disconnect = self._on_disconnect
        client.on_subscribe = self._on_subscribe
        client.on_message = self._on_message
        return client

    async def connect(self) -> None:
        """Connect to the broker and wait for CONNACK.

        Raises:
            TransportConnectionError: If the connection is refused or fails
            TransportTimeoutError: If no CONNACK arrives within the timeout
        """
        self._loop = asyncio.get_running_loop()
        self._closing = False
        self._connect_future = self._loop.create_future()
        self._client = self._create_client()

        try:
            self._client.connect_async(
                self._address.host,
                self._address.port,
                keepalive=self._keepalive,
            )
            self._client.loop_start()
        except (OSError, ValueError) as err:
            raise TransportConnectionError(
                f"Failed to connect to {self._address.host}:{self._address.port}: {err}"
            ) from err

        try:
            await asyncio.wait_for(self._connect_future, timeout=self._timeout)
        except TimeoutError as err:
            await self._stop_loop()
            raise TransportTimeoutError(
                f"Timeout connecting to {self._address.host}:{self._address.port} "
                f"after {self._timeout}s"
            ) from err
        except TransportConnectionError:
            await self._stop_loop()
            raise
        finally:
            self._connect_future = None

        _LOGGER.info(
            "MQTT transport connected to %s:%s as %r",
            self._address.host,
            self._address.port,
            self._client_id,
        )

    async def disconnect(self) -> None:
        """Disconnect from the broker and stop the network thread."""
        if self._client is None:
            return
        self._closing = True
        self._client.disconnect()
        await self._stop_loop()
        self._connected = False
        _LOGGER.info("MQTT transport disconnected from %s", self._address.host)

    async def _stop_loop(self) -> None:
        if self._client is not None:
            await asyncio.to_thread(self._client.loop_stop)

    def _ensure_connected(self) -> None:
        if self._client is None or not self._connected:
            raise TransportConnectionError("MQTT transport is not connected")

    # ------------------------------------------------------------------
    # Subscribe / publish
    # ------------------------------------------------------------------

    async def subscribe(self, topic: str, qos: int = 0) -> None:
        """Subscribe to *topic* and wait for SUBACK.

        Raises:
            TransportConnectionError: If the subscription is rejected
            TransportTimeoutError: If no SUBACK arrives within the timeout
        """
        self._ensure_connected()
        assert self._loop is not None
        result, mid = self._client.subscribe(topic, qos)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise TransportConnectionError(
                f"Failed to subscribe to '{topic}': {mqtt.error_string(result)}"
            )

        future: asyncio.Future[list[Any]] = self._loop.create_future()
        self._pending_subscribes[mid] = future
        try:
            reason_codes = await asyncio.wait_for(future, timeout=self._timeout)
        except TimeoutError as err:
            raise TransportTimeoutError(
                f"Timeout subscribing to '{topic}' after {self._timeout}s"
            ) from err
        finally:
            self._pending_subscribes.pop(mid, None)

        failed = [rc for rc in reason_codes if getattr(rc, "is_failure", False)]
        if failed:
            raise TransportConnectionError(f"Subscription to '{topic}' rejected: {failed[0]}")
        _LOGGER.info("Subscribed to %s (qos %d)", topic, qos)

    async def publish(
        self,
        topic: str,
        payload: bytes | str,
        *,
        qos: int = 0,
        retain: bool = False,
    ) -> None:
        """Publish *payload* and wait until paho reports it sent.

        Raises:
            TransportPublishError: If the client rejects the publish
            TransportTimeoutError: If the publish does not complete in time
        """
        if self._client is None:
            raise TransportPublishError(topic, "transport not connected")

        info = self._client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise TransportPublishError(topic, mqtt.error_string(info.rc))

        try:
            await asyncio.to_thread(info.wait_for_publish, self._timeout)
        except (RuntimeError, ValueError) as err:
            raise TransportPublishError(topic, str(err)) from err

        if not info.is_published():
            raise TransportTimeoutError(f"Timeout publishing to '{topic}' after {self._timeout}s")

    async def messages(self) -> AsyncIterator[Message]:
        """Yield inbound messages one at a time, in arrival order."""
        while True:
            yield await self._queue.get()

    # ------------------------------------------------------------------
    # paho callbacks (network thread)
    # ------------------------------------------------------------------

    def _call_in_loop(self, callback: Any, *args: Any) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(callback, *args)

    def _on_connect(
        self,
        client: Any,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any,
    ) -> None:
        self._call_in_loop(self._handle_connect, reason_code)

    def _on_connect_fail(self, client: Any, userdata: Any) -> None:
        self._call_in_loop(self._handle_connect_fail)

    def _on_disconnect(
        self,
        client: Any,
        userdata: Any,
        disconnect_flags: Any,
        reason_code: Any,
        properties: Any,
    ) -> None:
        self._call_in_loop(self._handle_disconnect, reason_code)

    def _on_subscribe(
        self,
        client: Any,
        userdata: Any,
        mid: int,
        reason_code_list: list[Any],
        properties: Any,
    ) -> None:
        self._call_in_loop(self._handle_subscribe, mid, list(reason_code_list))

    def _on_message(self, client: Any, userdata: Any, msg: Any) -> None:
        self._call_in_loop(self._enqueue, Message(msg.topic, bytes(msg.payload)))

    # ------------------------------------------------------------------
    # Callback handlers (event loop)
    # ------------------------------------------------------------------

    def _handle_connect(self, reason_code: Any) -> None:
        future = self._connect_future
        if getattr(reason_code, "is_failure", False):
            error: TransportError = TransportConnectionError(
                f"Broker {self._address.host}:{self._address.port} refused connection: "
                f"{reason_code}"
            )
            if future is not None and not future.done():
                future.set_exception(error)
            else:
                _LOGGER.error("%s", error)
            return

        self._connected = True
        if future is not None and not future.done():
            future.set_result(None)
        else:
            _LOGGER.info("MQTT transport reconnected to %s", self._address.host)

    def _handle_connect_fail(self) -> None:
        future = self._connect_future
        error = TransportConnectionError(
            f"Failed to connect to {self._address.host}:{self._address.port}"
        )
        if future is not None and not future.done():
            future.set_exception(error)
        else:
            _LOGGER.warning("%s, paho will retry", error)

    def _handle_disconnect(self, reason_code: Any) -> None:
        self._connected = False
        if self._closing:
            return
        _LOGGER.warning(
            "MQTT transport lost connection to %s: %s",
            self._address.host,
            reason_code,
        )

    def _handle_subscribe(self, mid: int, reason_codes: list[Any]) -> None:
        future = self._pending_subscribes.get(mid)
        if future is not None and not future.done():
            future.set_result(reason_codes)

    def _enqueue(self, message: Message) -> None:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self._dropped += 1
            _LOGGER.warning(
                "Inbound queue full, dropping message on %s (%d dropped so far)",
                message.topic,
                self._dropped,
            )
