"""Bridge Owon PC321 3-phase meter readings to scaled MQTT metrics.

Usage:
    Decode and rescale a single payload:
        from pc321mqtt import decode_payload, encode_metrics, rescale

        reading = decode_payload(b'{"101": 2300, "103": -500}')
        metrics = rescale(reading)          # {"voltage_l1": 230.0, "power_l1": -500.0}
        payload = encode_metrics(metrics)   # b'{"power_l1":-500.000,"voltage_l1":230.000}'

    Run the bridge against a broker:
        from pc321mqtt import Pc321Bridge
        from pc321mqtt.transports import BridgeConfig, MqttTransport

        config = BridgeConfig(topic="zigbee2mqtt/pc321/raw")
        async with MqttTransport.from_config(config) as transport:
            bridge = Pc321Bridge(transport, config.topic)
            await bridge.start()
            await bridge.run()
"""

from __future__ import annotations

from .bridge import Pc321Bridge, process_payload
from .decoder import RegisterReading, decode_payload
from .discovery import DiscoveryDescriptor, discovery_descriptors
from .exceptions import DecodeError, EncodeError, Pc321Error
from .metrics import METRIC_NAMES, encode_metrics, format_value, rescale

__version__ = "0.1.0"
__all__ = [
    "Pc321Bridge",
    "process_payload",
    # Pipeline
    "RegisterReading",
    "decode_payload",
    "rescale",
    "format_value",
    "encode_metrics",
    "METRIC_NAMES",
    # Discovery
    "DiscoveryDescriptor",
    "discovery_descriptors",
    # Exceptions
    "Pc321Error",
    "DecodeError",
    "EncodeError",
]
