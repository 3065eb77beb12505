"""Home Assistant MQTT discovery descriptors for the PC321 meter.

Descriptors are static: they are built once from the register map and
published retained at startup so Home Assistant creates the sensors.
Only the energy and power families are advertised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .registers import BY_METRIC

DISCOVERY_PREFIX = "homeassistant"
STATE_TOPIC = "smacker/pc321"
NODE_ID = "pc321"

DEVICE_INFO: dict[str, Any] = {
    "identifiers": ["smacker_pc321"],
    "manufacturer": "Owon",
    "model": "3-Phase clamp power meter",
    "name": "Energy Meter",
}

ENERGY_METRICS: tuple[str, ...] = ("energy", "energy_l1", "energy_l2", "energy_l3")
POWER_METRICS: tuple[str, ...] = ("power", "power_l1", "power_l2", "power_l3")


@dataclass(frozen=True)
class DiscoveryDescriptor:
    """Discovery config for a single sensor entity."""

    metric: str
    device_class: str
    state_class: str
    unit_of_measurement: str
    entity_category: str | None = None
    enabled_by_default: bool = True

    @property
    def object_id(self) -> str:
        """Entity object id, also used as unique id."""
        return f"{NODE_ID}_{self.metric}"

    @property
    def topic(self) -> str:
        """Retained config topic for this entity."""
        return f"{DISCOVERY_PREFIX}/sensor/{NODE_ID}/{self.metric}/config"

    def to_payload(self) -> dict[str, Any]:
        """Build the config payload, device block included."""
        payload: dict[str, Any] = {
            "device": DEVICE_INFO,
            "device_class": self.device_class,
            "enabled_by_default": self.enabled_by_default,
        }
        if self.entity_category is not None:
            payload["entity_category"] = self.entity_category
        payload.update(
            {
                "object_id": self.object_id,
                "state_class": self.state_class,
                "state_topic": STATE_TOPIC,
                "unique_id": self.object_id,
                "unit_of_measurement": self.unit_of_measurement,
                "value_template": f"{{{{ value_json.{self.metric} }}}}",
            }
        )
        return payload


def _unit(metric: str) -> str:
    unit = BY_METRIC[metric].unit
    if unit is None:
        raise ValueError(f"Metric {metric!r} has no unit")
    return unit


def discovery_descriptors() -> tuple[DiscoveryDescriptor, ...]:
    """Return the descriptors published at startup, energy family first."""
    energy = tuple(
        DiscoveryDescriptor(
            metric=metric,
            device_class="energy",
            state_class="total_increasing",
            unit_of_measurement=_unit(metric),
        )
        for metric in ENERGY_METRICS
    )
    power = tuple(
        DiscoveryDescriptor(
            metric=metric,
            device_class="power",
            state_class="measurement",
            unit_of_measurement=_unit(metric),
            entity_category="diagnostic",
        )
        for metric in POWER_METRICS
    )
    return energy + power


__all__ = [
    "DEVICE_INFO",
    "DISCOVERY_PREFIX",
    "ENERGY_METRICS",
    "POWER_METRICS",
    "STATE_TOPIC",
    "DiscoveryDescriptor",
    "discovery_descriptors",
]
