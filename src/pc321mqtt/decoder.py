"""Decode inbound PC321 payloads into register readings.

The gateway publishes one flat JSON object per reporting cycle, keyed by the
decimal register ID. Any register may be missing from a given cycle, so the
decoded reading is a sparse map: absent registers stay absent and are never
filled with zero.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .exceptions import DecodeError
from .registers import BY_ADDRESS, RegisterDefinition

_LOGGER = logging.getLogger(__name__)

# Wire keys are exact decimal strings ("101"), no padding or whitespace.
_BY_KEY: dict[str, RegisterDefinition] = {str(r.address): r for r in BY_ADDRESS.values()}


@dataclass(frozen=True)
class RegisterReading:
    """Registers reported in a single message.

    Only registers present (and non-null) in the payload are stored.
    Instances are read-only; a new reading is built for every message.
    """

    registers: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "registers", MappingProxyType(dict(self.registers)))

    def __contains__(self, address: object) -> bool:
        return address in self.registers

    def __iter__(self) -> Iterator[int]:
        return iter(self.registers)

    def __len__(self) -> int:
        return len(self.registers)

    def get(self, reg: RegisterDefinition | int) -> int | None:
        """Return the raw value of *reg*, or None when it was not reported."""
        address = reg if isinstance(reg, int) else reg.address
        return self.registers.get(address)

    @property
    def device_status(self) -> int | None:
        """Device status flags (reg 137)."""
        return self.get(137)

    @property
    def phase_sequence_detection(self) -> int | None:
        """Phase sequence detection flags (reg 138)."""
        return self.get(138)


def _decode_value(reg: RegisterDefinition, value: Any, payload: bytes | str) -> int:
    """Validate one JSON value against its register definition."""
    # bool is an int subclass in Python but not a JSON number
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(
            f"Register {reg.address} ({reg.canonical_name}) expects an integer, "
            f"got {type(value).__name__}: {value!r}",
            payload,
        )
    if not reg.in_range(value):
        raise DecodeError(
            f"Register {reg.address} ({reg.canonical_name}) value {value} outside "
            f"{'signed' if reg.signed else 'unsigned'} {reg.bit_width}-bit range "
            f"[{reg.min_value}, {reg.max_value}]",
            payload,
        )
    return value


def decode_payload(payload: bytes | str) -> RegisterReading:
    """Parse a raw message payload into a RegisterReading.

    Args:
        payload: JSON object keyed by decimal register ID strings

    Returns:
        RegisterReading holding every recognized, non-null register

    Raises:
        DecodeError: If the payload is not a JSON object, or a recognized
            register holds a non-integer or out-of-range value
    """
    # Deeply nested arrays/objects exhaust the recursive JSON decoder
    try:
        data = json.loads(payload)
    except (ValueError, RecursionError) as err:
        raise DecodeError(f"Invalid JSON payload: {err}", payload) from err

    if not isinstance(data, dict):
        raise DecodeError(
            f"Expected a JSON object, got {type(data).__name__}",
            payload,
        )

    registers: dict[int, int] = {}
    for key, value in data.items():
        reg = _BY_KEY.get(key)
        if reg is None:
            continue
        if value is None:
            continue
        registers[reg.address] = _decode_value(reg, value, payload)

    _LOGGER.debug(
        "Decoded %d of %d keys into registers %s",
        len(registers),
        len(data),
        sorted(registers),
    )
    return RegisterReading(registers)


__all__ = ["RegisterReading", "decode_payload"]
