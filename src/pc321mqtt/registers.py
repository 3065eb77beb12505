"""Canonical register map for the Owon PC321 3-phase clamp power meter.

Source: Owon PC321-Z-TY protocol table, as reported through the Zigbee
gateway in a flat JSON object keyed by register ID.

Register space layout:
    101-106  Phase 1 (L1): voltage, current, active power, power factor, energy
    111-116  Phase 2 (L2): same layout as phase 1
    121-126  Phase 3 (L3): same layout as phase 1
    131-138  Totals and status: energy, current, active power, frequency,
             temperature, device status, phase sequence detection

Offset 5 of each phase group (105, 115, 125) and register 134 are not
reported by the meter and have no definition.

Each RegisterDefinition carries the full identity chain:
  register address → width/signed → scale → canonical name → output metric

Note on energy registers: the vendor table documents a 0.01 kWh resolution,
but readings only line up with the meter display at 0.001 kWh. DIV_1000 is
used for all energy registers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum

# =============================================================================
# ENUMS
# =============================================================================


class ScaleFactor(int, Enum):
    """Divisor applied to raw register value."""

    NONE = 1
    DIV_10 = 10
    DIV_100 = 100
    DIV_1000 = 1000


class RegisterCategory(StrEnum):
    """Logical grouping of PC321 registers."""

    VOLTAGE = "voltage"
    """Per-phase RMS voltage."""

    CURRENT = "current"
    """Per-phase and total current."""

    POWER = "power"
    """Per-phase and total active power (signed, negative when exporting)."""

    POWER_FACTOR = "power_factor"
    """Per-phase power factor."""

    ENERGY = "energy"
    """Per-phase and total energy consumption counters."""

    FREQUENCY = "frequency"
    """Grid frequency."""

    TEMPERATURE = "temperature"
    """Internal meter temperature."""

    STATUS = "status"
    """Status flags. Decoded but not published as metrics."""


# =============================================================================
# REGISTER DEFINITION
# =============================================================================


@dataclass(frozen=True)
class RegisterDefinition:
    """Single register definition for the PC321 meter.

    Attributes:
        address: Register ID as used for the JSON key on the wire.
        canonical_name: Stable identifier used in logs and diagnostics.
        metric: Output metric name in the published map, or None when the
            register is decoded but not published.
        bit_width: 32 for counters and measurements, 8 for status flags.
        signed: True for two's-complement signed values (active power).
        scale: Divisor to convert raw value to engineering units.
        unit: Engineering unit after scaling.
        category: Logical grouping.
        phase: 1-3 for per-phase registers, None for totals/status.
        description: Human-readable description from the protocol table.
    """

    address: int
    canonical_name: str
    metric: str | None = None
    bit_width: int = 32
    signed: bool = False
    scale: ScaleFactor = ScaleFactor.NONE
    unit: str | None = None
    category: RegisterCategory = RegisterCategory.STATUS
    phase: int | None = None
    description: str = ""

    @property
    def min_value(self) -> int:
        """Smallest raw value representable in this register."""
        if self.signed:
            return -(1 << (self.bit_width - 1))
        return 0

    @property
    def max_value(self) -> int:
        """Largest raw value representable in this register."""
        if self.signed:
            return (1 << (self.bit_width - 1)) - 1
        return (1 << self.bit_width) - 1

    def in_range(self, raw: int) -> bool:
        """Return True if *raw* fits the declared width and signedness."""
        return self.min_value <= raw <= self.max_value

    def apply_scale(self, raw: int) -> float:
        """Convert a raw register value to engineering units."""
        divisor = int(self.scale.value)
        if divisor == 1:
            return float(raw)
        return float(raw) / divisor


# =============================================================================
# REGISTER DEFINITIONS
# =============================================================================

PC321_REGISTERS: tuple[RegisterDefinition, ...] = (
    # =========================================================================
    # PHASE 1 (regs 101-106)
    # =========================================================================
    RegisterDefinition(
        address=101,
        canonical_name="voltage_l1",
        metric="voltage_l1",
        scale=ScaleFactor.DIV_10,
        unit="V",
        category=RegisterCategory.VOLTAGE,
        phase=1,
        description="L1 RMS voltage. Range 0-5000, unit 0.1 V.",
    ),
    RegisterDefinition(
        address=102,
        canonical_name="current_l1",
        metric="current_l1",
        scale=ScaleFactor.DIV_1000,
        unit="A",
        category=RegisterCategory.CURRENT,
        phase=1,
        description="L1 current. Range 0-3000000, unit mA.",
    ),
    RegisterDefinition(
        address=103,
        canonical_name="active_power_l1",
        metric="power_l1",
        signed=True,
        unit="W",
        category=RegisterCategory.POWER,
        phase=1,
        description="L1 active power. Range -6600000-6600000, unit W.",
    ),
    RegisterDefinition(
        address=104,
        canonical_name="power_factor_l1",
        metric="power_factor_l1",
        scale=ScaleFactor.DIV_100,
        category=RegisterCategory.POWER_FACTOR,
        phase=1,
        description="L1 power factor. Range 0-100, unit 0.01.",
    ),
    RegisterDefinition(
        address=106,
        canonical_name="energy_consumption_l1",
        metric="energy_l1",
        scale=ScaleFactor.DIV_1000,
        unit="kWh",
        category=RegisterCategory.ENERGY,
        phase=1,
        description="L1 energy consumption. Range 0-2000000000.",
    ),
    # =========================================================================
    # PHASE 2 (regs 111-116)
    # =========================================================================
    RegisterDefinition(
        address=111,
        canonical_name="voltage_l2",
        metric="voltage_l2",
        scale=ScaleFactor.DIV_10,
        unit="V",
        category=RegisterCategory.VOLTAGE,
        phase=2,
        description="L2 RMS voltage. Range 0-5000, unit 0.1 V.",
    ),
    RegisterDefinition(
        address=112,
        canonical_name="current_l2",
        metric="current_l2",
        scale=ScaleFactor.DIV_1000,
        unit="A",
        category=RegisterCategory.CURRENT,
        phase=2,
        description="L2 current. Range 0-3000000, unit mA.",
    ),
    RegisterDefinition(
        address=113,
        canonical_name="active_power_l2",
        metric="power_l2",
        signed=True,
        unit="W",
        category=RegisterCategory.POWER,
        phase=2,
        description="L2 active power. Range -6600000-6600000, unit W.",
    ),
    RegisterDefinition(
        address=114,
        canonical_name="power_factor_l2",
        metric="power_factor_l2",
        scale=ScaleFactor.DIV_100,
        category=RegisterCategory.POWER_FACTOR,
        phase=2,
        description="L2 power factor. Range 0-100, unit 0.01.",
    ),
    RegisterDefinition(
        address=116,
        canonical_name="energy_consumption_l2",
        metric="energy_l2",
        scale=ScaleFactor.DIV_1000,
        unit="kWh",
        category=RegisterCategory.ENERGY,
        phase=2,
        description="L2 energy consumption. Range 0-2000000000.",
    ),
    # =========================================================================
    # PHASE 3 (regs 121-126)
    # =========================================================================
    RegisterDefinition(
        address=121,
        canonical_name="voltage_l3",
        metric="voltage_l3",
        scale=ScaleFactor.DIV_10,
        unit="V",
        category=RegisterCategory.VOLTAGE,
        phase=3,
        description="L3 RMS voltage. Range 0-5000, unit 0.1 V.",
    ),
    RegisterDefinition(
        address=122,
        canonical_name="current_l3",
        metric="current_l3",
        scale=ScaleFactor.DIV_1000,
        unit="A",
        category=RegisterCategory.CURRENT,
        phase=3,
        description="L3 current. Range 0-3000000, unit mA.",
    ),
    RegisterDefinition(
        address=123,
        canonical_name="active_power_l3",
        metric="power_l3",
        signed=True,
        unit="W",
        category=RegisterCategory.POWER,
        phase=3,
        description="L3 active power. Range -6600000-6600000, unit W.",
    ),
    RegisterDefinition(
        address=124,
        canonical_name="power_factor_l3",
        metric="power_factor_l3",
        scale=ScaleFactor.DIV_100,
        category=RegisterCategory.POWER_FACTOR,
        phase=3,
        description="L3 power factor. Range 0-100, unit 0.01.",
    ),
    RegisterDefinition(
        address=126,
        canonical_name="energy_consumption_l3",
        metric="energy_l3",
        scale=ScaleFactor.DIV_1000,
        unit="kWh",
        category=RegisterCategory.ENERGY,
        phase=3,
        description="L3 energy consumption. Range 0-2000000000.",
    ),
    # =========================================================================
    # TOTALS (regs 131-136)
    # =========================================================================
    RegisterDefinition(
        address=131,
        canonical_name="total_energy_consumption",
        metric="energy",
        scale=ScaleFactor.DIV_1000,
        unit="kWh",
        category=RegisterCategory.ENERGY,
        description="Total energy consumption. Range 0-2000000000.",
    ),
    RegisterDefinition(
        address=132,
        canonical_name="total_current",
        metric="current",
        scale=ScaleFactor.DIV_1000,
        unit="A",
        category=RegisterCategory.CURRENT,
        description="Total current. Range 0-9000000, unit mA.",
    ),
    RegisterDefinition(
        address=133,
        canonical_name="total_active_power",
        metric="power",
        signed=True,
        unit="W",
        category=RegisterCategory.POWER,
        description="Total active power. Range -19800000-19800000, unit W.",
    ),
    RegisterDefinition(
        address=135,
        canonical_name="frequency",
        metric="frequency",
        unit="Hz",
        category=RegisterCategory.FREQUENCY,
        description="Grid frequency. Range 0-80, unit Hz.",
    ),
    RegisterDefinition(
        address=136,
        canonical_name="temperature",
        metric="temperature",
        scale=ScaleFactor.DIV_10,
        unit="°C",
        category=RegisterCategory.TEMPERATURE,
        description="Internal temperature. Range -100-800, unit 0.1 °C.",
    ),
    # =========================================================================
    # STATUS (regs 137-138, 8-bit, not published)
    # =========================================================================
    RegisterDefinition(
        address=137,
        canonical_name="device_status",
        bit_width=8,
        category=RegisterCategory.STATUS,
        description="Device status flags.",
    ),
    RegisterDefinition(
        address=138,
        canonical_name="phase_sequence_detection",
        bit_width=8,
        category=RegisterCategory.STATUS,
        description="Phase sequence detection flags.",
    ),
)


# =============================================================================
# LOOKUP INDEXES
# =============================================================================

BY_ADDRESS: dict[int, RegisterDefinition] = {r.address: r for r in PC321_REGISTERS}
"""Lookup by register address → definition."""

BY_NAME: dict[str, RegisterDefinition] = {r.canonical_name: r for r in PC321_REGISTERS}
"""Lookup by canonical_name → definition."""

BY_METRIC: dict[str, RegisterDefinition] = {
    r.metric: r for r in PC321_REGISTERS if r.metric is not None
}
"""Lookup by output metric name → definition."""

_cat_groups: dict[RegisterCategory, list[RegisterDefinition]] = {}
for _r in PC321_REGISTERS:
    _cat_groups.setdefault(_r.category, []).append(_r)
BY_CATEGORY: dict[RegisterCategory, tuple[RegisterDefinition, ...]] = {
    cat: tuple(defs) for cat, defs in _cat_groups.items()
}
"""Lookup by category → tuple of definitions."""


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def metric_registers() -> tuple[RegisterDefinition, ...]:
    """Return registers that produce an output metric, in table order."""
    return tuple(r for r in PC321_REGISTERS if r.metric is not None)


def phase_registers(phase: int) -> tuple[RegisterDefinition, ...]:
    """Return the registers belonging to one phase (1-3)."""
    return tuple(r for r in PC321_REGISTERS if r.phase == phase)


__all__ = [
    # Types
    "RegisterCategory",
    "RegisterDefinition",
    "ScaleFactor",
    # Data
    "PC321_REGISTERS",
    # Indexes
    "BY_ADDRESS",
    "BY_CATEGORY",
    "BY_METRIC",
    "BY_NAME",
    # Helpers
    "metric_registers",
    "phase_registers",
]
