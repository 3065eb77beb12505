"""Rescale register readings into named metrics and serialize them.

Scaling and formatting are kept apart: ``rescale`` returns full-precision
floats, and only ``encode_metrics`` applies the three-decimal presentation.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping

from .decoder import RegisterReading
from .exceptions import EncodeError
from .registers import metric_registers

# Every metric name the pipeline can emit, in register-table order.
METRIC_NAMES: tuple[str, ...] = tuple(
    r.metric for r in metric_registers() if r.metric is not None
)

DECIMAL_PLACES = 3


def rescale(reading: RegisterReading) -> dict[str, float]:
    """Apply per-register scale factors and rename to metric names.

    Registers missing from *reading* produce no metric. Status registers
    have no metric name and are skipped.
    """
    metrics: dict[str, float] = {}
    for reg in metric_registers():
        raw = reading.get(reg)
        if raw is None:
            continue
        metrics[reg.metric] = reg.apply_scale(raw)  # type: ignore[index]
    return metrics


def format_value(value: float) -> str:
    """Format a metric value as fixed-point with three decimals."""
    if not math.isfinite(value):
        raise EncodeError(f"Cannot encode non-finite value {value!r}")
    return f"{value:.{DECIMAL_PLACES}f}"


def encode_metrics(metrics: Mapping[str, float]) -> bytes:
    """Serialize a metric map to a compact JSON object.

    Keys are sorted. Values are JSON numbers written with exactly three
    digits after the decimal point, e.g. ``{"power":-500.000}``.

    Raises:
        EncodeError: If a value is not a finite number
    """
    parts: list[str] = []
    for name in sorted(metrics):
        value = metrics[name]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise EncodeError(f"Metric {name!r} has non-numeric value {value!r}")
        try:
            formatted = format_value(value)
        except EncodeError as err:
            raise EncodeError(f"Metric {name!r}: {err}") from err
        parts.append(f"{json.dumps(name)}:{formatted}")
    return ("{" + ",".join(parts) + "}").encode()


__all__ = ["DECIMAL_PLACES", "METRIC_NAMES", "encode_metrics", "format_value", "rescale"]
