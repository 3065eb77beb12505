"""Tests for rescaling and metric serialization."""

from __future__ import annotations

import json

import pytest

from pc321mqtt.decoder import RegisterReading, decode_payload
from pc321mqtt.exceptions import EncodeError
from pc321mqtt.metrics import METRIC_NAMES, encode_metrics, format_value, rescale
from pc321mqtt.registers import BY_ADDRESS


class TestRescale:
    """Tests for rescale()."""

    def test_empty_reading(self) -> None:
        """Test an empty reading yields no metrics."""
        assert rescale(RegisterReading()) == {}

    def test_partial_reading(self, partial_payload: bytes) -> None:
        """Test only present registers produce metrics."""
        metrics = rescale(decode_payload(partial_payload))

        assert metrics == {"voltage_l1": 230.0, "power_l1": -500.0, "energy": 123.456}

    def test_full_reading_covers_every_metric(self, full_payload: bytes) -> None:
        """Test a full payload produces every metric and nothing else."""
        metrics = rescale(decode_payload(full_payload))

        assert set(metrics) == set(METRIC_NAMES)

    def test_status_registers_not_published(self) -> None:
        """Test device status and phase sequence produce no metric."""
        metrics = rescale(RegisterReading({137: 3, 138: 1}))

        assert metrics == {}

    def test_full_precision_retained(self) -> None:
        """Test rescale does not round."""
        metrics = rescale(RegisterReading({102: 1}))

        assert metrics["current_l1"] == 0.001

    @pytest.mark.parametrize(
        ("address", "raw", "metric", "expected"),
        [
            (101, 2300, "voltage_l1", 230.0),
            (112, 1500, "current_l2", 1.5),
            (124, 95, "power_factor_l3", 0.95),
            (116, 123456, "energy_l2", 123.456),
            (123, -500, "power_l3", -500.0),
            (132, 2350, "current", 2.35),
            (135, 50, "frequency", 50.0),
            (136, 312, "temperature", 31.2),
        ],
    )
    def test_scaling(self, address: int, raw: int, metric: str, expected: float) -> None:
        """Test per-register scaling and renaming."""
        metrics = rescale(RegisterReading({address: raw}))

        assert metrics == {metric: pytest.approx(expected)}

    def test_every_register_maps_to_own_metric(self) -> None:
        """Test each metric register feeds exactly its own metric."""
        for metric in METRIC_NAMES:
            reg = next(r for r in BY_ADDRESS.values() if r.metric == metric)
            assert set(rescale(RegisterReading({reg.address: 1}))) == {metric}


class TestFormatValue:
    """Tests for format_value()."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (230.0, "230.000"),
            (1.5, "1.500"),
            (0.95, "0.950"),
            (123.456, "123.456"),
            (-500.0, "-500.000"),
            (0.0, "0.000"),
            (2000000.0, "2000000.000"),
            (1e-7, "0.000"),
            (2147483647.0, "2147483647.000"),
        ],
    )
    def test_fixed_three_decimals(self, value: float, expected: str) -> None:
        """Test fixed-point output without exponent or digit suppression."""
        assert format_value(value) == expected

    def test_float_artifacts_hidden(self) -> None:
        """Test binary float noise is removed by formatting."""
        assert format_value(2300 * 0.1) == "230.000"

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite(self, value: float) -> None:
        """Test non-finite values cannot be formatted."""
        with pytest.raises(EncodeError):
            format_value(value)


class TestEncodeMetrics:
    """Tests for encode_metrics()."""

    def test_empty(self) -> None:
        """Test an empty map encodes to {}."""
        assert encode_metrics({}) == b"{}"

    def test_sorted_compact(self) -> None:
        """Test keys are sorted and separators compact."""
        encoded = encode_metrics({"voltage_l1": 230.0, "current_l1": 1.5})

        assert encoded == b'{"current_l1":1.500,"voltage_l1":230.000}'

    def test_output_is_valid_json(self, full_payload: bytes) -> None:
        """Test the encoded map parses back as JSON numbers."""
        encoded = encode_metrics(rescale(decode_payload(full_payload)))
        parsed = json.loads(encoded)

        assert parsed["voltage_l1"] == pytest.approx(230.1)
        assert parsed["power_l2"] == -120.0
        assert parsed["energy"] == pytest.approx(2000.004)

    def test_literal_cases(self) -> None:
        """Test the documented raw-to-wire conversions."""
        reading = decode_payload(
            b'{"101": 2300, "102": 1500, "104": 95, "106": 123456, "103": -500}'
        )

        assert encode_metrics(rescale(reading)) == (
            b'{"current_l1":1.500,"energy_l1":123.456,"power_factor_l1":0.950,'
            b'"power_l1":-500.000,"voltage_l1":230.000}'
        )

    def test_idempotent(self, full_payload: bytes) -> None:
        """Test the same payload always encodes to identical bytes."""
        first = encode_metrics(rescale(decode_payload(full_payload)))
        second = encode_metrics(rescale(decode_payload(full_payload)))

        assert first == second

    def test_unknown_keys_never_leak(self, partial_payload: bytes) -> None:
        """Test unrecognized input keys do not appear in the output."""
        parsed = json.loads(encode_metrics(rescale(decode_payload(partial_payload))))

        assert set(parsed) == {"voltage_l1", "power_l1", "energy"}
        assert "linkquality" not in parsed
        assert "200" not in parsed

    def test_non_finite_raises(self) -> None:
        """Test non-finite values raise EncodeError naming the metric."""
        with pytest.raises(EncodeError, match="power"):
            encode_metrics({"power": float("nan")})

    def test_non_numeric_raises(self) -> None:
        """Test non-numeric values raise EncodeError."""
        with pytest.raises(EncodeError, match="non-numeric"):
            encode_metrics({"power": "500"})  # type: ignore[dict-item]

    def test_int_values_accepted(self) -> None:
        """Test plain ints are formatted like floats."""
        assert encode_metrics({"power": 5}) == b'{"power":5.000}'
