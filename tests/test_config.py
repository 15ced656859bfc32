"""Tests for SimulationConfig and parameter validation."""

import dataclasses

import pytest

from force_layout import InvalidConfigError, InvalidOutputSizeError, SimulationConfig
from force_layout.validation import (
    ValidationError,
    validate_capacity,
    validate_damping,
    validate_iterations,
    validate_output_size,
)


class TestDefaults:
    """Documented defaults."""

    def test_default_values(self):
        config = SimulationConfig()
        assert config.max_seconds == 30.0
        assert config.output_size == (100.0, 100.0)
        assert config.emit_interval_ms == 50.0
        assert config.repulse_constant == 0.03
        assert config.spring_constant == 2000.0
        assert config.spring_amplifier == 10.0
        assert config.spring_stable_distance == 200.0
        assert config.spring_multiplier_cap == 3.0
        assert config.damping == 0.3
        assert config.min_energy == 1e-9
        assert config.max_iterations == 500000
        assert config.require_energy_decrease is False
        assert config.min_emit_separation is None
        assert config.channel_capacity == 1

    def test_emit_interval_in_seconds(self):
        assert SimulationConfig(emit_interval_ms=120).emit_interval == pytest.approx(0.12)

    def test_values_are_normalized_to_float(self):
        config = SimulationConfig(output_width=800, max_seconds=5)
        assert isinstance(config.output_width, float)
        assert isinstance(config.max_seconds, float)

    def test_frozen(self):
        config = SimulationConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.damping = 0.4  # type: ignore[misc]

    def test_replace_returns_validated_copy(self):
        config = SimulationConfig()
        other = config.replace(damping=0.35)
        assert other.damping == 0.35
        assert config.damping == 0.3
        with pytest.raises(InvalidConfigError):
            config.replace(damping=2.0)


class TestConfigValidation:
    """Invalid values are rejected at construction."""

    def test_zero_width_raises(self):
        with pytest.raises(InvalidOutputSizeError, match="width must be positive"):
            SimulationConfig(output_width=0)

    def test_negative_height_raises(self):
        with pytest.raises(InvalidOutputSizeError, match="height must be positive"):
            SimulationConfig(output_height=-5)

    def test_non_positive_seconds_raises(self):
        with pytest.raises(InvalidConfigError, match="max_seconds"):
            SimulationConfig(max_seconds=0)

    def test_damping_out_of_range_raises(self):
        with pytest.raises(InvalidConfigError, match="damping"):
            SimulationConfig(damping=1.0)

    def test_zero_spring_constant_raises(self):
        with pytest.raises(InvalidConfigError, match="spring_constant"):
            SimulationConfig(spring_constant=0)

    def test_negative_energy_raises(self):
        with pytest.raises(InvalidConfigError, match="min_energy"):
            SimulationConfig(min_energy=-1e-9)

    def test_zero_iterations_raises(self):
        with pytest.raises(InvalidConfigError, match="max_iterations"):
            SimulationConfig(max_iterations=0)

    def test_fractional_iterations_raises(self):
        with pytest.raises(InvalidConfigError, match="integer"):
            SimulationConfig(max_iterations=10.5)

    @pytest.mark.parametrize("value", [float("inf"), float("nan"), None, "5"])
    def test_non_integer_iterations_raise_config_error(self, value):
        with pytest.raises(InvalidConfigError, match="max_iterations must be an integer"):
            SimulationConfig(max_iterations=value)

    @pytest.mark.parametrize("value", [float("inf"), None, "2", 1.5])
    def test_non_integer_capacity_raises_config_error(self, value):
        with pytest.raises(InvalidConfigError, match="channel_capacity"):
            SimulationConfig(channel_capacity=value)

    @pytest.mark.parametrize("field", ["max_seconds", "damping", "min_energy", "spring_constant"])
    @pytest.mark.parametrize("value", [None, "fast", "0.5"])
    def test_non_numeric_values_raise_config_error(self, field, value):
        with pytest.raises(InvalidConfigError, match="must be a number"):
            SimulationConfig(**{field: value})

    def test_non_numeric_output_size_raises(self):
        with pytest.raises(InvalidOutputSizeError, match="Output width"):
            SimulationConfig(output_width=None)

    def test_integral_float_iterations_accepted(self):
        assert SimulationConfig(max_iterations=10.0).max_iterations == 10

    def test_min_emit_separation_must_be_positive(self):
        with pytest.raises(InvalidConfigError, match="min_emit_separation"):
            SimulationConfig(min_emit_separation=0)

    def test_config_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            SimulationConfig(channel_capacity=0)


class TestValidators:
    """Standalone validator functions."""

    def test_output_size_tuple(self):
        assert validate_output_size([800, 600]) == (800.0, 600.0)

    def test_output_size_needs_two_elements(self):
        with pytest.raises(InvalidOutputSizeError, match="must have 2 elements"):
            validate_output_size([800])

    def test_damping_bounds(self):
        assert validate_damping(0.35) == 0.35
        with pytest.raises(ValidationError):
            validate_damping(0)

    def test_iterations(self):
        assert validate_iterations(10) == 10
        with pytest.raises(ValidationError):
            validate_iterations(-1)

    def test_capacity_rejects_bool(self):
        with pytest.raises(InvalidConfigError):
            validate_capacity(True)
