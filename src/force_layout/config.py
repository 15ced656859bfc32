"""
Simulation configuration.

All parameters are optional; the defaults reproduce the classic behaviour of
the engine on diagram-sized graphs (tens to low hundreds of nodes).
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Optional

from .validation import (
    validate_capacity,
    validate_damping,
    validate_iterations,
    validate_non_negative,
    validate_optional_positive,
    validate_output_size,
    validate_positive,
)

# Defaults
DEFAULT_MAX_SECONDS = 30.0
DEFAULT_OUTPUT_WIDTH = 100.0
DEFAULT_OUTPUT_HEIGHT = 100.0
DEFAULT_EMIT_INTERVAL_MS = 50.0
DEFAULT_REPULSE_CONSTANT = 0.03
DEFAULT_SPRING_CONSTANT = 2000.0
DEFAULT_SPRING_AMPLIFIER = 10.0
DEFAULT_SPRING_STABLE_DISTANCE = 200.0
DEFAULT_SPRING_MULTIPLIER_CAP = 3.0
DEFAULT_DAMPING = 0.3
DEFAULT_MIN_ENERGY = 1e-9
DEFAULT_MAX_ITERATIONS = 500000


@dataclass(frozen=True)
class SimulationConfig:
    """
    Parameters for one layout run.

    Attributes:
        max_seconds: Wall-clock budget for the integration loop.
        output_width: Width of the normalized output space.
        output_height: Height of the normalized output space.
        emit_interval_ms: Minimum time between two periodic snapshots.
        repulse_constant: Repulsion strength. The repulsive multiplier is
            repulse_constant / distance, applied to the separation vector.
        spring_constant: Divisor turning distance-from-rest into a spring
            multiplier. Larger values give softer springs.
        spring_amplifier: Factor applied to the (capped) spring multiplier.
        spring_stable_distance: Rest length of the spring between connected nodes.
        spring_multiplier_cap: Saturation of the spring multiplier, so that
            far-away neighbours do not dominate.
        damping: Velocity multiplier applied every iteration, in (0, 1).
        min_energy: The run stops once the energy metric falls below this.
        max_iterations: Safety ceiling on iterations.
        require_energy_decrease: Only honour min_energy when the energy metric
            has strictly decreased since the previous iteration.
        min_emit_separation: If set, periodic snapshots whose closest pair of
            nodes is nearer than this (in output units) are not emitted.
        channel_capacity: Number of periodic snapshots that may wait for the
            sink. Older pending snapshots are discarded when it is full.

    Example:
        config = SimulationConfig(max_seconds=5, output_width=800, output_height=600)
        faster = config.replace(damping=0.35)
    """

    max_seconds: float = DEFAULT_MAX_SECONDS
    output_width: float = DEFAULT_OUTPUT_WIDTH
    output_height: float = DEFAULT_OUTPUT_HEIGHT
    emit_interval_ms: float = DEFAULT_EMIT_INTERVAL_MS
    repulse_constant: float = DEFAULT_REPULSE_CONSTANT
    spring_constant: float = DEFAULT_SPRING_CONSTANT
    spring_amplifier: float = DEFAULT_SPRING_AMPLIFIER
    spring_stable_distance: float = DEFAULT_SPRING_STABLE_DISTANCE
    spring_multiplier_cap: float = DEFAULT_SPRING_MULTIPLIER_CAP
    damping: float = DEFAULT_DAMPING
    min_energy: float = DEFAULT_MIN_ENERGY
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    require_energy_decrease: bool = False
    min_emit_separation: Optional[float] = None
    channel_capacity: int = 1

    def __post_init__(self) -> None:
        # Frozen dataclass: normalized values are written back with object.__setattr__
        width, height = validate_output_size((self.output_width, self.output_height))
        normalized = {
            "max_seconds": validate_positive("max_seconds", self.max_seconds),
            "output_width": width,
            "output_height": height,
            "emit_interval_ms": validate_non_negative("emit_interval_ms", self.emit_interval_ms),
            "repulse_constant": validate_non_negative("repulse_constant", self.repulse_constant),
            "spring_constant": validate_positive("spring_constant", self.spring_constant),
            "spring_amplifier": validate_non_negative("spring_amplifier", self.spring_amplifier),
            "spring_stable_distance": validate_non_negative(
                "spring_stable_distance", self.spring_stable_distance
            ),
            "spring_multiplier_cap": validate_non_negative(
                "spring_multiplier_cap", self.spring_multiplier_cap
            ),
            "damping": validate_damping(self.damping),
            "min_energy": validate_non_negative("min_energy", self.min_energy),
            "max_iterations": validate_iterations(self.max_iterations),
            "require_energy_decrease": bool(self.require_energy_decrease),
            "min_emit_separation": validate_optional_positive(
                "min_emit_separation", self.min_emit_separation
            ),
            "channel_capacity": validate_capacity(self.channel_capacity),
        }
        for name, value in normalized.items():
            object.__setattr__(self, name, value)

    @property
    def output_size(self) -> tuple[float, float]:
        """Output space as (width, height)."""
        return (self.output_width, self.output_height)

    @property
    def emit_interval(self) -> float:
        """Periodic emission interval in seconds."""
        return self.emit_interval_ms / 1000.0

    def replace(self, **overrides: Any) -> SimulationConfig:
        """Return a validated copy with some fields replaced."""
        return dataclasses.replace(self, **overrides)


__all__ = ["SimulationConfig"]
