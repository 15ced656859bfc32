"""
Input validation utilities for the force layout engine.

Provides the exception hierarchy and the validators used by
SimulationConfig. Raises descriptive exceptions on invalid input.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence


class ValidationError(ValueError):
    """Base exception for layout validation errors."""

    pass


class InvalidConfigError(ValidationError):
    """Raised when a simulation parameter is out of range."""

    pass


class InvalidOutputSizeError(InvalidConfigError):
    """Raised when output dimensions are invalid."""

    pass


class DuplicateKeyError(ValidationError):
    """Raised when two nodes of one graph resolve to the same key."""

    def __init__(self, key: Any) -> None:
        super().__init__(f"Duplicate node key: {key!r}")
        self.key = key


class LayoutRunningError(RuntimeError):
    """Raised when a run is started while another is still active."""

    pass


class ConvergenceWarning(UserWarning):
    """Warning issued when a run is cut off before the energy threshold is reached."""

    pass


def _as_float(
    name: str, value: Any, error: type[ValidationError] = InvalidConfigError
) -> float:
    """Convert a numeric parameter to float, raising ``error`` for non-numbers."""
    if isinstance(value, (bool, str, bytes)):
        raise error(f"{name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise error(f"{name} must be a number, got {value!r}") from exc


def validate_output_size(size: Sequence[float]) -> tuple[float, float]:
    """
    Validate output space dimensions.

    Args:
        size: [width, height] sequence

    Returns:
        Validated (width, height) tuple

    Raises:
        InvalidOutputSizeError: If dimensions are invalid
    """
    if len(size) < 2:
        raise InvalidOutputSizeError(
            f"Output size must have 2 elements [width, height], got {len(size)}"
        )

    width = _as_float("Output width", size[0], InvalidOutputSizeError)
    height = _as_float("Output height", size[1], InvalidOutputSizeError)

    if not width > 0 or math.isinf(width):
        raise InvalidOutputSizeError(f"Output width must be positive, got {width}")
    if not height > 0 or math.isinf(height):
        raise InvalidOutputSizeError(f"Output height must be positive, got {height}")

    return width, height


def validate_positive(name: str, value: float) -> float:
    """
    Validate that a parameter is a finite, strictly positive number.

    Raises:
        InvalidConfigError: If value <= 0, NaN or infinite
    """
    value = _as_float(name, value)
    if not value > 0 or math.isinf(value):
        raise InvalidConfigError(f"{name} must be a positive number, got {value}")
    return value


def validate_non_negative(name: str, value: float) -> float:
    """
    Validate that a parameter is a finite number >= 0.

    Raises:
        InvalidConfigError: If value < 0, NaN or infinite
    """
    value = _as_float(name, value)
    if not value >= 0 or math.isinf(value):
        raise InvalidConfigError(f"{name} must be >= 0, got {value}")
    return value


def validate_damping(damping: float) -> float:
    """
    Validate the per-tick velocity multiplier.

    Args:
        damping: Velocity multiplier applied every iteration

    Returns:
        Validated damping

    Raises:
        InvalidConfigError: If damping not in (0, 1)
    """
    damping = _as_float("damping", damping)
    if not 0 < damping < 1:
        raise InvalidConfigError(f"damping must be in (0, 1), got {damping}")
    return damping


def _as_integer(value: Any) -> Optional[int]:
    """Return value as an int if it is integral, None otherwise."""
    if isinstance(value, (bool, str, bytes)):
        return None
    try:
        as_int = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return as_int if as_int == value else None


def validate_iterations(iterations: int) -> int:
    """
    Validate iteration count is a positive integer.

    Raises:
        InvalidConfigError: If iterations is not integral or < 1
    """
    count = _as_integer(iterations)
    if count is None:
        raise InvalidConfigError(f"max_iterations must be an integer, got {iterations!r}")
    if count < 1:
        raise InvalidConfigError(f"max_iterations must be >= 1, got {iterations}")
    return count


def validate_capacity(capacity: int) -> int:
    """
    Validate snapshot channel capacity.

    Raises:
        InvalidConfigError: If capacity < 1
    """
    count = _as_integer(capacity)
    if count is None or count < 1:
        raise InvalidConfigError(f"channel_capacity must be an integer >= 1, got {capacity!r}")
    return count


def validate_optional_positive(name: str, value: Optional[float]) -> Optional[float]:
    """Like validate_positive, but None is accepted and passed through."""
    if value is None:
        return None
    return validate_positive(name, value)


__all__ = [
    "ValidationError",
    "InvalidConfigError",
    "InvalidOutputSizeError",
    "DuplicateKeyError",
    "LayoutRunningError",
    "ConvergenceWarning",
    "validate_output_size",
    "validate_positive",
    "validate_non_negative",
    "validate_damping",
    "validate_iterations",
    "validate_capacity",
    "validate_optional_positive",
]
