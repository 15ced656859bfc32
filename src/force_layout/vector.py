"""
Minimal mutable 2D vector used for velocities and forces.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing_extensions import Self


class Vector2:
    """
    Mutable 2D vector.

    In-place operations return self so updates can be chained:

        velocity.add(force).scale(damping)
    """

    __slots__ = ("dx", "dy")

    def __init__(self, dx: float = 0.0, dy: float = 0.0) -> None:
        self.dx = float(dx)
        self.dy = float(dy)

    def add(self, other: Vector2) -> Self:
        """Add another vector to this one."""
        self.dx += other.dx
        self.dy += other.dy
        return self

    def scale(self, multiplier: float) -> Self:
        """Multiply both components by a scalar."""
        self.dx *= multiplier
        self.dy *= multiplier
        return self

    def add_scaled(self, other: Vector2, multiplier: float) -> Self:
        """Add ``other * multiplier`` to this vector."""
        self.dx += other.dx * multiplier
        self.dy += other.dy * multiplier
        return self

    def length(self) -> float:
        """Euclidean length."""
        return math.hypot(self.dx, self.dy)

    def copy(self) -> Vector2:
        return Vector2(self.dx, self.dy)

    def __iter__(self):
        yield self.dx
        yield self.dy

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector2):
            return NotImplemented
        return self.dx == other.dx and self.dy == other.dy

    def __repr__(self) -> str:
        return f"Vector2(dx={self.dx:.4f}, dy={self.dy:.4f})"


__all__ = ["Vector2"]
