"""
Common types for the force layout engine.

This module provides the value types shared across the engine:
- Point / NodePoint: Normalized output coordinates
- CoordinateSnapshot: Immutable set of node coordinates handed to a sink
- EventType / Event: Simulation lifecycle events
- RunStatus / TerminationReason / IntegratorState: Run outcome enums
- Key extraction and sink callable aliases
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Callable, Hashable, Iterator, NamedTuple, Optional, TypedDict


class EventType(IntEnum):
    """
    Simulation lifecycle events.

    - start: Integration loop is about to begin
    - tick: Fired once per iteration
    - end: Integration loop has terminated
    """

    start = 0
    tick = 1
    end = 2


class TerminationReason(Enum):
    """Why the integration loop stopped."""

    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class IntegratorState(Enum):
    """Integrator lifecycle. There is no pause/resume."""

    RUNNING = "running"
    TERMINATED = "terminated"


class RunStatus(Enum):
    """Outcome of one background layout run."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    iteration: int
    energy: float
    reason: Optional[TerminationReason]


class Point(NamedTuple):
    """A normalized output coordinate."""

    x: float
    y: float


class NodePoint(NamedTuple):
    """A node key paired with its normalized coordinate."""

    key: Any
    point: Point


@dataclass(frozen=True)
class CoordinateSnapshot:
    """
    Ordered, immutable set of normalized node coordinates.

    Snapshots are plain values: they hold no references into engine state and
    can be kept or handed to another thread by the consumer.

    Attributes:
        points: (key, point) pairs in graph input order
        iteration: Integrator iteration the snapshot was taken at
        final: True for the terminal snapshot of a run
    """

    points: tuple[NodePoint, ...] = ()
    iteration: int = 0
    final: bool = False

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[NodePoint]:
        return iter(self.points)

    def __getitem__(self, index: int) -> NodePoint:
        return self.points[index]

    def keys(self) -> list[Any]:
        """Node keys in snapshot order."""
        return [item.key for item in self.points]

    def as_dict(self) -> dict[Any, Point]:
        """Map each node key to its point."""
        return {item.key: item.point for item in self.points}


# Callable aliases for the host application contracts
NodeKey = Hashable
KeyOf = Callable[[Any], Hashable]
EdgeKeyOf = Callable[[Any], Optional[Hashable]]
SnapshotSink = Callable[[CoordinateSnapshot], Optional[bool]]
EventCallback = Callable[[Event], None]


__all__ = [
    "EventType",
    "Event",
    "TerminationReason",
    "IntegratorState",
    "RunStatus",
    "Point",
    "NodePoint",
    "CoordinateSnapshot",
    "NodeKey",
    "KeyOf",
    "EdgeKeyOf",
    "SnapshotSink",
    "EventCallback",
]
