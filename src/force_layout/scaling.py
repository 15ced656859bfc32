"""
Coordinate normalization and snapshot publication.

Raw simulated positions are unbounded. Before they reach the host, they are
mapped onto [0, width] x [0, height] with a per-axis affine transform derived
from the current bounding box.
"""

from __future__ import annotations

import math
from typing import Hashable, Optional, Sequence

import numpy as np

from .graph import GraphState
from .types import CoordinateSnapshot, NodePoint, Point, SnapshotSink
from .validation import validate_optional_positive, validate_output_size


def _normalize_axis(values: np.ndarray, extent: float) -> np.ndarray:
    """Map values onto [0, extent]; a zero range maps everything to 0."""
    if values.size == 0:
        return values
    lo = values.min()
    span = values.max() - lo
    if span == 0:
        return np.zeros_like(values)
    return (values - lo) / span * extent


def scale_positions(
    keys: Sequence[Hashable],
    xs: Sequence[float],
    ys: Sequence[float],
    width: float,
    height: float,
    *,
    iteration: int = 0,
    final: bool = False,
) -> CoordinateSnapshot:
    """
    Normalize raw positions into the output space.

    x' = (x - min_x) / range_x * width, and likewise for y. An axis whose
    range is zero (every node shares the coordinate) maps to 0.

    Args:
        keys: Node keys, parallel to xs and ys
        xs: Raw x positions
        ys: Raw y positions
        width: Output width
        height: Output height
        iteration: Iteration number recorded on the snapshot
        final: Whether this is the terminal snapshot of a run

    Returns:
        CoordinateSnapshot in the order of ``keys``
    """
    x_arr = np.asarray(xs, dtype=np.float64)
    y_arr = np.asarray(ys, dtype=np.float64)
    if not len(keys) == x_arr.size == y_arr.size:
        raise ValueError(
            f"keys, xs and ys must have equal length, got {len(keys)}, {x_arr.size}, {y_arr.size}"
        )

    sx = _normalize_axis(x_arr, width)
    sy = _normalize_axis(y_arr, height)
    points = tuple(
        NodePoint(key, Point(float(x), float(y))) for key, x, y in zip(keys, sx, sy)
    )
    return CoordinateSnapshot(points=points, iteration=iteration, final=final)


def min_separation(snapshot: CoordinateSnapshot) -> float:
    """
    Smallest distance between two points of a snapshot (inf for fewer than 2).

    Compares every pair through an n x n distance matrix, so memory and time
    grow quadratically with the node count. That is fine for diagram-sized
    graphs but makes the near-coincidence filter costly for large ones.
    """
    if len(snapshot) < 2:
        return math.inf
    coords = np.array([item.point for item in snapshot], dtype=np.float64)
    diff = coords[:, None, :] - coords[None, :, :]
    dist = np.hypot(diff[..., 0], diff[..., 1])
    np.fill_diagonal(dist, np.inf)
    return float(dist.min())


class ScalerEmitter:
    """
    Turns the current GraphState into a snapshot and hands it to a sink.

    With ``min_separation`` set, periodic snapshots in which two nodes are
    closer than that distance are suppressed. Final snapshots are never
    suppressed.

    A sink may return False to report that it did not accept the snapshot
    (SnapshotChannel.publish does so once closed). Such snapshots are not
    counted and do not become ``last``.

    Example:
        emitter = ScalerEmitter(800, 600, received.append)
        emitter.emit(graph, iteration=10)
    """

    def __init__(
        self,
        width: float,
        height: float,
        sink: SnapshotSink,
        min_separation: Optional[float] = None,
    ) -> None:
        self._width, self._height = validate_output_size((width, height))
        self._sink = sink
        self._min_separation = validate_optional_positive("min_separation", min_separation)
        self.emitted: int = 0
        self.suppressed: int = 0
        self.last: Optional[CoordinateSnapshot] = None

    @property
    def size(self) -> tuple[float, float]:
        return (self._width, self._height)

    def snapshot(self, graph: GraphState, iteration: int = 0, final: bool = False) -> CoordinateSnapshot:
        """Normalized snapshot of the graph's current positions."""
        xs, ys = graph.positions()
        return scale_positions(
            graph.keys, xs, ys, self._width, self._height, iteration=iteration, final=final
        )

    def emit(self, graph: GraphState, iteration: int = 0, final: bool = False) -> bool:
        """
        Publish the graph's current positions.

        Returns:
            True if the sink accepted the snapshot, False if it was suppressed
            or the sink returned False.
        """
        snapshot = self.snapshot(graph, iteration, final)
        if (
            not final
            and self._min_separation is not None
            and min_separation(snapshot) < self._min_separation
        ):
            self.suppressed += 1
            return False
        if self._sink(snapshot) is False:
            return False
        self.last = snapshot
        self.emitted += 1
        return True


__all__ = ["scale_positions", "min_separation", "ScalerEmitter"]
