"""
force-layout: Force-directed layout engine for host-owned graphs.

The engine positions the nodes of an arbitrary directed graph by simulating
repulsion between all nodes and springs along edges. Node and edge objects
stay opaque: identity keys are read through injected functions, and results
are published as immutable, normalized coordinate snapshots.

Pipeline (one background run per ForceLayout.start call):
- graph: Node-state arena built from opaque nodes/edges
- presolve: Non-degenerate initial placement by topological depth
- integrator: Repulsion / attraction / damping loop with energy-based stopping
- scaling: Normalization into the output space and snapshot publication
- driver: Background execution, cancellation and outcome reporting
"""

__version__ = "0.1.0"

from .channel import SnapshotChannel
from .config import SimulationConfig
from .driver import ForceLayout, LayoutRun, RunResult
from .graph import GraphState, NodeState, build_graph
from .integrator import Integrator, attractive_force, kinetic_energy, repulsive_force
from .presolve import compute_sort_scores, presolve
from .scaling import ScalerEmitter, min_separation, scale_positions
from .types import (
    CoordinateSnapshot,
    EdgeKeyOf,
    Event,
    EventCallback,
    EventType,
    IntegratorState,
    KeyOf,
    NodeKey,
    NodePoint,
    Point,
    RunStatus,
    SnapshotSink,
    TerminationReason,
)
from .validation import (
    ConvergenceWarning,
    DuplicateKeyError,
    InvalidConfigError,
    InvalidOutputSizeError,
    LayoutRunningError,
    ValidationError,
)
from .vector import Vector2

__all__ = [
    # Version
    "__version__",
    # Shared types
    "Vector2",
    "Point",
    "NodePoint",
    "CoordinateSnapshot",
    "EventType",
    "Event",
    "TerminationReason",
    "IntegratorState",
    "RunStatus",
    "NodeKey",
    "KeyOf",
    "EdgeKeyOf",
    "SnapshotSink",
    "EventCallback",
    # Configuration
    "SimulationConfig",
    # Graph state
    "NodeState",
    "GraphState",
    "build_graph",
    # Pre-solve
    "compute_sort_scores",
    "presolve",
    # Integrator
    "Integrator",
    "repulsive_force",
    "attractive_force",
    "kinetic_energy",
    # Scaling
    "ScalerEmitter",
    "scale_positions",
    "min_separation",
    "SnapshotChannel",
    # Driver
    "ForceLayout",
    "LayoutRun",
    "RunResult",
    # Errors
    "ValidationError",
    "InvalidConfigError",
    "InvalidOutputSizeError",
    "DuplicateKeyError",
    "LayoutRunningError",
    "ConvergenceWarning",
]
