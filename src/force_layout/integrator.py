"""
Force-directed integration loop.

The simulation treats every node as a particle:
- All node pairs repel. The repulsive multiplier is repulse_constant / distance,
  applied to the separation vector.
- Every node is pulled toward (or pushed away from) the nodes with an edge into
  it by a capped, piecewise-linear spring with a rest length.
- Velocities are integrated with a unit timestep and damped every iteration.

Nodes are updated in arena order, each one seeing the positions already
updated earlier in the same iteration. After every iteration the energy metric
sum(((|vx| + |vy|) / 2) ** 2) is computed and used as the stopping signal.
"""

from __future__ import annotations

import logging
import math
import time
import warnings
from typing import Callable, Iterable, Optional

import numpy as np

from .config import SimulationConfig
from .graph import GraphState
from .types import Event, EventCallback, EventType, IntegratorState, TerminationReason
from .validation import ConvergenceWarning
from .vector import Vector2

logger = logging.getLogger(__name__)

Emitter = Callable[[GraphState, int, bool], object]


def repulsive_force(
    x: float, y: float, other_x: float, other_y: float, repulse_constant: float
) -> Vector2:
    """
    Repulsive force exerted on (x, y) by (other_x, other_y).

    The multiplier repulse_constant / distance scales the separation vector,
    and is 0 when the two points coincide.
    """
    dx = x - other_x
    dy = y - other_y
    distance = math.hypot(dx, dy)
    multiplier = repulse_constant / distance if distance > 0 else 0.0
    return Vector2(multiplier * dx, multiplier * dy)


def attractive_force(
    x: float, y: float, other_x: float, other_y: float, config: SimulationConfig
) -> Vector2:
    """
    Spring force exerted on (x, y) by a connected node at (other_x, other_y).

    The multiplier grows linearly with the distance from the rest length,
    saturates at spring_multiplier_cap and is amplified by spring_amplifier.
    Nodes closer than the rest length are pushed apart, farther nodes pulled
    together. At exactly the rest length the force is zero.
    """
    dx = x - other_x
    dy = y - other_y
    distance = math.hypot(dx, dy)

    stable = config.spring_stable_distance
    multiplier = min(abs(distance - stable) / config.spring_constant, config.spring_multiplier_cap)
    direction = 1.0 if distance < stable else -1.0
    multiplier *= direction * config.spring_amplifier
    return Vector2(multiplier * dx, multiplier * dy)


def kinetic_energy(velocities: Iterable[Vector2]) -> float:
    """Energy metric: sum of ((|vx| + |vy|) / 2) ** 2 over all velocities."""
    total = 0.0
    for v in velocities:
        total += ((abs(v.dx) + abs(v.dy)) / 2.0) ** 2
    return total


class Integrator:
    """
    Runs the physics loop over a pre-solved GraphState.

    The integrator is single-use: it goes from RUNNING to TERMINATED exactly
    once. Termination happens when the iteration ceiling is reached, the energy
    metric drops below ``min_energy``, the wall-clock budget runs out, or
    ``should_stop`` returns True (polled once per iteration).

    Except after cancellation, a final snapshot is always handed to the
    emitter on termination, even if a periodic one was just emitted.

    Example:
        graph = build_graph(nodes, edges, key_of, src_of, dst_of)
        presolve(graph)
        emitter = ScalerEmitter(100, 100, sink)
        reason = Integrator(graph, SimulationConfig(), emitter=emitter.emit).run()
    """

    def __init__(
        self,
        graph: GraphState,
        config: Optional[SimulationConfig] = None,
        *,
        emitter: Optional[Emitter] = None,
        should_stop: Optional[Callable[[], bool]] = None,
        clock: Callable[[], float] = time.monotonic,
        on_start: Optional[EventCallback] = None,
        on_tick: Optional[EventCallback] = None,
        on_end: Optional[EventCallback] = None,
    ) -> None:
        """
        Initialize the integrator.

        Args:
            graph: Node-state arena, already pre-solved
            config: Simulation parameters (defaults if None)
            emitter: Called as emitter(graph, iteration, final) to publish positions
            should_stop: Cancellation predicate, polled once per iteration
            clock: Monotonic time source in seconds
            on_start: Callback for start event
            on_tick: Callback for tick event
            on_end: Callback for end event
        """
        self._graph = graph
        self._config = config if config is not None else SimulationConfig()
        self._emitter = emitter
        self._should_stop = should_stop
        self._clock = clock

        self._events: dict[EventType, EventCallback] = {}
        if on_start:
            self._events[EventType.start] = on_start
        if on_tick:
            self._events[EventType.tick] = on_tick
        if on_end:
            self._events[EventType.end] = on_end

        self._state = IntegratorState.RUNNING
        self._reason: Optional[TerminationReason] = None
        self._iteration: int = 0
        self._energy: float = 0.0
        self._last_energy: float = math.inf
        self._started: Optional[float] = None
        self._last_emit: float = 0.0
        self._elapsed: float = 0.0

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def graph(self) -> GraphState:
        return self._graph

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def state(self) -> IntegratorState:
        return self._state

    @property
    def reason(self) -> Optional[TerminationReason]:
        """Why the loop stopped, or None while running."""
        return self._reason

    @property
    def iteration(self) -> int:
        """Number of completed iterations."""
        return self._iteration

    @property
    def energy(self) -> float:
        """Energy metric after the latest iteration (0 before the first)."""
        return self._energy

    @property
    def elapsed(self) -> float:
        """Seconds spent since the first iteration started."""
        return self._elapsed

    # -------------------------------------------------------------------------
    # Event System
    # -------------------------------------------------------------------------

    def trigger(self, event: Event) -> None:
        """Call the listener registered for the event type, if any."""
        event_type = event.get("type")
        if event_type is not None and event_type in self._events:
            self._events[event_type](event)

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    def run(self) -> TerminationReason:
        """
        Iterate until a stopping condition holds.

        Returns:
            The termination reason.

        Raises:
            RuntimeError: If the integrator has already terminated.
        """
        if self._state is IntegratorState.TERMINATED:
            raise RuntimeError("Integrator has already terminated")

        if self._started is None:
            self._begin()
        while self._reason is None:
            if self._should_stop is not None and self._should_stop():
                self._terminate(TerminationReason.CANCELLED)
                break
            self.tick()

        assert self._reason is not None
        return self._reason

    def tick(self) -> bool:
        """
        Perform one iteration.

        Returns:
            True once the integrator has terminated, False otherwise.
        """
        if self._state is IntegratorState.TERMINATED:
            return True
        if self._started is None:
            self._begin()
        assert self._started is not None

        energy = self._step()
        if self._iteration > 0:
            self._last_energy = self._energy
        self._energy = energy
        self._iteration += 1

        now = self._clock()
        self._elapsed = now - self._started

        self.trigger({"type": EventType.tick, "iteration": self._iteration, "energy": energy})

        if self._emitter is not None and now - self._last_emit >= self._config.emit_interval:
            self._emitter(self._graph, self._iteration, False)
            self._last_emit = now

        reason = self._check_termination()
        if reason is not None:
            self._terminate(reason)
            return True
        return False

    def cancel(self) -> None:
        """Terminate without a final emission."""
        if self._state is IntegratorState.RUNNING:
            self._terminate(TerminationReason.CANCELLED)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _begin(self) -> None:
        self._started = self._clock()
        self._last_emit = self._started
        self.trigger({"type": EventType.start, "iteration": 0, "energy": self._energy})

    def _check_termination(self) -> Optional[TerminationReason]:
        config = self._config
        if self._iteration >= config.max_iterations:
            return TerminationReason.MAX_ITERATIONS
        if self._energy < config.min_energy:
            if not config.require_energy_decrease or self._energy < self._last_energy:
                return TerminationReason.CONVERGED
        if self._elapsed >= config.max_seconds:
            return TerminationReason.TIMEOUT
        return None

    def _terminate(self, reason: TerminationReason) -> None:
        self._state = IntegratorState.TERMINATED
        self._reason = reason
        if self._started is not None:
            self._elapsed = self._clock() - self._started

        if reason is not TerminationReason.CANCELLED and self._emitter is not None:
            self._emitter(self._graph, self._iteration, True)

        if reason is TerminationReason.TIMEOUT:
            warnings.warn(
                f"Layout stopped after {self._config.max_seconds:g}s "
                f"({self._iteration} iterations) with energy {self._energy:.3g} "
                f"above threshold {self._config.min_energy:.3g}.",
                ConvergenceWarning,
                stacklevel=3,
            )

        logger.debug(
            "integrator terminated: reason=%s iterations=%d energy=%.3g elapsed=%.3fs",
            reason.value,
            self._iteration,
            self._energy,
            self._elapsed,
        )
        self.trigger(
            {
                "type": EventType.end,
                "iteration": self._iteration,
                "energy": self._energy,
                "reason": reason,
            }
        )

    def _step(self) -> float:
        """Advance every node once and return the energy metric."""
        graph = self._graph
        if len(graph) == 0:
            return 0.0

        config = self._config
        xs, ys = graph.positions()

        for i, node in enumerate(graph.nodes):
            force = self._repulsion(i, xs, ys)
            for j in node.inputs:
                force.add(attractive_force(node.x, node.y, float(xs[j]), float(ys[j]), config))

            node.velocity.add(force).scale(config.damping)
            node.x += node.velocity.dx
            node.y += node.velocity.dy
            xs[i] = node.x
            ys[i] = node.y

        return kinetic_energy(node.velocity for node in graph)

    def _repulsion(self, i: int, xs: np.ndarray, ys: np.ndarray) -> Vector2:
        """Net repulsive force on node i from every other node."""
        dx = xs[i] - xs
        dy = ys[i] - ys
        dist = np.hypot(dx, dy)
        multiplier = np.divide(
            self._config.repulse_constant, dist, out=np.zeros_like(dist), where=dist > 0
        )
        return Vector2(float(multiplier @ dx), float(multiplier @ dy))


__all__ = [
    "Integrator",
    "repulsive_force",
    "attractive_force",
    "kinetic_energy",
]
