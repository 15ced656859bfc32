"""
Background execution of layout runs.

ForceLayout wires the pipeline together for one run:

    build_graph -> presolve -> Integrator (-> ScalerEmitter per emission)

and executes it on a worker thread, so the caller is never blocked. Snapshots
travel to the host's sink through a SnapshotChannel drained by a second
thread. The caller gets a LayoutRun handle to cancel the run or wait for its
RunResult.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

if TYPE_CHECKING:
    from typing_extensions import Self

from .channel import SnapshotChannel
from .config import SimulationConfig
from .graph import build_graph
from .integrator import Integrator
from .presolve import presolve
from .scaling import ScalerEmitter
from .types import (
    CoordinateSnapshot,
    EdgeKeyOf,
    EventCallback,
    KeyOf,
    RunStatus,
    SnapshotSink,
    TerminationReason,
)
from .validation import LayoutRunningError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    """
    Outcome of one layout run.

    Attributes:
        status: COMPLETED, CANCELLED or FAILED
        reason: Why the integrator stopped (None if it never ran)
        iterations: Completed iterations
        energy: Energy metric after the last iteration
        elapsed: Seconds from start of the run to its end
        snapshot: Final snapshot delivered to the sink (None unless completed)
        error: Exception that failed the run, if any
    """

    status: RunStatus
    reason: Optional[TerminationReason] = None
    iterations: int = 0
    energy: float = 0.0
    elapsed: float = 0.0
    snapshot: Optional[CoordinateSnapshot] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is RunStatus.COMPLETED

    def raise_for_status(self) -> None:
        """Re-raise the exception that failed the run, if any."""
        if self.error is not None:
            raise self.error


class LayoutRun:
    """
    Handle on one background run.

    Cancellation is cooperative: the integrator polls the flag once per
    iteration, so a cancelled run stops within one iteration and reports
    RunStatus.CANCELLED without a final snapshot.
    """

    def __init__(self, config: SimulationConfig) -> None:
        self.config = config
        self._cancel_event = threading.Event()
        self._failure: Optional[BaseException] = None
        self._failure_lock = threading.Lock()
        self._future: Optional[Future[RunResult]] = None

    def cancel(self) -> bool:
        """
        Request cancellation.

        Returns:
            False if the run had already finished, True otherwise.
        """
        if self.done():
            return False
        self._cancel_event.set()
        return True

    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._cancel_event.is_set()

    def done(self) -> bool:
        return self._future is not None and self._future.done()

    def result(self, timeout: Optional[float] = None) -> RunResult:
        """
        Wait for the run to finish.

        Raises:
            concurrent.futures.TimeoutError: If the run does not finish in time.
        """
        assert self._future is not None
        return self._future.result(timeout)

    def add_done_callback(self, fn: Callable[[LayoutRun], Any]) -> None:
        """Call ``fn(run)`` once the run has finished (immediately if it already has)."""
        assert self._future is not None
        self._future.add_done_callback(lambda _: fn(self))

    @property
    def failure(self) -> Optional[BaseException]:
        """Exception raised by the sink, if any."""
        with self._failure_lock:
            return self._failure

    def _fail(self, exc: BaseException) -> None:
        with self._failure_lock:
            if self._failure is None:
                self._failure = exc

    def _should_stop(self) -> bool:
        return self._cancel_event.is_set() or self.failure is not None

    def __repr__(self) -> str:
        state = "done" if self.done() else "running"
        return f"LayoutRun({state}, cancelled={self.cancelled()})"


class ForceLayout:
    """
    Force-directed layout engine for opaque host graphs.

    The engine knows nothing about node or edge objects: identity keys are read
    through the three extraction functions and normalized coordinates are
    published to ``sink`` as CoordinateSnapshot values, zero or more times
    during a run and once when it ends.

    Only one run per engine may be active at a time.

    Example:
        layout = ForceLayout(
            key_of=lambda node: node.id,
            source_key_of=lambda edge: edge.source_id,
            destination_key_of=lambda edge: edge.target_id,
            sink=canvas.apply,
            config=SimulationConfig(output_width=800, output_height=600),
        )
        run = layout.start(nodes, edges)
        ...
        result = run.result()
    """

    def __init__(
        self,
        key_of: KeyOf,
        source_key_of: EdgeKeyOf,
        destination_key_of: EdgeKeyOf,
        sink: SnapshotSink,
        *,
        config: Optional[SimulationConfig] = None,
        on_start: Optional[EventCallback] = None,
        on_tick: Optional[EventCallback] = None,
        on_end: Optional[EventCallback] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the engine.

        Args:
            key_of: Returns the identity key of a node
            source_key_of: Returns the key of an edge's source node, or None
            destination_key_of: Returns the key of an edge's destination node, or None
            sink: Receives every published snapshot, on the engine's sink thread
            config: Simulation parameters (defaults if None)
            on_start: Callback for the integrator start event
            on_tick: Callback for the integrator tick event
            on_end: Callback for the integrator end event
            clock: Monotonic time source in seconds
        """
        self._key_of = key_of
        self._source_key_of = source_key_of
        self._destination_key_of = destination_key_of
        self._sink = sink
        self._config = config if config is not None else SimulationConfig()
        self._on_start = on_start
        self._on_tick = on_tick
        self._on_end = on_end
        self._clock = clock

        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._active: Optional[LayoutRun] = None

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def config(self) -> SimulationConfig:
        """Configuration used by the next run."""
        return self._config

    @config.setter
    def config(self, value: SimulationConfig) -> None:
        if not isinstance(value, SimulationConfig):
            raise TypeError(f"config must be a SimulationConfig, got {type(value).__name__}")
        self._config = value

    @property
    def running(self) -> bool:
        """Whether a run is currently active."""
        with self._lock:
            return self._active is not None and not self._active.done()

    @property
    def active_run(self) -> Optional[LayoutRun]:
        """The most recently started run."""
        return self._active

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    def start(self, nodes: Iterable[Any], edges: Iterable[Any]) -> LayoutRun:
        """
        Start a layout run in the background.

        The node and edge sequences are copied before returning; the key set is
        fixed for the whole run.

        Returns:
            Handle on the run

        Raises:
            LayoutRunningError: If the previous run has not finished.
        """
        node_list = list(nodes)
        edge_list = list(edges)

        with self._lock:
            if self._active is not None and not self._active.done():
                raise LayoutRunningError(
                    "A layout run is already active; cancel it or wait for its result first"
                )
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=2, thread_name_prefix="force-layout"
                )

            config = self._config
            run = LayoutRun(config)
            channel = SnapshotChannel(config.channel_capacity)
            dispatch = self._executor.submit(self._dispatch, run, channel)
            run._future = self._executor.submit(
                self._execute, run, channel, dispatch, node_list, edge_list
            )
            self._active = run

        logger.debug("layout run submitted: %d nodes, %d edges", len(node_list), len(edge_list))
        return run

    def run(
        self, nodes: Iterable[Any], edges: Iterable[Any], timeout: Optional[float] = None
    ) -> RunResult:
        """Start a run and wait for its result."""
        return self.start(nodes, edges).result(timeout)

    def cancel(self) -> bool:
        """Cancel the active run, if any."""
        run = self._active
        return run.cancel() if run is not None else False

    def shutdown(self, wait: bool = True) -> None:
        """Release the worker threads. A later start() creates new ones."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.cancel()
        self.shutdown(wait=True)

    # -------------------------------------------------------------------------
    # Worker side
    # -------------------------------------------------------------------------

    def _execute(
        self,
        run: LayoutRun,
        channel: SnapshotChannel,
        dispatch: Future[None],
        nodes: list[Any],
        edges: list[Any],
    ) -> RunResult:
        config = run.config
        started = self._clock()
        integrator: Optional[Integrator] = None
        emitter: Optional[ScalerEmitter] = None
        error: Optional[BaseException] = None

        try:
            graph = build_graph(
                nodes, edges, self._key_of, self._source_key_of, self._destination_key_of
            )
            presolve(graph)
            emitter = ScalerEmitter(
                config.output_width,
                config.output_height,
                channel.publish,
                min_separation=config.min_emit_separation,
            )
            integrator = Integrator(
                graph,
                config,
                emitter=emitter.emit,
                should_stop=run._should_stop,
                clock=self._clock,
                on_start=self._on_start,
                on_tick=self._on_tick,
                on_end=self._on_end,
            )
            integrator.run()
        except Exception as exc:
            error = exc
        finally:
            channel.close()
            dispatch.result()

        failure = error if error is not None else run.failure
        reason = integrator.reason if integrator is not None else None

        if failure is not None:
            status = RunStatus.FAILED
            logger.warning("layout run failed: %s", failure, exc_info=failure)
        elif reason is TerminationReason.CANCELLED:
            status = RunStatus.CANCELLED
        else:
            status = RunStatus.COMPLETED

        snapshot = None
        if status is RunStatus.COMPLETED and emitter is not None:
            snapshot = emitter.last

        result = RunResult(
            status=status,
            reason=reason,
            iterations=integrator.iteration if integrator is not None else 0,
            energy=integrator.energy if integrator is not None else 0.0,
            elapsed=self._clock() - started,
            snapshot=snapshot,
            error=failure,
        )
        logger.debug(
            "layout run finished: status=%s reason=%s iterations=%d",
            status.value,
            reason.value if reason is not None else None,
            result.iterations,
        )
        return result

    def _dispatch(self, run: LayoutRun, channel: SnapshotChannel) -> None:
        """Deliver snapshots to the sink until the channel is closed and drained."""
        for snapshot in channel:
            try:
                self._sink(snapshot)
            except Exception as exc:
                run._fail(exc)
                channel.close()
                return


__all__ = ["ForceLayout", "LayoutRun", "RunResult"]
