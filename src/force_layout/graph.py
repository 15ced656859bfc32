"""
Graph state construction.

Turns opaque host node/edge objects into the engine's node-state arena.
The engine never inspects node or edge objects itself; everything it needs is
read through three key-extraction functions supplied by the host:

- key_of(node) -> key
- source_key_of(edge) -> key or None
- destination_key_of(edge) -> key or None

Adjacency is stored as integer indices into the arena, in both directions:
``nexts`` (edges leaving a node) drive the pre-solve traversal and
``inputs`` (edges entering a node) drive the spring forces.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Hashable, Iterable, Iterator, Optional

import numpy as np

from .types import EdgeKeyOf, KeyOf
from .validation import DuplicateKeyError
from .vector import Vector2

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class NodeState:
    """
    Simulation record for one node.

    Attributes:
        key: Host-supplied identity
        x: Raw x position
        y: Raw y position
        velocity: Current velocity
        sort_score: Approximate topological depth (pre-solve only)
        inputs: Arena indices of nodes with an edge into this node
        nexts: Arena indices of nodes this node has an edge to
    """

    key: Hashable
    x: float = 0.0
    y: float = 0.0
    velocity: Vector2 = field(default_factory=Vector2)
    sort_score: float = 1.0
    inputs: list[int] = field(default_factory=list)
    nexts: list[int] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"NodeState(key={self.key!r}, x={self.x:.2f}, y={self.y:.2f})"


class GraphState:
    """
    Arena of NodeState records for one run.

    Nodes keep their input order; ``index_of`` maps a key to its position.
    The key set is fixed once the arena is built.
    """

    def __init__(self) -> None:
        self.nodes: list[NodeState] = []
        self._index: dict[Hashable, int] = {}
        self.edge_count: int = 0
        self.dropped_edges: int = 0

    def add_node(self, key: Hashable) -> int:
        """
        Append a node for ``key`` and return its index.

        Raises:
            DuplicateKeyError: If ``key`` is already present.
        """
        if key in self._index:
            raise DuplicateKeyError(key)
        index = len(self.nodes)
        self._index[key] = index
        self.nodes.append(NodeState(key=key))
        return index

    def index_of(self, key: Optional[Hashable]) -> Optional[int]:
        """Index of ``key``, or None for None/unknown keys."""
        if key is None:
            return None
        return self._index.get(key)

    def add_edge(self, source: int, destination: int) -> None:
        """Record a directed edge between two distinct arena indices."""
        self.nodes[source].nexts.append(destination)
        self.nodes[destination].inputs.append(source)
        self.edge_count += 1

    @property
    def keys(self) -> list[Hashable]:
        return [node.key for node in self.nodes]

    def positions(self) -> tuple[np.ndarray, np.ndarray]:
        """Current raw positions as (xs, ys) float arrays."""
        xs = np.fromiter((node.x for node in self.nodes), dtype=np.float64, count=len(self))
        ys = np.fromiter((node.y for node in self.nodes), dtype=np.float64, count=len(self))
        return xs, ys

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[NodeState]:
        return iter(self.nodes)

    def __getitem__(self, index: int) -> NodeState:
        return self.nodes[index]

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __repr__(self) -> str:
        return f"GraphState(nodes={len(self.nodes)}, edges={self.edge_count})"


def build_graph(
    nodes: Iterable[Any],
    edges: Iterable[Any],
    key_of: KeyOf,
    source_key_of: EdgeKeyOf,
    destination_key_of: EdgeKeyOf,
) -> GraphState:
    """
    Build the node-state arena for one run.

    Edges whose endpoints are missing or unknown refer to nodes outside the
    current graph and are dropped, as are self-loops. Exceptions raised by the
    extraction functions propagate to the caller.

    Args:
        nodes: Opaque node objects, in the order they should be laid out
        edges: Opaque edge objects
        key_of: Returns the identity key of a node
        source_key_of: Returns the key of an edge's source node, or None
        destination_key_of: Returns the key of an edge's destination node, or None

    Returns:
        GraphState with one NodeState per node

    Raises:
        DuplicateKeyError: If two nodes share a key.

    Example:
        >>> graph = build_graph(["a", "b"], [("a", "b")], str,
        ...                     lambda e: e[0], lambda e: e[1])
        >>> graph[1].inputs
        [0]
    """
    graph = GraphState()

    for node in nodes:
        graph.add_node(key_of(node))

    for edge in edges:
        src = graph.index_of(source_key_of(edge))
        dst = graph.index_of(destination_key_of(edge))
        if src is None or dst is None or src == dst:
            graph.dropped_edges += 1
            continue
        graph.add_edge(src, dst)

    logger.debug(
        "built graph with %d nodes, %d edges (%d dropped)",
        len(graph),
        graph.edge_count,
        graph.dropped_edges,
    )
    return graph


__all__ = ["NodeState", "GraphState", "build_graph"]
