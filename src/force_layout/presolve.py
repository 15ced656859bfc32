"""
Initial placement before simulation.

Nodes are scored by an approximate topological depth and laid out as a
left-to-right ribbon: nodes sharing a score are stacked in a wrapping band,
and every change of score starts a new column further right. No two nodes
share a position, which keeps the repulsion direction defined from the very
first iteration.

Scoring walks forward from every node with a visited set local to that walk,
so the cost is O(V * (V + E)). That is fine for diagram-sized graphs but is
the limiting factor for large ones.
"""

from __future__ import annotations

from .graph import GraphState
from .vector import Vector2

# Placement steps
X_STEP = 15.0
X_STEP_SMALL = 5.0
Y_STEP = 9.0
MAX_Y = 100.0


def compute_sort_scores(graph: GraphState) -> list[float]:
    """
    Assign every node its approximate topological depth.

    Each node starts at 1. Then, for every root, each edge u -> v leaving a
    node u reachable from that root adds 1 to v. Visited sets are per root,
    so cycles terminate and a node can be counted once per root that reaches it.

    Returns:
        The scores, in arena order (also stored on each NodeState).
    """
    for node in graph:
        node.sort_score = 1.0

    for root in range(len(graph)):
        visited = {root}
        stack = [root]
        while stack:
            current = stack.pop()
            for nxt in graph[current].nexts:
                graph[nxt].sort_score += 1.0
                if nxt not in visited:
                    visited.add(nxt)
                    stack.append(nxt)

    return [node.sort_score for node in graph]


def presolve(graph: GraphState) -> None:
    """
    Give every node a distinct starting position and zero velocity.

    Nodes are stable-sorted by sort score. Consecutive nodes with equal score
    step right by X_STEP_SMALL and down by Y_STEP, wrapping at MAX_Y; a change
    of score steps right by X_STEP and pulls y back up by one Y_STEP.
    """
    compute_sort_scores(graph)
    ordered = sorted(graph, key=lambda node: node.sort_score)

    x = X_STEP_SMALL
    y = 0.0
    last_score = 1.0

    for node in ordered:
        if node.sort_score == last_score:
            y = (y + Y_STEP) % MAX_Y
            x += X_STEP_SMALL
        else:
            x += X_STEP
            if y > Y_STEP:
                y -= Y_STEP
        last_score = node.sort_score

        node.x = x
        node.y = y
        node.velocity = Vector2()


__all__ = ["compute_sort_scores", "presolve", "X_STEP", "X_STEP_SMALL", "Y_STEP", "MAX_Y"]
