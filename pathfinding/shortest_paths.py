"""pathfinding/shortest_paths.py

All-pairs shortest paths over the board graph.

The distance and predecessor matrices are built once per game with a
Numba-compiled Floyd-Warshall pass and are read-only afterwards. Per-turn
code only looks paths up; it never relaxes anything.
"""

from __future__ import annotations

import time
from typing import List, Optional

import numpy as np
import structlog
from numba import njit

from game.constants import Direction
from game.world.grid import Cell, GridGraph, grid_adjacent

log = structlog.get_logger(__name__)

# Internal marker for "no predecessor"; callers get ``None`` instead.
NO_PREDECESSOR: int = -1


class PathError(Exception):
    """Base class for path reconstruction failures."""


class InvalidTransition(PathError):
    """Two consecutive path vertices are not neighbours.

    Only a corrupted predecessor matrix can produce this, so it is fatal for
    the current game.
    """


class UnreachableTarget(PathError):
    """The destination has no predecessor entry for the given source."""


# --- Numba kernels ---


@njit(cache=True)
def _initial_matrices(width: int, n: int):
    """Distance and predecessor matrices before any waypoint is allowed."""
    weights = np.full((n, n), np.inf)
    preds = np.full((n, n), NO_PREDECESSOR, dtype=np.int64)
    for i in range(n):
        weights[i, i] = 0.0
        for j in range(n):
            if i != j and grid_adjacent(i, j, width):
                weights[i, j] = 1.0
                preds[i, j] = i
    return weights, preds


@njit(cache=True)
def _relax_all_pairs(weights: np.ndarray, preds: np.ndarray) -> None:
    """Floyd-Warshall relaxation. Modifies both matrices in place.

    Row ``k`` and column ``k`` cannot change while ``k`` is the waypoint
    (``weights[k, k] == 0``), so updating in place reads the same values a
    double-buffered pass would.
    """
    n = weights.shape[0]
    for k in range(n):
        for i in range(n):
            w_ik = weights[i, k]
            if w_ik == np.inf:
                continue
            for j in range(n):
                candidate = w_ik + weights[k, j]
                if candidate < weights[i, j]:
                    weights[i, j] = candidate
                    preds[i, j] = preds[k, j]


# --- Direction decoding ---


def which_side(from_v: int, to_v: int, width: int) -> Direction:
    """Direction of the single step from vertex ``from_v`` to ``to_v``."""
    if not grid_adjacent(from_v, to_v, width):
        raise InvalidTransition(f"Vertices {from_v} and {to_v} are not adjacent")
    diff = to_v - from_v
    if diff == -width:
        return Direction.NORTH
    if diff == width:
        return Direction.SOUTH
    # x grows east, so the next vertex in a row is EAST and the previous WEST.
    if diff == -1:
        return Direction.WEST
    if diff == 1:
        return Direction.EAST
    raise InvalidTransition(f"No direction leads from {from_v} to {to_v}")


class ShortestPaths:
    """Read-only distance and predecessor tables for one game."""

    def __init__(
        self, graph: GridGraph, weights: np.ndarray, predecessors: np.ndarray
    ) -> None:
        n = graph.size
        if weights.shape != (n, n) or predecessors.shape != (n, n):
            raise ValueError(
                f"Matrices must be {n}x{n} for {graph!r}, got "
                f"{weights.shape} and {predecessors.shape}"
            )
        self.graph = graph
        self.weights: np.ndarray = weights
        self.predecessors: np.ndarray = predecessors
        self.weights.flags.writeable = False
        self.predecessors.flags.writeable = False

    def _check_vertex(self, v: int) -> None:
        if not 0 <= v < self.graph.size:
            raise ValueError(f"Vertex {v} is outside {self.graph!r}")

    def distance(self, i: int, j: int) -> Optional[int]:
        """Number of moves from ``i`` to ``j``, or ``None`` if unreachable."""
        self._check_vertex(i)
        self._check_vertex(j)
        w = self.weights[i, j]
        if np.isinf(w):
            return None
        return int(w)

    def predecessor(self, i: int, j: int) -> Optional[int]:
        """Vertex right before ``j`` on a shortest path from ``i``."""
        self._check_vertex(i)
        self._check_vertex(j)
        pred = int(self.predecessors[i, j])
        return None if pred == NO_PREDECESSOR else pred

    def is_reachable(self, i: int, j: int) -> bool:
        return i == j or self.predecessor(i, j) is not None

    def path_lookup(self, source: int, destination: int) -> List[Direction]:
        """Movements along a shortest path from ``source`` to ``destination``.

        Raises
        ------
        UnreachableTarget
            ``destination`` has no predecessor entry for ``source``.
        InvalidTransition
            The predecessor chain is broken, loops, or contains a step that
            is not a single N/S/E/W move.
        """
        if source == destination:
            self._check_vertex(source)
            return []
        if self.predecessor(source, destination) is None:
            raise UnreachableTarget(
                f"Vertex {destination} is unreachable from {source}"
            )

        vertices = [destination]
        current = destination
        while current != source:
            pred = self.predecessor(source, current)
            if pred is None:
                raise InvalidTransition(
                    f"Predecessor chain {source}->{destination} breaks at {current}"
                )
            current = pred
            vertices.append(current)
            if len(vertices) > self.graph.size:
                raise InvalidTransition(
                    f"Predecessor chain {source}->{destination} does not terminate"
                )
        vertices.reverse()

        width = self.graph.width
        return [which_side(a, b, width) for a, b in zip(vertices, vertices[1:])]


def compute_shortest_paths(width: int, height: int) -> ShortestPaths:
    """Build the all-pairs tables for a ``width`` x ``height`` board."""
    graph = GridGraph(width, height)
    start_time = time.time()
    weights, preds = _initial_matrices(graph.width, graph.size)
    _relax_all_pairs(weights, preds)
    log.info(
        "All-pairs shortest paths computed",
        width=width,
        height=height,
        vertices=graph.size,
        elapsed=round(time.time() - start_time, 4),
    )
    return ShortestPaths(graph, weights, preds)


def apply_path(graph: GridGraph, cell: Cell, path: List[Direction]) -> Cell:
    """Replay ``path`` from ``cell`` and return where it ends."""
    x, y = cell
    for direction in path:
        dx, dy = direction.delta
        x, y = x + dx, y + dy
        if not graph.in_bounds(x, y):
            raise InvalidTransition(f"Path leaves the board at ({x}, {y})")
    return x, y


__all__ = [
    "NO_PREDECESSOR",
    "PathError",
    "InvalidTransition",
    "UnreachableTarget",
    "ShortestPaths",
    "which_side",
    "compute_shortest_paths",
    "apply_path",
]
