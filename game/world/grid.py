"""game/world/grid.py

Vertex numbering and 4-way adjacency for a fixed W x H board.

Cells are ``(x, y)`` tuples with ``0 <= x < width`` and ``0 <= y < height``.
Every cell also has a vertex number ``y * width + x`` which is the index
space used by the shortest path matrices.
"""

from __future__ import annotations

from typing import Iterator, List, Tuple

from numba import njit

from game.constants import DIRECTION_DELTAS, Direction

Cell = Tuple[int, int]


@njit(cache=True)
def grid_adjacent(v: int, u: int, width: int) -> bool:
    """Return ``True`` if vertices ``v`` and ``u`` share an edge.

    Horizontal neighbours must also sit on the same row, otherwise the last
    cell of one row and the first cell of the next would look adjacent.
    """
    diff = abs(v - u)
    if diff == width:
        return True
    return diff == 1 and v // width == u // width


class GridGraph:
    """The board as an undirected graph with unit-cost N/S/E/W edges."""

    def __init__(self, width: int, height: int) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        self.width: int = width
        self.height: int = height

    def __repr__(self) -> str:
        return f"GridGraph({self.width}x{self.height})"

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def max_ring_radius(self) -> int:
        """Largest Manhattan distance between two cells on the board."""
        return self.width + self.height - 2

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def vertex_number(self, x: int, y: int) -> int:
        if not self.in_bounds(x, y):
            raise ValueError(f"Cell ({x}, {y}) is outside {self!r}")
        return y * self.width + x

    def cell_of(self, v: int) -> Cell:
        if not 0 <= v < self.size:
            raise ValueError(f"Vertex {v} is outside {self!r}")
        return v % self.width, v // self.width

    def adjacent(self, v: int, u: int) -> bool:
        return bool(grid_adjacent(v, u, self.width))

    def neighbours(self, x: int, y: int) -> Iterator[Tuple[Direction, Cell]]:
        """Yield ``(direction, cell)`` for every in-bounds neighbour."""
        for direction in Direction:
            dx, dy = DIRECTION_DELTAS[direction]
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                yield direction, (nx, ny)

    def within_radius(self, origin: Cell, r: int) -> List[Cell]:
        """Cells at Manhattan distance exactly ``r`` from ``origin``.

        Enumerates every split ``a + b == r`` with ``a <= r // 2`` and the
        eight sign/axis-swap combinations of ``(a, b)``. Cells off the board
        are dropped and coinciding offsets (``a == 0`` or ``a == b``) are
        only reported once, keeping first-seen order.
        """
        if r < 0:
            raise ValueError(f"Radius must be non-negative, got {r}")
        ox, oy = origin
        if r == 0:
            return [origin] if self.in_bounds(ox, oy) else []

        ring: List[Cell] = []
        seen: set[Cell] = set()
        for a in range(r // 2 + 1):
            b = r - a
            offsets = (
                (a, b), (a, -b), (-a, b), (-a, -b),
                (b, a), (b, -a), (-b, a), (-b, -a),
            )
            for dx, dy in offsets:
                cell = (ox + dx, oy + dy)
                if cell in seen or not self.in_bounds(*cell):
                    continue
                seen.add(cell)
                ring.append(cell)
        return ring


def manhattan(a: Cell, b: Cell) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


__all__ = ["Cell", "GridGraph", "grid_adjacent", "manhattan"]
