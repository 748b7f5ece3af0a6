"""Target valuation and selection.

Fruit is scored as ``gain_ratio / euclidean_distance`` and searched for in
Manhattan rings around the agent. Only the best cell of each ring is kept;
the final pick is drawn at random from a short buffer of the best ring
candidates so two agents looking at the same board do not lock onto the
same cell every time.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence

import structlog

from game.constants import EMPTY, SELECTION_MODES
from game.world.grid import Cell, GridGraph

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from game_rng import GameRNG

log = structlog.get_logger(__name__)

GainRatio = Callable[[int], float]
Board = Sequence[Sequence[int]]


@dataclass(frozen=True)
class Target:
    """A destination and the value it had when it was picked.

    ``origin`` is where the agent stood at selection time. Re-evaluating the
    cell from there tells whether the fruit is still the same, no matter how
    far the agent has walked since.
    """

    cell: Cell
    value: float
    origin: Cell
    radius: int

    def is_stale(self, board: Board, gain_ratio: GainRatio) -> bool:
        return evaluate_cell(board, self.cell, self.origin, gain_ratio) != self.value


def has_item(board: Board, cell: Cell) -> bool:
    x, y = cell
    return int(board[x][y]) > EMPTY


def evaluate_cell(board: Board, cell: Cell, origin: Cell, gain_ratio: GainRatio) -> float:
    """Value of ``cell`` seen from ``origin``; 0 for an empty cell."""
    x, y = cell
    descriptor = int(board[x][y])
    if descriptor <= EMPTY:
        return 0.0
    if cell == origin:
        raise ValueError(f"Cannot value the agent's own cell {cell} by distance")
    distance = math.hypot(x - origin[0], y - origin[1])
    return float(gain_ratio(descriptor)) / distance


def best_per_ring(
    board: Board,
    origin: Cell,
    r: int,
    graph: GridGraph,
    gain_ratio: GainRatio,
) -> Optional[Target]:
    """Highest positive value on ring ``r``; the first one seen wins ties."""
    best: Optional[Target] = None
    best_value = 0.0
    for cell in graph.within_radius(origin, r):
        value = evaluate_cell(board, cell, origin, gain_ratio)
        if value > best_value:
            best_value = value
            best = Target(cell=cell, value=value, origin=origin, radius=r)
    return best


def best_of(
    pool: Iterable[Target],
    rng: "GameRNG",
    keep: int = 3,
    selection: str = "best_ties",
) -> Optional[Target]:
    """Pick one candidate from ``pool`` at random among the best.

    Candidates are scanned in pool order and pushed into a FIFO buffer of
    size ``keep`` whenever they beat the running best. With
    ``"recent_improvers"`` the buffer is sampled as is, so a candidate that
    was overtaken later can still be returned. With ``"best_ties"`` (the
    default) ties with the running best are pushed too and only buffer
    entries equal to the final best are sampled, so the true maximum is
    never missed.
    """
    if selection not in SELECTION_MODES:
        raise ValueError(f"Unknown selection mode {selection!r}")
    if keep < 1:
        raise ValueError(f"keep must be >= 1, got {keep}")

    recent: deque[Target] = deque(maxlen=keep)
    best_value = -math.inf
    for candidate in pool:
        if candidate.value > best_value or (
            selection == "best_ties" and candidate.value == best_value
        ):
            best_value = candidate.value
            recent.append(candidate)

    if not recent:
        return None
    if selection == "best_ties":
        shortlist: List[Target] = [c for c in recent if c.value == best_value]
    else:
        shortlist = list(recent)
    rng.shuffle(shortlist)
    return shortlist[0]


def select_target(
    board: Board,
    origin: Cell,
    graph: GridGraph,
    gain_ratio: GainRatio,
    rng: "GameRNG",
    max_radius: Optional[int] = None,
    keep: int = 3,
    selection: str = "best_ties",
    min_radius: int = 1,
) -> Optional[Target]:
    """Search rings ``min_radius .. max_radius - 1`` and pick a destination.

    ``max_radius`` defaults to ``max(width, height)``. Returns ``None`` when
    no ring holds a cell with a positive value.
    """
    if max_radius is None:
        max_radius = max(graph.width, graph.height)
    pool: List[Target] = []
    for r in range(max(min_radius, 1), max_radius):
        candidate = best_per_ring(board, origin, r, graph, gain_ratio)
        if candidate is not None:
            pool.append(candidate)

    target = best_of(pool, rng, keep=keep, selection=selection)
    log.debug(
        "Target search finished",
        origin=origin,
        radii=(min_radius, max_radius),
        candidates=len(pool),
        target=None if target is None else target.cell,
    )
    return target


__all__ = [
    "Target",
    "GainRatio",
    "SELECTION_MODES",
    "has_item",
    "evaluate_cell",
    "best_per_ring",
    "best_of",
    "select_target",
]
