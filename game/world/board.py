"""game/world/board.py

Host-side board for local matches.

The board stores one fruit descriptor per cell (``0`` empty, ``1..K`` fruit
type), where every agent stands, and how much of each type every agent has
collected. Agents never touch it directly; they see it through an
:class:`AgentView`.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np
import structlog

from game.constants import DIRECTION_DELTAS, EMPTY, Direction
from game.world.grid import Cell
from game_rng import GameRNG

log = structlog.get_logger(__name__)


class FruitBoard:
    def __init__(
        self,
        items: np.ndarray,
        num_agents: int = 2,
        start: Optional[Cell] = None,
    ) -> None:
        if items.ndim != 2 or 0 in items.shape:
            raise ValueError(f"Board must be a non-empty 2D array, got {items.shape}")
        if (items < EMPTY).any():
            raise ValueError("Fruit descriptors must be non-negative")
        if num_agents < 1:
            raise ValueError("A board needs at least one agent")

        self.items: np.ndarray = items.astype(np.int32, copy=True)
        self.width, self.height = self.items.shape
        self.num_types: int = int(self.items.max())
        self.num_agents = num_agents

        types, counts = np.unique(self.items[self.items > EMPTY], return_counts=True)
        self._totals: Dict[int, int] = {int(t): int(c) for t, c in zip(types, counts)}
        # Indexed by [agent, descriptor]; column 0 is unused.
        self.collected = np.zeros((num_agents, self.num_types + 1), dtype=np.float64)

        start = start if start is not None else (0, 0)
        if not self.in_bounds(*start):
            raise ValueError(f"Start cell {start} is outside the board")
        self.positions: List[Cell] = [start] * num_agents

    @classmethod
    def generate(
        cls,
        width: int,
        height: int,
        num_types: int,
        rng: GameRNG,
        min_per_type: int = 1,
        max_per_type: int = 7,
        num_agents: int = 2,
    ) -> "FruitBoard":
        """Random board with an odd number of fruit of every type.

        An odd count per type means a category can always be won outright.
        All agents start on the same random cell, which is left empty.
        """
        cells = width * height
        first_odd = min_per_type if min_per_type % 2 else min_per_type + 1
        odd_counts = list(range(first_odd, max_per_type + 1, 2))
        if not odd_counts:
            raise ValueError(
                f"No odd fruit count between {min_per_type} and {max_per_type}"
            )
        counts = [rng.choice(odd_counts) for _ in range(num_types)]
        if sum(counts) > cells - 1:
            raise ValueError(
                f"{sum(counts)} fruit do not fit on a {width}x{height} board"
            )

        order = rng.sample(range(cells), sum(counts) + 1)
        start_index, fruit_cells = order[0], order[1:]
        items = np.zeros((width, height), dtype=np.int32)
        i = 0
        for descriptor, count in enumerate(counts, start=1):
            for index in fruit_cells[i : i + count]:
                items[index % width, index // width] = descriptor
            i += count

        start = (start_index % width, start_index // width)
        log.info(
            "Board generated",
            width=width,
            height=height,
            counts=counts,
            start=start,
            seed=rng.initial_seed,
        )
        return cls(items, num_agents=num_agents, start=start)

    # --- queries ---
    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def descriptor_at(self, x: int, y: int) -> int:
        return int(self.items[x, y])

    def total_item_count(self, descriptor: int) -> int:
        return self._totals.get(descriptor, 0)

    def item_count(self, agent_id: int, descriptor: int) -> float:
        if not 0 < descriptor <= self.num_types:
            return 0.0
        return float(self.collected[agent_id, descriptor])

    def item_gain_ratio(self, agent_id: int, descriptor: int) -> float:
        """Total fruit of this type over what the agent already holds.

        An agent holding none of the type is treated as holding one, so the
        ratio stays finite.
        """
        own = max(self.item_count(agent_id, descriptor), 1.0)
        return self.total_item_count(descriptor) / own

    def remaining(self) -> int:
        return int(np.count_nonzero(self.items > EMPTY))

    def category_winners(self) -> Dict[int, Optional[int]]:
        """Winner per fruit type, or ``None`` while undecided or tied."""
        winners: Dict[int, Optional[int]] = {}
        for descriptor, total in self._totals.items():
            held = self.collected[:, descriptor]
            leader = int(np.argmax(held))
            if held[leader] > total / 2:
                winners[descriptor] = leader
                continue
            left = np.count_nonzero(self.items == descriptor)
            tied = np.count_nonzero(held == held[leader]) > 1
            winners[descriptor] = leader if left == 0 and not tied else None
        return winners

    def score(self, agent_id: int) -> int:
        return sum(1 for w in self.category_winners().values() if w == agent_id)

    # --- mutation ---
    def move(self, agent_id: int, direction: Direction) -> bool:
        x, y = self.positions[agent_id]
        dx, dy = DIRECTION_DELTAS[direction]
        nx, ny = x + dx, y + dy
        if not self.in_bounds(nx, ny):
            return False
        self.positions[agent_id] = (nx, ny)
        return True

    def take(self, x: int, y: int, agent_ids: Sequence[int]) -> bool:
        """Hand the fruit at ``(x, y)`` to ``agent_ids``, split evenly."""
        descriptor = self.descriptor_at(x, y)
        if descriptor == EMPTY or not agent_ids:
            return False
        share = 1.0 / len(agent_ids)
        for agent_id in agent_ids:
            self.collected[agent_id, descriptor] += share
        self.items[x, y] = EMPTY
        return True


class AgentView:
    """Read-only window on a :class:`FruitBoard` for a single agent."""

    def __init__(self, board: FruitBoard, agent_id: int) -> None:
        self.board = board
        self.agent_id = agent_id

    def get_board(self) -> np.ndarray:
        snapshot = self.board.items.copy()
        snapshot.flags.writeable = False
        return snapshot

    def get_my_position(self) -> Cell:
        return self.board.positions[self.agent_id]

    def item_gain_ratio(self, descriptor: int) -> float:
        return self.board.item_gain_ratio(self.agent_id, descriptor)


__all__ = ["AgentView", "FruitBoard"]
