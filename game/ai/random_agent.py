"""Random opponent.

Takes fruit when standing on it and otherwise steps to a uniformly random
in-bounds neighbour. Useful as a baseline and as a match opponent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog

from game.ai.targeting import has_item
from game.constants import MOVE_ACTIONS, Action
from game.world.grid import GridGraph
from game_rng import GameRNG

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from game.ai.fruit_agent import BoardView

log = structlog.get_logger(__name__)


class RandomAgent:
    def __init__(self, view: "BoardView", rng: Optional[GameRNG] = None) -> None:
        self.view = view
        self.rng = rng if rng is not None else GameRNG()
        self.graph: Optional[GridGraph] = None

    def on_game_start(self, width: int, height: int) -> None:
        self.graph = GridGraph(width, height)

    def on_turn(self) -> Action:
        if self.graph is None:
            raise RuntimeError("on_game_start() must be called before on_turn()")
        origin = self.view.get_my_position()
        if has_item(self.view.get_board(), origin):
            return Action.TAKE
        options = [direction for direction, _ in self.graph.neighbours(*origin)]
        if not options:
            return Action.PASS
        return MOVE_ACTIONS[self.rng.choice(options)]
