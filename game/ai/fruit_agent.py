"""Fruit collecting agent.

The agent precomputes every shortest path on the board when a game starts
and afterwards makes one cheap decision per turn:

* standing on fruit: take it;
* a cached path that still leads to the same fruit: take its next step;
* otherwise: pick a new target, look its path up and take the first step.
"""

from __future__ import annotations

from collections import deque
from enum import Enum, auto
from typing import Deque, Optional, Protocol, Sequence, Tuple

import structlog

from game.ai.targeting import Target, has_item, select_target
from game.constants import MOVE_ACTIONS, Action, Direction
from game.world.grid import Cell, GridGraph
from game_rng import GameRNG
from pathfinding.shortest_paths import PathError, ShortestPaths, compute_shortest_paths
from utils.config import AgentConfig

log = structlog.get_logger(__name__)


class BoardView(Protocol):
    """What the host exposes to an agent each turn."""

    def get_board(self) -> Sequence[Sequence[int]]: ...

    def get_my_position(self) -> Tuple[int, int]: ...

    def item_gain_ratio(self, descriptor: int) -> float: ...


class AgentState(Enum):
    """What the agent did on its most recent turn."""

    AT_ITEM = auto()
    FOLLOWING_PATH = auto()
    NEEDS_TARGET = auto()


class FruitAgent:
    def __init__(
        self,
        view: BoardView,
        rng: Optional[GameRNG] = None,
        config: Optional[AgentConfig] = None,
    ) -> None:
        self.view = view
        self.config = config if config is not None else AgentConfig()
        self.rng = rng if rng is not None else GameRNG(self.config.rng_seed)
        self.paths: Optional[ShortestPaths] = None
        self.target: Optional[Target] = None
        self.path: Optional[Deque[Direction]] = None
        self.state: Optional[AgentState] = None
        self._expected_position: Optional[Cell] = None

    @property
    def graph(self) -> Optional[GridGraph]:
        return None if self.paths is None else self.paths.graph

    # ------------------------------------------------------------------
    # host hooks
    # ------------------------------------------------------------------
    def on_game_start(self, width: int, height: int) -> None:
        """Build the shortest path tables and forget any previous game."""
        self.paths = compute_shortest_paths(width, height)
        self._clear_plan()
        self.state = AgentState.NEEDS_TARGET
        log.info("Fruit agent ready", width=width, height=height, rng=repr(self.rng))

    def on_turn(self) -> Action:
        """Decide this turn's action."""
        if self.paths is None:
            raise RuntimeError("on_game_start() must be called before on_turn()")

        board = self.view.get_board()
        x, y = self.view.get_my_position()
        origin: Cell = (int(x), int(y))

        if has_item(board, origin):
            self.state = AgentState.AT_ITEM
            self._expected_position = origin
            log.debug("Taking fruit", origin=origin)
            return Action.TAKE

        if self._plan_is_valid(board, origin):
            self.state = AgentState.FOLLOWING_PATH
        else:
            self.state = AgentState.NEEDS_TARGET
            if not self._retarget(board, origin):
                return self._fallback(origin)

        direction = self.path.popleft()
        dx, dy = direction.delta
        self._expected_position = (origin[0] + dx, origin[1] + dy)
        log.debug(
            "Moving",
            origin=origin,
            direction=direction.name,
            target=self.target.cell,
            remaining=len(self.path),
        )
        return MOVE_ACTIONS[direction]

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------
    def _clear_plan(self) -> None:
        self.target = None
        self.path = None
        self._expected_position = None

    def _plan_is_valid(self, board, origin: Cell) -> bool:
        if not self.path or self.target is None:
            return False
        if self._expected_position is not None and origin != self._expected_position:
            # The host rejected a move or the agent was displaced.
            log.debug("Off the cached path", origin=origin, expected=self._expected_position)
            return False
        if self.target.is_stale(board, self.view.item_gain_ratio):
            log.debug("Target went stale", target=self.target.cell)
            return False
        return True

    def _retarget(self, board, origin: Cell) -> bool:
        """Pick a new target and cache the path to it."""
        graph = self.graph
        cfg = self.config
        gain_ratio = self.view.item_gain_ratio
        target = select_target(
            board,
            origin,
            graph,
            gain_ratio,
            self.rng,
            max_radius=cfg.max_radius,
            keep=cfg.top_k,
            selection=cfg.selection,
        )
        if target is None and cfg.widen_on_miss:
            inner = cfg.max_radius or max(graph.width, graph.height)
            if inner <= graph.max_ring_radius:
                target = select_target(
                    board,
                    origin,
                    graph,
                    gain_ratio,
                    self.rng,
                    max_radius=graph.max_ring_radius + 1,
                    keep=cfg.top_k,
                    selection=cfg.selection,
                    min_radius=inner,
                )
        if target is None:
            self._clear_plan()
            return False

        source = graph.vertex_number(*origin)
        destination = graph.vertex_number(*target.cell)
        try:
            path = self.paths.path_lookup(source, destination)
        except PathError as e:
            log.error(
                "Path lookup failed",
                origin=origin,
                target=target.cell,
                error=str(e),
            )
            raise

        self.target = target
        self.path = deque(path)
        log.debug(
            "New target",
            origin=origin,
            target=target.cell,
            value=round(target.value, 4),
            radius=target.radius,
            steps=len(path),
        )
        return True

    def _fallback(self, origin: Cell) -> Action:
        """Action for a turn where no fruit could be found."""
        if self.config.fallback_policy == "hold":
            log.warning("No fruit in range, holding position", origin=origin)
            self._expected_position = origin
            return Action.PASS

        options = list(self.graph.neighbours(*origin))
        if not options:
            log.warning("No fruit in range and nowhere to go", origin=origin)
            self._expected_position = origin
            return Action.PASS
        direction, cell = self.rng.choice(options)
        self._expected_position = cell
        log.warning(
            "No fruit in range, wandering", origin=origin, direction=direction.name
        )
        return MOVE_ACTIONS[direction]


__all__ = ["AgentState", "BoardView", "FruitAgent"]
