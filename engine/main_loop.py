# engine/main_loop.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Self, Sequence

import structlog

from game.constants import ACTION_DIRECTIONS, Action
from game.world.board import FruitBoard

log = structlog.get_logger()


@dataclass
class MatchResult:
    """Outcome of one match."""

    turns: int
    scores: List[int]
    collected: List[List[float]]
    winner: Optional[int]
    remaining: int
    rejected_moves: List[int] = field(default_factory=list)


class MatchRunner:
    """
    Hosts a match: starts every agent, asks each for one action per turn,
    and applies the actions to the board simultaneously.
    """

    def __init__(self: Self, board: FruitBoard, agents: Sequence[Any], max_turns: int = 200):
        if len(agents) != board.num_agents:
            raise ValueError(
                f"Board expects {board.num_agents} agents, got {len(agents)}"
            )
        self.board = board
        self.agents = list(agents)
        self.max_turns = max_turns
        self.turn = 0
        self.rejected_moves = [0] * len(self.agents)
        self._started = False

    def start(self: Self) -> None:
        for agent in self.agents:
            agent.on_game_start(self.board.width, self.board.height)
        self._started = True
        log.info(
            "Match started",
            width=self.board.width,
            height=self.board.height,
            agents=[type(a).__name__ for a in self.agents],
            fruit=self.board.remaining(),
        )

    def is_over(self: Self) -> bool:
        return self.turn >= self.max_turns or self.board.remaining() == 0

    def step(self: Self) -> List[Action]:
        """Play one turn. Every agent decides before any action is applied."""
        if not self._started:
            raise RuntimeError("start() must be called before step()")

        actions: List[Action] = []
        for agent_id, agent in enumerate(self.agents):
            try:
                actions.append(agent.on_turn())
            except Exception as e:
                log.error(
                    "Agent failed during its turn",
                    agent_id=agent_id,
                    turn=self.turn,
                    error=str(e),
                    exc_info=True,
                )
                raise

        takers: Dict[tuple, List[int]] = {}
        for agent_id, action in enumerate(actions):
            try:
                self._apply(agent_id, action, takers)
            except ValueError as e:
                log.warning(
                    "Invalid action treated as pass",
                    agent_id=agent_id,
                    action=action,
                    error=str(e),
                )
        for (x, y), agent_ids in takers.items():
            self.board.take(x, y, agent_ids)

        self.turn += 1
        log.debug("Turn played", turn=self.turn, actions=[getattr(a, "name", a) for a in actions])
        return actions

    def _apply(self: Self, agent_id: int, action: Action, takers: Dict[tuple, List[int]]) -> None:
        action = Action(action)
        if action is Action.PASS:
            return
        if action is Action.TAKE:
            takers.setdefault(self.board.positions[agent_id], []).append(agent_id)
            return
        if not self.board.move(agent_id, ACTION_DIRECTIONS[action]):
            self.rejected_moves[agent_id] += 1
            log.debug("Move off the board rejected", agent_id=agent_id, action=action.name)

    def run(self: Self) -> MatchResult:
        if not self._started:
            self.start()
        while not self.is_over():
            self.step()
        return self.result()

    def result(self: Self) -> MatchResult:
        scores = [self.board.score(i) for i in range(len(self.agents))]
        best = max(scores)
        winner = scores.index(best) if best > 0 and scores.count(best) == 1 else None
        result = MatchResult(
            turns=self.turn,
            scores=scores,
            collected=[row[1:].tolist() for row in self.board.collected],
            winner=winner,
            remaining=self.board.remaining(),
            rejected_moves=list(self.rejected_moves),
        )
        log.info(
            "Match finished",
            turns=result.turns,
            scores=result.scores,
            winner=result.winner,
            remaining=result.remaining,
        )
        return result


__all__ = ["MatchResult", "MatchRunner"]
