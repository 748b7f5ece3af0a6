from collections import deque

import numpy as np
import pytest
from structlog.testing import CapturingLogger

from game.ai import fruit_agent
from game.ai.fruit_agent import AgentState, FruitAgent
from game.constants import Action, Direction
from game_rng import GameRNG
from pathfinding.shortest_paths import (
    NO_PREDECESSOR,
    InvalidTransition,
    ShortestPaths,
    UnreachableTarget,
)
from utils.config import AgentConfig


class FakeView:
    """Stands in for the host: a board array, a position and gain ratios."""

    def __init__(self, board, position, ratios=None):
        self.board = board
        self.position = position
        self.ratios = ratios if ratios is not None else {}

    def get_board(self):
        return self.board

    def get_my_position(self):
        return self.position

    def item_gain_ratio(self, descriptor):
        return self.ratios.get(descriptor, 1.0)


def make_agent(board, position, ratios=None, **cfg):
    view = FakeView(board, position, ratios)
    agent = FruitAgent(view, rng=GameRNG(3), config=AgentConfig(**cfg))
    agent.on_game_start(*board.shape)
    return agent, view


def test_turn_before_game_start_fails():
    agent = FruitAgent(FakeView(np.zeros((2, 2), dtype=np.int32), (0, 0)))
    with pytest.raises(RuntimeError):
        agent.on_turn()


def test_take_when_standing_on_fruit():
    board = np.zeros((4, 4), dtype=np.int32)
    board[1, 1] = 2
    board[3, 3] = 1
    agent, _ = make_agent(board, (1, 1))
    agent.path = deque([Direction.EAST, Direction.EAST])
    assert agent.on_turn() is Action.TAKE
    assert agent.state is AgentState.AT_ITEM
    assert list(agent.path) == [Direction.EAST, Direction.EAST]


def test_walks_to_single_fruit_and_takes_it():
    board = np.zeros((5, 5), dtype=np.int32)
    board[0, 2] = 1
    agent, view = make_agent(board, (0, 0), ratios={1: 2.0})

    assert agent.on_turn() is Action.MOVE_SOUTH
    assert agent.state is AgentState.NEEDS_TARGET
    assert agent.target.cell == (0, 2)
    assert agent.target.value == pytest.approx(1.0)

    view.position = (0, 1)
    assert agent.on_turn() is Action.MOVE_SOUTH
    assert agent.state is AgentState.FOLLOWING_PATH

    view.position = (0, 2)
    assert agent.on_turn() is Action.TAKE


def test_stale_target_forces_recompute():
    board = np.zeros((5, 5), dtype=np.int32)
    board[0, 2] = 1
    agent, view = make_agent(board, (0, 0), ratios={1: 2.0})
    assert agent.on_turn() is Action.MOVE_SOUTH
    view.position = (0, 1)

    # Another agent eats the fruit; a new one appears to the east.
    board[0, 2] = 0
    board[2, 1] = 1
    assert agent.on_turn() is Action.MOVE_EAST
    assert agent.state is AgentState.NEEDS_TARGET
    assert agent.target.cell == (2, 1)
    assert list(agent.path) == [Direction.EAST]


def test_changed_value_forces_recompute():
    board = np.zeros((5, 5), dtype=np.int32)
    board[0, 3] = 1
    agent, view = make_agent(board, (0, 0), ratios={1: 3.0})
    agent.on_turn()
    old_target = agent.target
    view.position = (0, 1)
    view.ratios[1] = 1.0
    assert agent.on_turn() is Action.MOVE_SOUTH
    assert agent.state is AgentState.NEEDS_TARGET
    assert agent.target is not old_target
    assert agent.target.origin == (0, 1)


def test_displacement_forces_recompute():
    board = np.zeros((5, 5), dtype=np.int32)
    board[4, 0] = 1
    agent, view = make_agent(board, (0, 0))
    assert agent.on_turn() is Action.MOVE_EAST
    view.position = (0, 0)  # The host rejected the move.
    agent.on_turn()
    assert agent.state is AgentState.NEEDS_TARGET
    assert len(agent.path) == 3


def test_hold_fallback_on_empty_board():
    board = np.zeros((3, 3), dtype=np.int32)
    agent, _ = make_agent(board, (1, 1), fallback_policy="hold")
    assert agent.on_turn() is Action.PASS
    assert agent.target is None
    assert agent.path is None


def test_random_walk_fallback_stays_on_board():
    board = np.zeros((3, 3), dtype=np.int32)
    agent, _ = make_agent(board, (0, 0), fallback_policy="random_walk")
    for _ in range(10):
        assert agent.on_turn() in (Action.MOVE_SOUTH, Action.MOVE_EAST)


def test_random_walk_on_single_cell_passes():
    board = np.zeros((1, 1), dtype=np.int32)
    agent, _ = make_agent(board, (0, 0))
    assert agent.on_turn() is Action.PASS


def test_widened_search_reaches_far_corner():
    board = np.zeros((6, 2), dtype=np.int32)
    board[5, 1] = 1
    agent, _ = make_agent(board, (0, 0), fallback_policy="hold")
    assert agent.on_turn() in (Action.MOVE_EAST, Action.MOVE_SOUTH)
    assert agent.target.cell == (5, 1)
    assert len(agent.path) == 5

    narrow, _ = make_agent(board, (0, 0), fallback_policy="hold", widen_on_miss=False)
    assert narrow.on_turn() is Action.PASS


def test_game_start_resets_plan():
    board = np.zeros((5, 5), dtype=np.int32)
    board[0, 3] = 1
    agent, _ = make_agent(board, (0, 0))
    agent.on_turn()
    assert agent.path
    agent.on_game_start(4, 4)
    assert agent.path is None
    assert agent.target is None
    assert agent.graph.width == 4


def _install_predecessor(agent, source, destination, pred):
    weights = agent.paths.weights.copy()
    preds = agent.paths.predecessors.copy()
    preds[source, destination] = pred
    agent.paths = ShortestPaths(agent.graph, weights, preds)


@pytest.mark.parametrize(
    "pred, error",
    [
        (0, InvalidTransition),  # 0 -> 2 skips a cell
        (NO_PREDECESSOR, UnreachableTarget),
    ],
)
def test_path_errors_propagate_out_of_turn(pred, error, monkeypatch):
    board = np.zeros((3, 1), dtype=np.int32)
    board[2, 0] = 1
    agent, _ = make_agent(board, (0, 0))
    _install_predecessor(agent, 0, 2, pred)
    logger = CapturingLogger()
    monkeypatch.setattr(fruit_agent, "log", logger)

    with pytest.raises(error):
        agent.on_turn()
    errors = [call.args[0] for call in logger.calls if call.method_name == "error"]
    assert errors == ["Path lookup failed"]
    assert agent.path is None
