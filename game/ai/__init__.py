"""Agent implementations and the registry used to build them by name.

Agents all follow the same two-hook contract: ``on_game_start(width,
height)`` once per game, then ``on_turn()`` once per turn returning a
:class:`game.constants.Action`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Optional

import structlog

from .fruit_agent import FruitAgent
from .random_agent import RandomAgent

if TYPE_CHECKING:  # pragma: no cover - for type checking
    from game_rng import GameRNG
    from utils.config import AgentConfig
    from .fruit_agent import BoardView

log = structlog.get_logger()


def _make_fruit(view, rng, config):
    return FruitAgent(view, rng=rng, config=config)


def _make_random(view, rng, config):
    return RandomAgent(view, rng=rng)


# Mapping from ai_type string to the factory that builds an agent of that type.
FACTORIES: Dict[str, Callable] = {
    "fruit": _make_fruit,
    "random": _make_random,
}


def create_agent(
    ai_type: str,
    view: "BoardView",
    rng: Optional["GameRNG"] = None,
    config: Optional["AgentConfig"] = None,
):
    """Build an agent for ``ai_type``.

    Unknown types default to the fruit agent so that a misspelt opponent
    name does not abort a match.
    """
    factory = FACTORIES.get(ai_type)
    if factory is None:
        log.warning("Unknown ai_type, defaulting to fruit agent", ai_type=ai_type)
        factory = _make_fruit
    return factory(view, rng, config)


__all__ = ["FACTORIES", "FruitAgent", "RandomAgent", "create_agent"]
