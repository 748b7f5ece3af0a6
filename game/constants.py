from enum import IntEnum


class Direction(IntEnum):
    """Unit movements on the board. ``x`` grows east, ``y`` grows south."""

    NORTH = 0
    SOUTH = 1
    EAST = 2
    WEST = 3

    @property
    def delta(self) -> tuple[int, int]:
        return DIRECTION_DELTAS[self]


class Action(IntEnum):
    """Actions an agent hands back to the host once per turn."""

    TAKE = 0
    MOVE_NORTH = 1
    MOVE_SOUTH = 2
    MOVE_EAST = 3
    MOVE_WEST = 4
    PASS = 5  # Only produced by the "hold" fallback


DIRECTION_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (0, -1),
    Direction.SOUTH: (0, 1),
    Direction.EAST: (1, 0),
    Direction.WEST: (-1, 0),
}

MOVE_ACTIONS: dict[Direction, Action] = {
    Direction.NORTH: Action.MOVE_NORTH,
    Direction.SOUTH: Action.MOVE_SOUTH,
    Direction.EAST: Action.MOVE_EAST,
    Direction.WEST: Action.MOVE_WEST,
}

ACTION_DIRECTIONS: dict[Action, Direction] = {
    action: direction for direction, action in MOVE_ACTIONS.items()
}

EMPTY: int = 0  # Board descriptor for a cell without fruit

# How `best_of` picks from its candidate buffer
SELECTION_MODES: tuple[str, ...] = ("best_ties", "recent_improvers")

__all__ = [
    "Action",
    "Direction",
    "DIRECTION_DELTAS",
    "MOVE_ACTIONS",
    "ACTION_DIRECTIONS",
    "EMPTY",
    "SELECTION_MODES",
]
