import numpy as np
import pytest

from game.constants import Direction
from game.world.grid import GridGraph
from pathfinding.shortest_paths import (
    NO_PREDECESSOR,
    InvalidTransition,
    ShortestPaths,
    UnreachableTarget,
    apply_path,
    compute_shortest_paths,
    which_side,
)


@pytest.fixture(scope="module")
def paths_4x3():
    return compute_shortest_paths(4, 3)


def test_diagonal_is_zero():
    for width, height in [(1, 1), (1, 5), (4, 3), (5, 5)]:
        paths = compute_shortest_paths(width, height)
        for i in range(width * height):
            assert paths.distance(i, i) == 0
            assert paths.predecessor(i, i) is None


def test_distances_are_symmetric_manhattan(paths_4x3):
    graph = paths_4x3.graph
    for i in range(graph.size):
        for j in range(graph.size):
            (xi, yi), (xj, yj) = graph.cell_of(i), graph.cell_of(j)
            assert paths_4x3.distance(i, j) == paths_4x3.distance(j, i)
            assert paths_4x3.distance(i, j) == abs(xi - xj) + abs(yi - yj)


def test_path_length_matches_distance_and_lands_on_destination(paths_4x3):
    graph = paths_4x3.graph
    for i in range(graph.size):
        for j in range(graph.size):
            path = paths_4x3.path_lookup(i, j)
            assert len(path) == paths_4x3.distance(i, j)
            assert apply_path(graph, graph.cell_of(i), path) == graph.cell_of(j)


def test_lookup_to_self_is_empty(paths_4x3):
    assert paths_4x3.path_lookup(5, 5) == []


def test_3x3_corner_to_corner():
    paths = compute_shortest_paths(3, 3)
    assert paths.distance(0, 8) == 4
    assert paths.predecessor(0, 8) in (5, 7)

    chain = [8]
    while chain[-1] != 0:
        chain.append(paths.predecessor(0, chain[-1]))
    # 8 <- a <- b <- c <- 0
    assert len(chain) == 5
    for a, b in zip(chain, chain[1:]):
        assert paths.graph.adjacent(a, b)


def test_5x5_straight_south():
    paths = compute_shortest_paths(5, 5)
    graph = paths.graph
    source = graph.vertex_number(0, 0)
    destination = graph.vertex_number(0, 2)
    assert paths.path_lookup(source, destination) == [Direction.SOUTH, Direction.SOUTH]


def test_which_side_decodes_compass_directions():
    assert which_side(4, 1, 3) is Direction.NORTH
    assert which_side(4, 7, 3) is Direction.SOUTH
    assert which_side(4, 5, 3) is Direction.EAST
    assert which_side(4, 3, 3) is Direction.WEST
    # In a single column a +/-1 step is vertical.
    assert which_side(1, 2, 1) is Direction.SOUTH


@pytest.mark.parametrize("pair", [(0, 4), (2, 3), (0, 2), (4, 4)])
def test_which_side_rejects_non_neighbours(pair):
    with pytest.raises(InvalidTransition):
        which_side(*pair, 3)


def test_matrices_are_read_only(paths_4x3):
    with pytest.raises(ValueError):
        paths_4x3.weights[0, 1] = 0
    with pytest.raises(ValueError):
        paths_4x3.predecessors[0, 1] = 3


def _matrices(n):
    weights = np.full((n, n), np.inf)
    np.fill_diagonal(weights, 0.0)
    preds = np.full((n, n), NO_PREDECESSOR, dtype=np.int64)
    return weights, preds


def test_unreachable_destination_raises():
    weights, preds = _matrices(2)
    paths = ShortestPaths(GridGraph(2, 1), weights, preds)
    assert paths.distance(0, 1) is None
    assert not paths.is_reachable(0, 1)
    with pytest.raises(UnreachableTarget):
        paths.path_lookup(0, 1)


def test_corrupted_predecessor_jump_raises():
    weights, preds = _matrices(3)
    weights[0, 2] = 2.0
    preds[0, 2] = 0  # Claims 0 sits right before 2.
    paths = ShortestPaths(GridGraph(3, 1), weights, preds)
    with pytest.raises(InvalidTransition):
        paths.path_lookup(0, 2)


def test_predecessor_cycle_raises():
    weights, preds = _matrices(3)
    weights[0, 1] = weights[0, 2] = 1.0
    preds[0, 2] = 1
    preds[0, 1] = 2
    paths = ShortestPaths(GridGraph(3, 1), weights, preds)
    with pytest.raises(InvalidTransition):
        paths.path_lookup(0, 2)


def test_matrix_shape_checked():
    weights, preds = _matrices(3)
    with pytest.raises(ValueError):
        ShortestPaths(GridGraph(2, 2), weights, preds)


def test_apply_path_rejects_leaving_board():
    with pytest.raises(InvalidTransition):
        apply_path(GridGraph(2, 2), (0, 0), [Direction.NORTH])
