"""Tests for the CollisionGrid spatial index."""

import numpy as np
import pytest

from skirmish.constants import GameConstants
from skirmish.physics import Vector2D
from skirmish.spatial import CollisionGrid
from skirmish.world import GameMap


@pytest.fixture
def constants():
    return GameConstants()


@pytest.fixture
def game_map(constants):
    return GameMap(256, 256, 2, constants)


def spawn(game_map, fleet_id, x, y):
    index = game_map.spawn_ship(fleet_id, Vector2D(x, y))
    return game_map.ships[fleet_id][index].entity_id


class TestGridLayout:
    """Grid sizing and bucketing."""

    @pytest.mark.parametrize("width,height,cell,expected", [
        (256, 256, 64, (4, 4)),
        (250, 100, 64, (4, 2)),
        (10, 10, 64, (1, 1)),
    ])
    def test_dimensions(self, constants, width, height, cell, expected):
        grid = CollisionGrid(GameMap(width, height, 1, constants), cell)
        assert (grid.width, grid.height) == expected

    def test_every_live_ship_is_bucketed(self, game_map):
        spawn(game_map, 0, 10, 10)
        spawn(game_map, 1, 200, 30)
        spawn(game_map, 1, 255, 255)
        assert len(CollisionGrid(game_map, 64)) == 3

    def test_dead_ships_are_not_bucketed(self, game_map):
        spawn(game_map, 0, 10, 10)
        dead = spawn(game_map, 1, 12, 10)
        game_map.unsafe_kill_entity(dead)
        grid = CollisionGrid(game_map, 64)
        assert dead not in grid.query(Vector2D(10, 10), 5)

    def test_planets_are_never_returned(self, game_map):
        game_map.add_planet(Vector2D(20, 20), 5, 1000, 2, 100)
        grid = CollisionGrid(game_map, 64)
        assert grid.query(Vector2D(20, 20), 50) == []

    def test_out_of_bounds_location_is_clamped(self, game_map):
        outside = spawn(game_map, 0, -3, 300)
        grid = CollisionGrid(game_map, 64)
        assert outside in grid.query(Vector2D(1, 254), 1)


class TestGridQuery:
    """Neighbour cell selection."""

    def test_home_cell_only(self, game_map):
        near = spawn(game_map, 0, 20, 20)
        far = spawn(game_map, 1, 70, 20)
        result = CollisionGrid(game_map, 64).query(Vector2D(10, 10), 5)
        assert near in result
        assert far not in result

    def test_edge_neighbour(self, game_map):
        across = spawn(game_map, 1, 70, 10)
        result = CollisionGrid(game_map, 64).query(Vector2D(60, 10), 5)
        assert across in result

    def test_diagonal_neighbour(self, game_map):
        diagonal = spawn(game_map, 1, 70, 70)
        result = CollisionGrid(game_map, 64).query(Vector2D(60, 60), 5)
        assert diagonal in result

    def test_home_cell_first(self, game_map):
        across = spawn(game_map, 1, 70, 10)
        home = spawn(game_map, 0, 40, 10)
        result = CollisionGrid(game_map, 64).query(Vector2D(60, 10), 5)
        assert result == [home, across]

    def test_query_is_superset_of_true_neighbours(self, constants):
        rng = np.random.default_rng(7)
        game_map = GameMap(300, 200, 2, constants)
        positions = rng.uniform([0, 0], [300, 200], size=(200, 2))
        ids = [spawn(game_map, i % 2, x, y) for i, (x, y) in enumerate(positions)]
        grid = CollisionGrid(game_map, 32)

        for radius in (1.0, 10.0, 31.0, 45.0):
            for i, center in enumerate(positions):
                result = set(grid.query(Vector2D(*center), radius))
                distances = np.linalg.norm(positions - center, axis=1)
                for j in np.flatnonzero(distances <= radius):
                    assert ids[j] in result
