"""Tests for the per-sub-step EventDetector."""

import pytest

from skirmish.constants import GameConstants
from skirmish.detection import EventDetector
from skirmish.entities import EntityId
from skirmish.events import SimulationEvent, SimulationEventType
from skirmish.physics import Vector2D
from skirmish.world import GameMap


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def constants():
    return GameConstants()


@pytest.fixture
def game_map(constants):
    return GameMap(200, 200, 2, constants)


def place(game_map, fleet_id, location, velocity=(0, 0)):
    index = game_map.spawn_ship(fleet_id, Vector2D(*location))
    ship = game_map.ships[fleet_id][index]
    ship.velocity = Vector2D(*velocity)
    return ship.entity_id


def of_type(events, event_type):
    return [ev for ev in events if ev.event_type is event_type]


# =============================================================================
# SHIP PAIRS
# =============================================================================

class TestPairEvents:
    """Attack and collision detection between ships."""

    def test_approaching_enemies_attack_mid_step(self, game_map, constants):
        a = place(game_map, 0, (50, 50), (2, 0))
        b = place(game_map, 1, (58, 50), (-2, 0))
        events = EventDetector(game_map, constants).detect()
        assert events == {SimulationEvent.create(SimulationEventType.ATTACK, a, b, 0.5)}

    def test_enemies_already_in_range_attack_at_zero(self, game_map, constants):
        a = place(game_map, 0, (50, 50))
        b = place(game_map, 1, (54, 50))
        events = EventDetector(game_map, constants).detect()
        assert events == {SimulationEvent.create(SimulationEventType.ATTACK, a, b, 0.0)}

    def test_enemies_out_of_reach(self, game_map, constants):
        place(game_map, 0, (50, 50), (1, 0))
        place(game_map, 1, (70, 50), (-1, 0))
        assert EventDetector(game_map, constants).detect() == set()

    def test_friendly_ships_never_attack(self, game_map, constants):
        place(game_map, 0, (50, 50))
        place(game_map, 0, (54, 50))
        assert EventDetector(game_map, constants).detect() == set()

    def test_friendly_ships_collide(self, game_map, constants):
        a = place(game_map, 0, (10, 10), (1, 0))
        b = place(game_map, 0, (12, 10), (-1, 0))
        events = EventDetector(game_map, constants).detect()
        assert events == {SimulationEvent.create(SimulationEventType.COLLISION, a, b, 0.5)}

    def test_enemies_collide_and_attack(self, game_map, constants):
        a = place(game_map, 0, (50, 50), (3, 0))
        b = place(game_map, 1, (54, 50), (-3, 0))
        events = EventDetector(game_map, constants).detect()
        assert SimulationEvent.create(SimulationEventType.ATTACK, a, b, 0.0) in events
        assert SimulationEvent.create(SimulationEventType.COLLISION, a, b, 0.5) in events

    def test_pair_detected_once(self, game_map, constants):
        place(game_map, 0, (50, 50), (2, 0))
        place(game_map, 1, (58, 50), (-2, 0))
        events = EventDetector(game_map, constants).detect()
        assert len(of_type(events, SimulationEventType.ATTACK)) == 1

    def test_pair_across_cell_boundary(self, game_map, constants):
        a = place(game_map, 0, (62, 10))
        b = place(game_map, 1, (66, 10))
        events = EventDetector(game_map, constants).detect()
        assert events == {SimulationEvent.create(SimulationEventType.ATTACK, a, b, 0.0)}

    def test_dead_ships_are_ignored(self, game_map, constants):
        place(game_map, 0, (50, 50))
        b = place(game_map, 1, (54, 50))
        game_map.unsafe_kill_entity(b)
        assert EventDetector(game_map, constants).detect() == set()

    def test_grid_prunes_pair_tests(self, game_map, constants):
        for i in range(4):
            place(game_map, 0, (10 + 3 * i, 10))
            place(game_map, 1, (190 - 3 * i, 190))
        detector = EventDetector(game_map, constants)
        detector.detect()
        assert detector.tests_performed < 8 ** 2


# =============================================================================
# PLANETS AND BOUNDARIES
# =============================================================================

class TestPlanetAndBoundaryEvents:
    """Planet collisions and desertions."""

    def test_ship_hits_planet(self, game_map, constants):
        game_map.add_planet(Vector2D(50, 40), 5, 1000, 2, 100)
        ship = place(game_map, 0, (40, 40), (5, 0))
        events = EventDetector(game_map, constants).detect()
        assert events == {SimulationEvent.create(
            SimulationEventType.COLLISION, ship, EntityId.for_planet(0), 0.9
        )}

    def test_destroyed_planets_are_ignored(self, game_map, constants):
        game_map.add_planet(Vector2D(50, 40), 5, 1000, 2, 100)
        game_map.unsafe_kill_entity(EntityId.for_planet(0))
        place(game_map, 0, (40, 40), (5, 0))
        assert EventDetector(game_map, constants).detect() == set()

    @pytest.mark.parametrize("location,velocity,expected", [
        ((5, 30), (-10, 0), 0.5),
        ((195, 30), (7, 0), 0.7143),
        ((30, 197), (0, 6), 0.5),
        ((2, 3), (-4, -12), 0.25),
    ])
    def test_desertion_time(self, game_map, constants, location, velocity, expected):
        ship = place(game_map, 0, location, velocity)
        events = EventDetector(game_map, constants).detect()
        assert events == {SimulationEvent.create(SimulationEventType.DESERTION, ship, ship, expected)}

    def test_ship_ending_on_the_edge_stays(self, game_map, constants):
        place(game_map, 0, (5, 30), (-5, 0))
        assert EventDetector(game_map, constants).detect() == set()


# =============================================================================
# SUB-STEP DURATION
# =============================================================================

class TestSubstepDuration:
    """Detection only covers the current sub-step's share of the turn."""

    def test_half_step_reaches_range_at_end(self, game_map, constants):
        a = place(game_map, 0, (50, 50), (2, 0))
        b = place(game_map, 1, (58, 50), (-2, 0))
        events = EventDetector(game_map, constants, duration=0.5).detect()
        assert events == {SimulationEvent.create(SimulationEventType.ATTACK, a, b, 1.0)}

    def test_quarter_step_does_not_reach(self, game_map, constants):
        place(game_map, 0, (50, 50), (2, 0))
        place(game_map, 1, (58, 50), (-2, 0))
        assert EventDetector(game_map, constants, duration=0.25).detect() == set()

    def test_desertion_scaled_by_duration(self, game_map, constants):
        ship = place(game_map, 0, (2, 30), (-8, 0))
        events = EventDetector(game_map, constants, duration=0.5).detect()
        assert events == {SimulationEvent.create(SimulationEventType.DESERTION, ship, ship, 0.5)}
