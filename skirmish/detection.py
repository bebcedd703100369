"""
Event detection for one sub-step.

For every ship the detector gathers nearby ships from the CollisionGrid and
classifies each pair as a potential attack (different fleets within reach
of weapon range) and/or a potential collision (hulls that may touch). Ships
are also checked against every live planet and against the map boundary.

Times are relative to the sub-step: 0 is its start and 1 its end. A ship
covers velocity * duration during the sub-step, where duration is the
sub-step's share of a turn.
"""

from __future__ import annotations

from loguru import logger

from .collision import collision_time, might_attack, might_collide, round_event_time
from .constants import GameConstants
from .entities import Planet, Ship
from .events import SimulationEvent, SimulationEventType
from .physics import Vector2D
from .spatial import CollisionGrid
from .world import GameMap


class EventDetector:
    """
    Builds the set of simulation events for the current sub-step.

    Attributes:
        game_map: World being simulated.
        constants: Match constants.
        duration: Fraction of a turn covered by one sub-step.
        tests_performed: Pair tests run by the last call to detect().
    """

    def __init__(self, game_map: GameMap, constants: GameConstants, duration: float = 1.0) -> None:
        self.game_map = game_map
        self.constants = constants
        self.duration = duration
        self.tests_performed = 0

    def _displacement(self, ship: Ship) -> Vector2D:
        return ship.velocity * self.duration

    def detect(self) -> set[SimulationEvent]:
        """
        Find every attack, collision and desertion inside the sub-step.

        Returns:
            Set of events; a pair found from both sides appears once.
        """
        events: set[SimulationEvent] = set()
        grid = CollisionGrid(self.game_map, self.constants.collision_cell_size)
        ships = [ship for ship in self.game_map.all_ships() if ship.is_alive]
        farthest = max((self._displacement(ship).magnitude for ship in ships), default=0.0)
        self.tests_performed = 0

        for ship in ships:
            reach = (
                self._displacement(ship).magnitude + farthest
                + self.constants.weapon_radius + 2 * self.constants.ship_radius
            )
            for other_id in grid.query(ship.location, reach):
                other = self.game_map.get_ship(other_id)
                self._find_pair_events(events, ship, other)
                self.tests_performed += 1

            for planet in self.game_map.live_planets():
                self._find_planet_collision(events, ship, planet)

            self._find_desertion(events, ship)

        logger.debug(f"Collision tests: {self.tests_performed}/{len(ships) ** 2}")
        return events

    def _find_pair_events(self, events: set[SimulationEvent], ship1: Ship, ship2: Ship) -> None:
        """Attack and collision checks between two ships."""
        precision = self.constants.event_time_precision
        distance = ship1.location.distance_to(ship2.location)
        step1 = self._displacement(ship1)
        step2 = self._displacement(ship2)
        id1 = ship1.entity_id
        id2 = ship2.entity_id

        if ship1.owner != ship2.owner:
            attack_radius = ship1.radius + ship2.radius + self.constants.weapon_radius
            if might_attack(distance, step1.magnitude, step2.magnitude, attack_radius):
                t = collision_time(attack_radius, ship1.location, ship2.location, step1, step2, precision)
                if t is not None and t <= 1.0:
                    events.add(SimulationEvent.create(SimulationEventType.ATTACK, id1, id2, t))
                elif distance < attack_radius:
                    events.add(SimulationEvent.create(SimulationEventType.ATTACK, id1, id2, 0.0))

        if id1 != id2:
            collision_radius = ship1.radius + ship2.radius
            if might_collide(distance, step1.magnitude, step2.magnitude, collision_radius):
                t = collision_time(collision_radius, ship1.location, ship2.location, step1, step2, precision)
                if t is not None and t <= 1.0:
                    events.add(SimulationEvent.create(SimulationEventType.COLLISION, id1, id2, t))

    def _find_planet_collision(self, events: set[SimulationEvent], ship: Ship, planet: Planet) -> None:
        distance = ship.location.distance_to(planet.location)
        collision_radius = ship.radius + planet.radius
        step = self._displacement(ship)
        if not might_collide(distance, step.magnitude, 0.0, collision_radius):
            return
        t = collision_time(
            collision_radius, ship.location, planet.location,
            step, Vector2D.zero(), self.constants.event_time_precision,
        )
        if t is not None and t <= 1.0:
            events.add(SimulationEvent.create(
                SimulationEventType.COLLISION, ship.entity_id, planet.entity_id, t
            ))

    def _find_desertion(self, events: set[SimulationEvent], ship: Ship) -> None:
        """
        Register a desertion if the ship's end-of-step location is off the map.

        The map is convex and ships start inside it, so the first boundary
        crossing along the straight trajectory is the moment of desertion.
        """
        step = self._displacement(ship)
        if self.game_map.within_bounds(ship.location + step):
            return

        crossings = []
        for position, delta, limit in (
            (ship.location.x, step.x, self.game_map.width),
            (ship.location.y, step.y, self.game_map.height),
        ):
            if delta < 0:
                crossings.append(-position / delta)
            elif delta > 0:
                crossings.append((limit - position) / delta)

        time = min((t for t in crossings if t >= 0.0), default=0.0)
        time = min(1.0, round_event_time(time, self.constants.event_time_precision))
        events.add(SimulationEvent.create(
            SimulationEventType.DESERTION, ship.entity_id, ship.entity_id, time
        ))
