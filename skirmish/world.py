"""
Game map: the bounded world and every entity living in it.

The map owns ships (grouped by fleet, keyed by slot index) and planets
(indexed by position in the planet list). Destroyed ships are marked with
zero health first and purged by cleanup_entities(), so an in-progress batch
can still read their last state. Destroyed planets stay in the list with
zero health so planet indices remain stable for the whole match.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Union

from .constants import GameConstants
from .entities import (
    DockingStatus,
    EntityId,
    EntityType,
    Planet,
    PlanetSnapshot,
    Ship,
    ShipSnapshot,
)
from .physics import Vector2D


Entity = Union[Ship, Planet]


# =============================================================================
# ENTITY LOOKUP
# =============================================================================

class LookupFailure(Enum):
    """Why an EntityId could not be resolved."""
    INVALID_REFERENCE = "invalid_reference"
    UNKNOWN_FLEET = "unknown_fleet"
    NO_SUCH_ENTITY = "no_such_entity"


class InvalidEntityError(Exception):
    """
    An EntityId that cannot be resolved reached the kernel.

    This signals a programming error in a caller. It aborts the current step
    rather than letting the simulation continue on inconsistent state.
    """

    def __init__(self, entity_id: EntityId, failure: LookupFailure) -> None:
        super().__init__(f"Cannot resolve {entity_id}: {failure.value}")
        self.entity_id = entity_id
        self.failure = failure


@dataclass(frozen=True)
class EntityLookup:
    """Result of resolving an EntityId: either an entity or a failure kind."""
    entity_id: EntityId
    entity: Optional[Entity] = None
    failure: Optional[LookupFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> Entity:
        """Return the entity or raise InvalidEntityError."""
        if self.failure is not None:
            raise InvalidEntityError(self.entity_id, self.failure)
        return self.entity


# =============================================================================
# WORLD SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class WorldSnapshot:
    """
    Immutable picture of the world at one instant.

    Attributes:
        width: Map width.
        height: Map height.
        ships: Per-fleet tuples of ship records, ordered by slot index.
        planets: Records of the planets alive at capture time.
    """
    width: float
    height: float
    ships: tuple[tuple[ShipSnapshot, ...], ...]
    planets: tuple[PlanetSnapshot, ...]

    def ship_count(self, fleet_id: int) -> int:
        return len(self.ships[fleet_id])

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "ships": {
                str(fleet_id): {str(s.index): s.to_dict() for s in fleet_ships}
                for fleet_id, fleet_ships in enumerate(self.ships)
            },
            "planets": {str(p.index): p.to_dict() for p in self.planets},
        }


# =============================================================================
# GAME MAP
# =============================================================================

class GameMap:
    """
    The bounded rectangular world.

    Attributes:
        width: Map width; valid x coordinates are [0, width].
        height: Map height; valid y coordinates are [0, height].
        num_fleets: Number of fleets in the match.
        constants: Match constants.
        ships: ships[fleet_id][slot_index] -> Ship.
        planets: All planets, alive or destroyed.
    """

    def __init__(self, width: float, height: float, num_fleets: int, constants: GameConstants) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("Map dimensions must be positive")
        if num_fleets < 1:
            raise ValueError("A match needs at least one fleet")
        self.width = width
        self.height = height
        self.num_fleets = num_fleets
        self.constants = constants
        self.ships: list[dict[int, Ship]] = [{} for _ in range(num_fleets)]
        self.planets: list[Planet] = []
        self._next_ship_index: list[int] = [0] * num_fleets

    @property
    def center(self) -> Vector2D:
        return Vector2D(self.width / 2.0, self.height / 2.0)

    # -------------------------------------------------------------------------
    # Entity creation
    # -------------------------------------------------------------------------

    def add_planet(
        self,
        location: Vector2D,
        radius: float,
        health: int,
        docking_spots: int,
        production: int,
    ) -> Planet:
        """Append a planet and return it."""
        planet = Planet(
            index=len(self.planets),
            location=location,
            radius=radius,
            health=health,
            docking_spots=docking_spots,
            remaining_production=production,
        )
        self.planets.append(planet)
        return planet

    def spawn_ship(self, fleet_id: int, location: Vector2D) -> int:
        """
        Create a fresh ship for a fleet.

        Slot indices come from a per-fleet counter and are never reused.

        Returns:
            The new ship's slot index.
        """
        index = self._next_ship_index[fleet_id]
        self._next_ship_index[fleet_id] += 1
        self.ships[fleet_id][index] = Ship(
            owner=fleet_id,
            index=index,
            location=location,
            radius=self.constants.ship_radius,
            health=self.constants.base_ship_health,
        )
        return index

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def lookup(self, entity_id: EntityId) -> EntityLookup:
        """Resolve an id without raising."""
        if entity_id.entity_type is EntityType.SHIP:
            if not 0 <= entity_id.fleet_id < self.num_fleets:
                return EntityLookup(entity_id, failure=LookupFailure.UNKNOWN_FLEET)
            ship = self.ships[entity_id.fleet_id].get(entity_id.index)
            if ship is None:
                return EntityLookup(entity_id, failure=LookupFailure.NO_SUCH_ENTITY)
            return EntityLookup(entity_id, entity=ship)
        if entity_id.entity_type is EntityType.PLANET:
            if not 0 <= entity_id.index < len(self.planets):
                return EntityLookup(entity_id, failure=LookupFailure.NO_SUCH_ENTITY)
            return EntityLookup(entity_id, entity=self.planets[entity_id.index])
        return EntityLookup(entity_id, failure=LookupFailure.INVALID_REFERENCE)

    def get_entity(self, entity_id: EntityId) -> Entity:
        return self.lookup(entity_id).unwrap()

    def get_ship(self, entity_id: EntityId) -> Ship:
        if not entity_id.is_ship:
            raise InvalidEntityError(entity_id, LookupFailure.INVALID_REFERENCE)
        return self.lookup(entity_id).unwrap()

    def get_planet(self, entity_id: EntityId) -> Planet:
        if not entity_id.is_planet:
            raise InvalidEntityError(entity_id, LookupFailure.INVALID_REFERENCE)
        return self.lookup(entity_id).unwrap()

    def is_valid(self, entity_id: EntityId) -> bool:
        """True if the id resolves to an entity that is still alive."""
        result = self.lookup(entity_id)
        return result.ok and result.entity.is_alive

    # -------------------------------------------------------------------------
    # Iteration
    # -------------------------------------------------------------------------

    def all_ships(self) -> Iterator[Ship]:
        """Every ship still in the map, by fleet then slot index."""
        for fleet_ships in self.ships:
            for index in sorted(fleet_ships):
                yield fleet_ships[index]

    def all_ships_of(self, fleet_id: int) -> list[Ship]:
        fleet_ships = self.ships[fleet_id]
        return [fleet_ships[index] for index in sorted(fleet_ships)]

    def live_planets(self) -> Iterator[Planet]:
        return (planet for planet in self.planets if planet.is_alive)

    def num_docked_ships(self, planet: Planet) -> int:
        """Ships on the planet that have completed docking."""
        if not planet.owned:
            return 0
        fleet_ships = self.ships[planet.owner]
        return sum(
            1 for index in planet.docked_ships
            if index in fleet_ships
            and fleet_ships[index].docking_status is DockingStatus.DOCKED
        )

    # -------------------------------------------------------------------------
    # Geometry
    # -------------------------------------------------------------------------

    def within_bounds(self, location: Vector2D) -> bool:
        return 0 <= location.x <= self.width and 0 <= location.y <= self.height

    def location_with_delta(self, location: Vector2D, dx: float, dy: float) -> Optional[Vector2D]:
        """Offset a location, or None if the result leaves the map."""
        candidate = Vector2D(location.x + dx, location.y + dy)
        if not self.within_bounds(candidate):
            return None
        return candidate

    def test(self, location: Vector2D, radius: float) -> list[EntityId]:
        """
        Exhaustively find live entities overlapping a circle.

        Args:
            location: Centre of the test circle.
            radius: Radius of the test circle.

        Returns:
            Ids of every live ship and planet whose body touches the circle,
            ships first (by fleet, slot) then planets (by index).
        """
        hits: list[EntityId] = []
        for ship in self.all_ships():
            if ship.is_alive and ship.location.distance_to(location) <= radius + ship.radius:
                hits.append(ship.entity_id)
        for planet in self.live_planets():
            if planet.location.distance_to(location) <= radius + planet.radius:
                hits.append(planet.entity_id)
        return hits

    # -------------------------------------------------------------------------
    # Removal
    # -------------------------------------------------------------------------

    def unsafe_kill_entity(self, entity_id: EntityId) -> None:
        """Mark an entity destroyed with no side effects."""
        self.get_entity(entity_id).health = 0

    def cleanup_entities(self) -> None:
        """Purge destroyed ships from their fleets."""
        for fleet_ships in self.ships:
            for index in [i for i, ship in fleet_ships.items() if not ship.is_alive]:
                del fleet_ships[index]

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def snapshot(self) -> WorldSnapshot:
        return WorldSnapshot(
            width=self.width,
            height=self.height,
            ships=tuple(
                tuple(fleet_ships[i].to_snapshot() for i in sorted(fleet_ships))
                for fleet_ships in self.ships
            ),
            planets=tuple(planet.to_snapshot() for planet in self.live_planets()),
        )
