"""
World model entities for the Skirmish simulation kernel.

Ships are mobile units owned by a single fleet. Planets are stationary,
capturable production nodes that ships dock to. Both are addressed through
EntityId, a tagged reference that stays stable for the entity's lifetime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .physics import Vector2D


# =============================================================================
# ENUMS
# =============================================================================

class EntityType(Enum):
    """Kinds of entity an EntityId can reference."""
    INVALID = 0
    SHIP = 1
    PLANET = 2


class DockingStatus(Enum):
    """Docking state machine of a ship."""
    UNDOCKED = "undocked"
    DOCKING = "docking"
    DOCKED = "docked"
    UNDOCKING = "undocking"


# =============================================================================
# ENTITY IDENTITY
# =============================================================================

@dataclass(frozen=True)
class EntityId:
    """
    Tagged reference to a ship, a planet, or nothing.

    Attributes:
        entity_type: What kind of entity this refers to.
        fleet_id: Owning fleet for ships; -1 for planets and invalid ids.
        index: Ship slot within its fleet, or planet index on the map.
    """
    entity_type: EntityType
    fleet_id: int = -1
    index: int = -1

    @classmethod
    def for_ship(cls, fleet_id: int, index: int) -> EntityId:
        return cls(EntityType.SHIP, fleet_id, index)

    @classmethod
    def for_planet(cls, index: int) -> EntityId:
        return cls(EntityType.PLANET, -1, index)

    @classmethod
    def invalid(cls) -> EntityId:
        return cls(EntityType.INVALID)

    @property
    def is_ship(self) -> bool:
        return self.entity_type is EntityType.SHIP

    @property
    def is_planet(self) -> bool:
        return self.entity_type is EntityType.PLANET

    @property
    def sort_key(self) -> tuple[int, int, int]:
        """Total order used wherever iteration order affects outcomes."""
        return (self.entity_type.value, self.fleet_id, self.index)

    def to_dict(self) -> dict:
        return {
            "type": self.entity_type.name.lower(),
            "fleet": self.fleet_id,
            "index": self.index,
        }

    def __str__(self) -> str:
        if self.is_ship:
            return f"ship[{self.fleet_id}:{self.index}]"
        if self.is_planet:
            return f"planet[{self.index}]"
        return "invalid"


# =============================================================================
# SHIPS AND PLANETS
# =============================================================================

@dataclass
class Ship:
    """
    Mobile combat unit.

    Attributes:
        owner: Fleet that owns this ship.
        index: Slot of this ship within its fleet (never reused).
        location: Position at the start of the current sub-step.
        velocity: Displacement per turn.
        radius: Physical radius.
        health: Remaining health; 0 means destroyed.
        docking_status: Current docking state.
        docking_progress: Turns left until a dock/undock completes.
        docked_planet: Planet index claimed while not UNDOCKED.
        weapon_cooldown: Turns until the weapon can fire again.
    """
    owner: int
    index: int
    location: Vector2D
    radius: float
    health: int
    velocity: Vector2D = field(default_factory=Vector2D.zero)
    docking_status: DockingStatus = DockingStatus.UNDOCKED
    docking_progress: int = 0
    docked_planet: Optional[int] = None
    weapon_cooldown: int = 0

    @property
    def entity_id(self) -> EntityId:
        return EntityId.for_ship(self.owner, self.index)

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    @property
    def is_undocked(self) -> bool:
        return self.docking_status is DockingStatus.UNDOCKED

    def can_dock(self, planet: Planet, dock_radius: float) -> bool:
        """Check whether the planet surface is within docking reach."""
        return self.location.distance_to(planet.location) <= self.radius + dock_radius + planet.radius

    def heal(self, amount: int, max_health: int) -> None:
        self.health = min(max_health, self.health + amount)

    def reset_docking_status(self) -> None:
        """Return to UNDOCKED without touching the planet's docked set."""
        self.docking_status = DockingStatus.UNDOCKED
        self.docking_progress = 0
        self.docked_planet = None

    def to_snapshot(self) -> ShipSnapshot:
        return ShipSnapshot(
            owner=self.owner,
            index=self.index,
            x=self.location.x,
            y=self.location.y,
            vel_x=self.velocity.x,
            vel_y=self.velocity.y,
            health=self.health,
            docking_status=self.docking_status,
            docking_progress=self.docking_progress,
            docked_planet=self.docked_planet,
            weapon_cooldown=self.weapon_cooldown,
        )


@dataclass
class Planet:
    """
    Stationary production node.

    Attributes:
        index: Planet index on the map.
        location: Centre of the planet.
        radius: Physical radius.
        health: Remaining health; 0 means destroyed.
        docking_spots: Maximum number of ships docked at once.
        remaining_production: Production still available to extract.
        current_production: Production accumulated toward the next ship.
        owned: Whether a fleet currently owns the planet.
        owner: Owning fleet when owned.
        docked_ships: Ship indices (of the owner's fleet) holding a slot.
        frozen: Locked against docking for the rest of the turn.
    """
    index: int
    location: Vector2D
    radius: float
    health: int
    docking_spots: int
    remaining_production: int
    current_production: int = 0
    owned: bool = False
    owner: Optional[int] = None
    docked_ships: list[int] = field(default_factory=list)
    frozen: bool = False

    @property
    def entity_id(self) -> EntityId:
        return EntityId.for_planet(self.index)

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    @property
    def is_full(self) -> bool:
        return len(self.docked_ships) >= self.docking_spots

    def add_ship(self, ship_index: int) -> None:
        if ship_index not in self.docked_ships:
            self.docked_ships.append(ship_index)

    def remove_ship(self, ship_index: int) -> None:
        """Free a docking slot; the last ship out gives up ownership."""
        if ship_index in self.docked_ships:
            self.docked_ships.remove(ship_index)
        if not self.docked_ships:
            self.release()

    def release(self) -> None:
        """Drop ownership and every docking claim."""
        self.owned = False
        self.owner = None
        self.docked_ships.clear()

    def to_snapshot(self) -> PlanetSnapshot:
        return PlanetSnapshot(
            index=self.index,
            x=self.location.x,
            y=self.location.y,
            radius=self.radius,
            health=self.health,
            docking_spots=self.docking_spots,
            remaining_production=self.remaining_production,
            current_production=self.current_production,
            owner=self.owner if self.owned else None,
            docked_ships=tuple(self.docked_ships),
            frozen=self.frozen,
        )


# =============================================================================
# SNAPSHOT VIEWS
# =============================================================================

@dataclass(frozen=True)
class ShipSnapshot:
    """Immutable record of a ship at the end of a turn."""
    owner: int
    index: int
    x: float
    y: float
    vel_x: float
    vel_y: float
    health: int
    docking_status: DockingStatus
    docking_progress: int
    docked_planet: Optional[int]
    weapon_cooldown: int

    def to_dict(self) -> dict:
        return {
            "id": self.index,
            "owner": self.owner,
            "x": self.x,
            "y": self.y,
            "vel_x": self.vel_x,
            "vel_y": self.vel_y,
            "health": self.health,
            "docking": {
                "status": self.docking_status.value,
                "planet_id": self.docked_planet,
                "turns_left": self.docking_progress,
            },
            "cooldown": self.weapon_cooldown,
        }


@dataclass(frozen=True)
class PlanetSnapshot:
    """Immutable record of a planet at the end of a turn."""
    index: int
    x: float
    y: float
    radius: float
    health: int
    docking_spots: int
    remaining_production: int
    current_production: int
    owner: Optional[int]
    docked_ships: tuple[int, ...]
    frozen: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.index,
            "x": self.x,
            "y": self.y,
            "r": self.radius,
            "health": self.health,
            "docking_spots": self.docking_spots,
            "remaining_production": self.remaining_production,
            "current_production": self.current_production,
            "owner": self.owner,
            "docked_ships": list(self.docked_ships),
            "frozen": self.frozen,
        }
