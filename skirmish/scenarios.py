#!/usr/bin/env python3
"""
Hand-authored match scenarios for the Skirmish simulation kernel.

Each scenario fixes the map size, the planets and the starting ships of
every fleet. Scenarios are small, deterministic set pieces used by the CLI
and the test suite:
- duel: two fleets facing each other across an empty map
- contested_planet: two fleets in docking range of the same planet
- planet_assault: a fleet holding a planet while the other attacks it
- boundary_run: a fleet drifting toward the map edge

Usage:
    config = get_scenario("duel")
    game_map = build_map(config)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from .constants import GameConstants
from .physics import Vector2D
from .world import GameMap


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class ShipConfiguration:
    """
    Starting state of one ship.

    Attributes:
        fleet_id: Owning fleet.
        position: Initial (x, y).
        velocity: Initial (vx, vy) per turn.
        health: Starting health; None uses base ship health.
    """
    fleet_id: int
    position: tuple[float, float]
    velocity: tuple[float, float] = (0.0, 0.0)
    health: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ShipConfiguration:
        return cls(
            fleet_id=int(data["fleet"]),
            position=tuple(data["position"]),
            velocity=tuple(data.get("velocity", (0.0, 0.0))),
            health=data.get("health"),
        )


@dataclass
class PlanetConfiguration:
    """
    Starting state of one planet.

    Attributes:
        position: Centre (x, y).
        radius: Planet radius.
        docking_spots: Ships that can dock at once.
        production: Total production the planet can yield.
        health: Starting health; None derives it from the radius.
    """
    position: tuple[float, float]
    radius: float
    docking_spots: int = 2
    production: int = 720
    health: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlanetConfiguration:
        return cls(
            position=tuple(data["position"]),
            radius=float(data["radius"]),
            docking_spots=int(data.get("docking_spots", 2)),
            production=int(data.get("production", 720)),
            health=data.get("health"),
        )


@dataclass
class ScenarioConfig:
    """
    Complete configuration for a scenario.

    Attributes:
        name: Unique scenario identifier.
        description: What the scenario sets up.
        width: Map width.
        height: Map height.
        num_fleets: Number of fleets.
        ships: Starting ships.
        planets: Planets, in index order.
    """
    name: str
    description: str
    width: float
    height: float
    num_fleets: int
    ships: list[ShipConfiguration] = field(default_factory=list)
    planets: list[PlanetConfiguration] = field(default_factory=list)

    def __post_init__(self) -> None:
        for ship in self.ships:
            if not 0 <= ship.fleet_id < self.num_fleets:
                raise ValueError(f"Ship fleet {ship.fleet_id} outside 0..{self.num_fleets - 1}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScenarioConfig:
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            width=float(data["width"]),
            height=float(data["height"]),
            num_fleets=int(data["num_fleets"]),
            ships=[ShipConfiguration.from_dict(s) for s in data.get("ships", [])],
            planets=[PlanetConfiguration.from_dict(p) for p in data.get("planets", [])],
        )

    @classmethod
    def from_json(cls, filepath: str | Path) -> ScenarioConfig:
        """Load a scenario from a JSON file."""
        with open(filepath) as f:
            return cls.from_dict(json.load(f))


def planet_health(radius: float, constants: GameConstants) -> int:
    """Default planet health: proportional to its radius."""
    return int(radius * constants.max_ship_health)


def build_map(config: ScenarioConfig, constants: Optional[GameConstants] = None) -> GameMap:
    """
    Create the world a scenario describes.

    Ships are spawned in list order, so per-fleet slot indices follow the
    order ships appear in the configuration.
    """
    constants = constants or GameConstants()
    game_map = GameMap(config.width, config.height, config.num_fleets, constants)

    for planet in config.planets:
        game_map.add_planet(
            location=Vector2D.from_tuple(planet.position),
            radius=planet.radius,
            health=planet.health if planet.health is not None else planet_health(planet.radius, constants),
            docking_spots=planet.docking_spots,
            production=planet.production,
        )

    for ship_config in config.ships:
        index = game_map.spawn_ship(ship_config.fleet_id, Vector2D.from_tuple(ship_config.position))
        ship = game_map.ships[ship_config.fleet_id][index]
        ship.velocity = Vector2D.from_tuple(ship_config.velocity)
        if ship_config.health is not None:
            ship.health = ship_config.health

    return game_map


# =============================================================================
# SCENARIO DEFINITIONS
# =============================================================================

def create_duel() -> ScenarioConfig:
    """Three ships per fleet, lined up on opposite sides of an empty map."""
    ships = []
    for i in range(3):
        ships.append(ShipConfiguration(fleet_id=0, position=(20.0, 40.0 + 4.0 * i)))
        ships.append(ShipConfiguration(fleet_id=1, position=(100.0, 40.0 + 4.0 * i)))
    return ScenarioConfig(
        name="duel",
        description="Two fleets of three ships facing each other across an empty map.",
        width=120.0,
        height=88.0,
        num_fleets=2,
        ships=ships,
    )


def create_contested_planet() -> ScenarioConfig:
    """Both fleets start within docking reach of the same planet."""
    return ScenarioConfig(
        name="contested_planet",
        description="One ship per fleet parked on either side of a single planet.",
        width=80.0,
        height=80.0,
        num_fleets=2,
        planets=[PlanetConfiguration(position=(40.0, 40.0), radius=3.0, docking_spots=2)],
        ships=[
            ShipConfiguration(fleet_id=0, position=(34.0, 40.0)),
            ShipConfiguration(fleet_id=1, position=(46.0, 40.0)),
        ],
    )


def create_planet_assault() -> ScenarioConfig:
    """Fleet 0 holds a planet; fleet 1 starts further out with more ships."""
    return ScenarioConfig(
        name="planet_assault",
        description="A lone defender next to a planet against an incoming wing of three.",
        width=160.0,
        height=100.0,
        num_fleets=2,
        planets=[
            PlanetConfiguration(position=(40.0, 50.0), radius=5.0, docking_spots=3),
            PlanetConfiguration(position=(120.0, 50.0), radius=4.0, docking_spots=2),
        ],
        ships=[
            ShipConfiguration(fleet_id=0, position=(47.0, 50.0)),
            ShipConfiguration(fleet_id=1, position=(70.0, 46.0), velocity=(-3.0, 0.0)),
            ShipConfiguration(fleet_id=1, position=(70.0, 50.0), velocity=(-3.0, 0.0)),
            ShipConfiguration(fleet_id=1, position=(70.0, 54.0), velocity=(-3.0, 0.0)),
        ],
    )


def create_boundary_run() -> ScenarioConfig:
    """A fleet already heading off the map; the other sits still."""
    return ScenarioConfig(
        name="boundary_run",
        description="Fleet 0 drifts toward the left edge while fleet 1 waits in the middle.",
        width=60.0,
        height=60.0,
        num_fleets=2,
        ships=[
            ShipConfiguration(fleet_id=0, position=(5.0, 30.0), velocity=(-7.0, 0.0)),
            ShipConfiguration(fleet_id=1, position=(30.0, 30.0)),
        ],
    )


# =============================================================================
# SCENARIO REGISTRY
# =============================================================================

SCENARIO_REGISTRY: dict[str, Callable[[], ScenarioConfig]] = {
    "duel": create_duel,
    "contested_planet": create_contested_planet,
    "planet_assault": create_planet_assault,
    "boundary_run": create_boundary_run,
}


def list_scenarios() -> list[str]:
    return sorted(SCENARIO_REGISTRY)


def get_scenario(name: str) -> ScenarioConfig:
    """
    Build a registered scenario by name.

    Raises:
        KeyError: If no scenario has that name.
    """
    if name not in SCENARIO_REGISTRY:
        raise KeyError(f"Unknown scenario '{name}'. Available: {', '.join(list_scenarios())}")
    return SCENARIO_REGISTRY[name]()
