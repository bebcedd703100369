"""
Game constants for the Skirmish simulation kernel.

A single immutable GameConstants instance is built at match start and handed
to every component that needs it. Values can be loaded from a JSON file in
the same shape produced by GameConstants.to_dict(), so a replay can carry
the exact parameters a match was played with.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_CONSTANTS_PATH = Path(__file__).parent.parent / "data" / "game_constants.json"


@dataclass(frozen=True)
class GameConstants:
    """
    Tunable parameters of a match.

    Attributes:
        ship_radius: Physical radius of every ship.
        max_ship_health: Health ceiling for ships (healing caps here).
        base_ship_health: Health of a freshly spawned ship.
        weapon_cooldown: Turns a ship must wait after firing.
        weapon_radius: Weapon reach beyond the two hull radii.
        weapon_damage: Damage one attacker deals per engagement, split evenly
            between all targets it engages in the same batch.
        explosion_radius: Reach of a planet explosion beyond its surface.
        dock_radius: Maximum gap between ship and planet surfaces to dock.
        dock_turns: Turns needed to complete docking or undocking.
        base_productivity: Production per turn from the first docked ship.
        additional_productivity: Production per turn per extra docked ship.
        spawn_radius: Half-width of the integer offset grid searched on spawn.
        docked_ship_regeneration: Health regained per turn while docked.
        production_per_ship: Accumulated production needed for one ship.
        drag: Speed lost per turn.
        max_acceleration: Largest thrust magnitude a command may request.
        substeps_per_turn: Queued command sets (and sub-steps) per turn.
        event_time_precision: Event times are rounded to 1 / this value.
        collision_cell_size: Side of a spatial index cell.
    """
    ship_radius: float = 0.5
    max_ship_health: int = 255
    base_ship_health: int = 255
    weapon_cooldown: int = 1
    weapon_radius: float = 5.0
    weapon_damage: int = 64
    explosion_radius: float = 10.0
    dock_radius: float = 4.0
    dock_turns: int = 5
    base_productivity: int = 6
    additional_productivity: int = 6
    spawn_radius: int = 2
    docked_ship_regeneration: int = 0
    production_per_ship: int = 72
    drag: float = 10.0
    max_acceleration: float = 7.0
    substeps_per_turn: int = 1
    event_time_precision: int = 10_000
    collision_cell_size: float = 64.0

    def __post_init__(self) -> None:
        """Reject parameter sets the kernel cannot run with."""
        if self.ship_radius <= 0:
            raise ValueError("ship_radius must be positive")
        if self.max_ship_health <= 0 or self.base_ship_health <= 0:
            raise ValueError("ship health values must be positive")
        if self.base_ship_health > self.max_ship_health:
            raise ValueError("base_ship_health cannot exceed max_ship_health")
        if self.substeps_per_turn < 1:
            raise ValueError("substeps_per_turn must be at least 1")
        if self.event_time_precision < 1:
            raise ValueError("event_time_precision must be at least 1")
        if self.collision_cell_size <= 0:
            raise ValueError("collision_cell_size must be positive")
        if self.production_per_ship <= 0:
            raise ValueError("production_per_ship must be positive")

    @classmethod
    def from_json(cls, data: dict) -> GameConstants:
        """
        Create constants from a JSON dictionary.

        Unknown keys are ignored and missing keys fall back to defaults, so
        older constant files keep loading.

        Args:
            data: Dictionary of constant names to values.

        Returns:
            A GameConstants instance.
        """
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_dict(self) -> dict:
        """Serialize constants for embedding in replays or results."""
        return asdict(self)

    def max_turns(self, width: float, height: float) -> int:
        """Turn ceiling for a map of the given size."""
        return 100 + int((width * height) ** 0.5)


def load_constants(filepath: str | Path = DEFAULT_CONSTANTS_PATH) -> GameConstants:
    """
    Load game constants from a JSON file.

    Args:
        filepath: Path to the constants file.

    Returns:
        The loaded GameConstants.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    with open(filepath, "r") as f:
        return GameConstants.from_json(json.load(f))
