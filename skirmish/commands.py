"""
Commands a fleet can give its ships.

Each turn a fleet submits one mapping of ship slot -> command per sub-step.
Commands arrive from controllers as plain dictionaries; parse_command and
validate_command turn them into typed commands, degrading anything
malformed or out of range to a Noop. Targeting problems that can only be
judged against the world (unknown planet, too far to dock) are ignored
later, when the command is applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from loguru import logger

from .constants import GameConstants


# =============================================================================
# COMMAND TYPES
# =============================================================================

@dataclass(frozen=True)
class Noop:
    """Leave the ship as it is."""

    def to_dict(self) -> dict:
        return {"type": "noop"}


@dataclass(frozen=True)
class Thrust:
    """
    Accelerate an undocked ship.

    Attributes:
        magnitude: Speed added this turn.
        angle_deg: Direction in degrees, measured from +x toward +y.
    """
    magnitude: float
    angle_deg: float

    def to_dict(self) -> dict:
        return {"type": "thrust", "magnitude": self.magnitude, "angle": self.angle_deg}


@dataclass(frozen=True)
class Dock:
    """Start docking to a planet."""
    planet_index: int

    def to_dict(self) -> dict:
        return {"type": "dock", "planet": self.planet_index}


@dataclass(frozen=True)
class Undock:
    """Start undocking from the current planet."""

    def to_dict(self) -> dict:
        return {"type": "undock"}


Command = Union[Noop, Thrust, Dock, Undock]

# fleet_id -> per-sub-step list of {ship_index: Command}
FleetCommands = list[dict[int, Command]]
TurnCommands = dict[int, FleetCommands]


# =============================================================================
# PARSING AND VALIDATION
# =============================================================================

def parse_command(data: dict[str, Any]) -> Command:
    """
    Build a command from its wire dictionary.

    Args:
        data: Dictionary with a 'type' key ('noop', 'thrust', 'dock',
            'undock') and the fields that type needs.

    Returns:
        The parsed command, or Noop if the dictionary is malformed.
    """
    if not isinstance(data, dict):
        return Noop()
    kind = data.get("type")
    try:
        if kind == "thrust":
            return Thrust(float(data["magnitude"]), float(data["angle"]))
        if kind == "dock":
            return Dock(int(data["planet"]))
        if kind == "undock":
            return Undock()
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Malformed {kind} command {data!r}: {e}")
        return Noop()
    return Noop()


def validate_command(command: Command, constants: GameConstants) -> Command:
    """
    Check a command against match limits.

    Thrust must be within [0, max_acceleration]; angles are normalised into
    [0, 360). Dock targets must be non-negative.

    Args:
        command: Command to validate.
        constants: Match constants.

    Returns:
        The (possibly normalised) command, or Noop if it is out of range.
    """
    if isinstance(command, Thrust):
        if not 0 <= command.magnitude <= constants.max_acceleration:
            return Noop()
        return Thrust(command.magnitude, command.angle_deg % 360)
    if isinstance(command, Dock):
        if command.planet_index < 0:
            return Noop()
    return command


def parse_fleet_commands(
    raw: list[dict[Any, dict[str, Any]]],
    constants: GameConstants,
) -> FleetCommands:
    """
    Parse one fleet's queued commands for a turn.

    Queues longer than substeps_per_turn are truncated; slot keys that are not
    integers are dropped.
    """
    queued: FleetCommands = []
    for substep_moves in raw[:constants.substeps_per_turn]:
        moves: dict[int, Command] = {}
        for slot, data in substep_moves.items():
            try:
                index = int(slot)
            except (TypeError, ValueError):
                continue
            moves[index] = validate_command(parse_command(data), constants)
        queued.append(moves)
    return queued
