#!/usr/bin/env python3
"""
Turn Orchestrator for the Skirmish simulation kernel.

This module drives one turn of the match through a fixed phase sequence:
- Liveness: fleets whose controller did not respond are removed
- Sub-steps: apply queued commands, detect events, resolve them, move ships
- Production: owned planets with docked ships build new ships
- Drag, weapon cooldowns, docking countdowns and regeneration
- Snapshot capture and survival check

A turn always runs to completion. Given the same world and the same
commands it produces exactly the same snapshot and events.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

from .commands import Command, Dock, Thrust, TurnCommands, Undock
from .constants import GameConstants
from .detection import EventDetector
from .entities import DockingStatus, Planet, Ship
from .events import FrameEvent, SimulationEvent, SpawnRecord
from .physics import Vector2D, apply_drag
from .resolution import FleetCounters, ResolutionEngine
from .world import GameMap, WorldSnapshot


# =============================================================================
# TURN RESULT
# =============================================================================

@dataclass
class TurnResult:
    """
    Everything a turn produced for the collaborators around the kernel.

    Attributes:
        turn: Turn number (1-based).
        snapshot: World at the end of the turn.
        events: Attack, destruction and spawn records in the order they
            happened.
        resolved_events: (sub-step, event) pairs the resolution engine applied.
        counters: Copy of per-fleet counters after the turn.
        living_fleets: Survival flag per fleet after the turn.
    """
    turn: int
    snapshot: WorldSnapshot
    events: list[FrameEvent] = field(default_factory=list)
    resolved_events: list[tuple[int, SimulationEvent]] = field(default_factory=list)
    counters: list[FleetCounters] = field(default_factory=list)
    living_fleets: list[bool] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "turn": self.turn,
            "snapshot": self.snapshot.to_dict(),
            "events": [ev.to_dict() for ev in self.events],
            "resolved_events": [
                dict(ev.to_dict(), substep=substep) for substep, ev in self.resolved_events
            ],
            "counters": [c.to_dict() for c in self.counters],
            "living_fleets": list(self.living_fleets),
        }


# =============================================================================
# SIMULATION
# =============================================================================

class Simulation:
    """
    Authoritative match state and turn loop.

    Usage:
        sim = Simulation(game_map, constants)
        while not sim.is_complete():
            result = sim.process_turn(commands, liveness)

    Attributes:
        game_map: World owned and mutated by the simulation.
        constants: Match constants.
        num_fleets: Number of fleets in the match.
        turn_number: Turns processed so far.
        max_turns: Turn ceiling derived from map area.
        living_fleets: Survival flag per fleet.
        counters: Per-fleet scoring counters.
        alive_turn_count: Turns each fleet has been alive for.
        timed_out: Fleets removed because their controller stopped responding.
        history: One snapshot per turn, starting with the initial world.
        event_history: Frame records per turn.
        engine: Resolution engine shared by every sub-step.
    """

    def __init__(self, game_map: GameMap, constants: Optional[GameConstants] = None) -> None:
        self.game_map = game_map
        self.constants = constants or game_map.constants
        self.num_fleets = game_map.num_fleets
        self.turn_number = 0
        self.max_turns = self.constants.max_turns(game_map.width, game_map.height)

        self.living_fleets: list[bool] = [True] * self.num_fleets
        self.counters: list[FleetCounters] = [FleetCounters() for _ in range(self.num_fleets)]
        self.alive_turn_count: list[int] = [1] * self.num_fleets
        self.timed_out: set[int] = set()

        self.substep_duration = 1.0 / self.constants.substeps_per_turn
        self.engine = ResolutionEngine(
            game_map, self.constants, self.counters, duration=self.substep_duration
        )

        self.history: list[WorldSnapshot] = [game_map.snapshot()]
        self.event_history: list[list[FrameEvent]] = []

    # -------------------------------------------------------------------------
    # Turn
    # -------------------------------------------------------------------------

    def process_turn(
        self,
        commands: Optional[TurnCommands] = None,
        liveness: Optional[dict[int, bool]] = None,
    ) -> TurnResult:
        """
        Advance the match by one turn.

        Args:
            commands: fleet_id -> per-sub-step {ship_index: Command}. Missing
                fleets, sub-steps or ships mean "no command".
            liveness: fleet_id -> whether its controller responded this turn.
                Missing fleets count as responsive.

        Returns:
            The TurnResult for this turn.

        Raises:
            InvalidEntityError: If an unresolvable entity reference reaches
                the resolution engine. The turn is aborted.
        """
        commands = commands or {}
        liveness = liveness or {}

        self.turn_number += 1
        logger.info(f"Turn {self.turn_number}")
        self.engine.reset()

        for planet in self.game_map.planets:
            planet.frozen = False

        for fleet_id in range(self.num_fleets):
            if self.living_fleets[fleet_id] and not liveness.get(fleet_id, True):
                self.kill_fleet(fleet_id)
            if self.living_fleets[fleet_id]:
                self.alive_turn_count[fleet_id] += 1

        for substep in range(self.constants.substeps_per_turn):
            substep_commands = {
                fleet_id: queue[substep]
                for fleet_id, queue in commands.items()
                if substep < len(queue)
            }
            self.run_substep(substep, substep_commands)

        spawned = self.process_production()
        self.process_drag()
        self.process_cooldowns()
        self.process_docking()

        events: list[FrameEvent] = list(self.engine.records) + spawned
        snapshot = self.game_map.snapshot()
        self.history.append(snapshot)
        self.event_history.append(events)

        self.living_fleets = self.find_living_fleets()

        return TurnResult(
            turn=self.turn_number,
            snapshot=snapshot,
            events=events,
            resolved_events=list(self.engine.resolved),
            counters=[copy.copy(c) for c in self.counters],
            living_fleets=list(self.living_fleets),
        )

    def run_substep(self, substep: int, commands: dict[int, dict[int, Command]]) -> None:
        """
        One detect -> schedule -> resolve -> advance pass.

        Args:
            substep: Sub-step index within the turn.
            commands: fleet_id -> {ship_index: Command} for this sub-step.
        """
        self.apply_commands(commands)

        detector = EventDetector(self.game_map, self.constants, self.substep_duration)
        self.engine.resolve(detector.detect(), substep)

        for ship in self.game_map.all_ships():
            ship.location = ship.location.moved_by(ship.velocity, self.substep_duration)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def apply_commands(self, commands: dict[int, dict[int, Command]]) -> None:
        """Apply one sub-step of commands, fleet by fleet, ship by ship."""
        for fleet_id in range(self.num_fleets):
            if not self.living_fleets[fleet_id]:
                continue
            fleet_moves = commands.get(fleet_id, {})
            if not fleet_moves:
                continue
            for ship in self.game_map.all_ships_of(fleet_id):
                command = fleet_moves.get(ship.index)
                if command is None:
                    continue
                if isinstance(command, Thrust):
                    self._thrust(ship, command)
                elif isinstance(command, Dock):
                    self._dock(ship, command.planet_index)
                elif isinstance(command, Undock):
                    self._undock(ship)

    def _thrust(self, ship: Ship, command: Thrust) -> None:
        if not ship.is_undocked:
            return
        ship.velocity = ship.velocity.accelerated_by(command.magnitude, math.radians(command.angle_deg))

    def _dock(self, ship: Ship, planet_index: int) -> None:
        """
        Start docking, claiming the planet if it is free.

        If the planet is owned by another fleet whose every docked ship only
        started docking this turn, both fleets tried to claim it at once:
        the planet is frozen for the rest of the turn, every claim on it is
        reverted and it becomes unowned again.
        """
        if not ship.is_undocked or not ship.velocity.is_zero:
            return
        if not 0 <= planet_index < len(self.game_map.planets):
            return

        planet = self.game_map.planets[planet_index]
        if not planet.is_alive or planet.frozen:
            return
        if not ship.can_dock(planet, self.constants.dock_radius):
            logger.warning(f"Ship {ship.entity_id} too far to dock to planet {planet_index}")
            return

        if not planet.owned:
            planet.owned = True
            planet.owner = ship.owner

        if planet.owner == ship.owner:
            if not planet.is_full:
                ship.docking_status = DockingStatus.DOCKING
                ship.docking_progress = self.constants.dock_turns
                ship.docked_planet = planet_index
                planet.add_ship(ship.index)
        elif self._claimed_this_turn(planet):
            self._freeze(planet)

    def _claimed_this_turn(self, planet: Planet) -> bool:
        fleet_ships = self.game_map.ships[planet.owner]
        return all(
            index in fleet_ships
            and fleet_ships[index].docking_status is DockingStatus.DOCKING
            and fleet_ships[index].docking_progress == self.constants.dock_turns
            for index in planet.docked_ships
        )

    def _freeze(self, planet: Planet) -> None:
        logger.info(f"Planet {planet.index} contested in the same turn; freezing")
        fleet_ships = self.game_map.ships[planet.owner]
        for index in planet.docked_ships:
            fleet_ships[index].reset_docking_status()
        planet.release()
        planet.frozen = True

    def _undock(self, ship: Ship) -> None:
        if ship.docking_status is not DockingStatus.DOCKED:
            return
        ship.docking_status = DockingStatus.UNDOCKING
        ship.docking_progress = self.constants.dock_turns

    # -------------------------------------------------------------------------
    # End-of-turn bookkeeping
    # -------------------------------------------------------------------------

    def process_production(self) -> list[SpawnRecord]:
        """
        Accrue production on owned planets and spawn ships from it.

        Returns:
            One SpawnRecord per ship created.
        """
        spawned: list[SpawnRecord] = []
        per_ship = self.constants.production_per_ship

        for planet in self.game_map.live_planets():
            if not planet.owned:
                continue
            docked = self.game_map.num_docked_ships(planet)
            if docked == 0:
                continue

            production = min(
                planet.remaining_production,
                self.constants.base_productivity + (docked - 1) * self.constants.additional_productivity,
            )
            planet.remaining_production -= production
            planet.current_production += production

            while planet.current_production >= per_ship:
                location = self.find_spawn_location(planet)
                if location is None:
                    # No room: keep the production for a later turn
                    break
                planet.current_production -= per_ship
                index = self.game_map.spawn_ship(planet.owner, location)
                self.counters[planet.owner].ships_produced += 1
                spawned.append(SpawnRecord(
                    entity=self.game_map.ships[planet.owner][index].entity_id,
                    location=location.copy(),
                    planet_location=planet.location.copy(),
                ))
        return spawned

    def find_spawn_location(self, planet: Planet) -> Optional[Vector2D]:
        """
        Unoccupied in-bounds spot next to a planet, nearest the map centre.

        Candidates are integer offsets within spawn_radius, pushed out by the
        planet radius along their own direction. The first candidate found
        wins ties.
        """
        spawn_radius = self.constants.spawn_radius
        open_radius = self.constants.ship_radius * 2
        center = self.game_map.center

        best: Optional[Vector2D] = None
        best_distance = math.inf
        for dx in range(-spawn_radius, spawn_radius + 1):
            for dy in range(-spawn_radius, spawn_radius + 1):
                angle = math.atan2(dy, dx)
                location = self.game_map.location_with_delta(
                    planet.location,
                    dx + planet.radius * math.cos(angle),
                    dy + planet.radius * math.sin(angle),
                )
                if location is None:
                    continue
                distance = location.distance_to(center)
                if distance < best_distance and not self.game_map.test(location, open_radius):
                    best_distance = distance
                    best = location
        return best

    def process_drag(self) -> None:
        for ship in self.game_map.all_ships():
            ship.velocity = apply_drag(ship.velocity, self.constants.drag)

    def process_cooldowns(self) -> None:
        for ship in self.game_map.all_ships():
            if ship.weapon_cooldown > 0:
                ship.weapon_cooldown -= 1

    def process_docking(self) -> None:
        """Advance docking countdowns and heal docked ships."""
        for ship in self.game_map.all_ships():
            if ship.docking_status is DockingStatus.DOCKING:
                ship.docking_progress -= 1
                if ship.docking_progress == 0:
                    ship.docking_status = DockingStatus.DOCKED
            elif ship.docking_status is DockingStatus.UNDOCKING:
                ship.docking_progress -= 1
                if ship.docking_progress == 0:
                    self.game_map.planets[ship.docked_planet].remove_ship(ship.index)
                    ship.reset_docking_status()
            elif ship.docking_status is DockingStatus.DOCKED:
                ship.heal(self.constants.docked_ship_regeneration, self.constants.max_ship_health)

    # -------------------------------------------------------------------------
    # Fleets
    # -------------------------------------------------------------------------

    def kill_fleet(self, fleet_id: int) -> None:
        """
        Remove an unresponsive fleet without side effects.

        Its ships vanish without explosions or damage, and its planets
        become unowned with no docked ships.
        """
        logger.info(f"Fleet {fleet_id} removed after failing to respond")
        self.timed_out.add(fleet_id)
        self.living_fleets[fleet_id] = False
        for ship in self.game_map.all_ships_of(fleet_id):
            self.game_map.unsafe_kill_entity(ship.entity_id)
        self.game_map.cleanup_entities()

        for planet in self.game_map.planets:
            if planet.owned and planet.owner == fleet_id:
                planet.release()

    def find_living_fleets(self) -> list[bool]:
        """
        Survival flag per fleet after a turn.

        A fleet survives while it has ships. If one fleet owns every live
        planet (counting only planets with a completed docking), every other
        fleet is eliminated; in a single-fleet match that ends the match.
        """
        alive = [
            self.living_fleets[fleet_id] and bool(self.game_map.ships[fleet_id])
            for fleet_id in range(self.num_fleets)
        ]

        owned = [0] * self.num_fleets
        total = 0
        for planet in self.game_map.live_planets():
            total += 1
            if planet.owned and self.game_map.num_docked_ships(planet) > 0:
                owned[planet.owner] += 1

        if total > 0:
            for fleet_id, count in enumerate(owned):
                if count == total:
                    logger.info(f"Fleet {fleet_id} controls every planet")
                    alive = [False] * self.num_fleets
                    if self.num_fleets > 1:
                        alive[fleet_id] = True
        return alive

    def is_complete(self) -> bool:
        """Whether the match is over."""
        num_living = sum(self.living_fleets)
        return (
            self.turn_number >= self.max_turns
            or (num_living <= 1 and self.num_fleets > 1)
            or (num_living == 0 and self.num_fleets == 1)
        )
