#!/usr/bin/env python3
"""
Resolution Engine for the Skirmish simulation kernel.

Applies the effects of each simultaneous batch of events:
- Collisions: ship vs ship exchange current health as damage; a ship hitting
  a planet is destroyed and the planet loses the ship's health
- Desertion: the ship leaving the map takes its full health
- Attacks: each eligible attacker splits its weapon damage evenly between
  every target it engaged in the batch; damage from all attackers is summed
  per target and truncated once
- Destruction cascades: a destroyed planet releases its docked ships and
  explodes, damaging everything nearby, which can destroy further entities

A batch is applied completely before destroyed entities are purged, and the
purge always happens before the next batch is examined.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from loguru import logger

from .constants import GameConstants
from .entities import EntityId, Planet, Ship
from .events import (
    AttackRecord,
    DestroyedRecord,
    FrameEvent,
    SimulationEvent,
    SimulationEventType,
)
from .scheduler import EventScheduler
from .world import GameMap, InvalidEntityError, LookupFailure


# =============================================================================
# SCORING COUNTERS
# =============================================================================

@dataclass
class FleetCounters:
    """
    Per-fleet aggregates consumed by scoring collaborators.

    Attributes:
        ships_produced: Ships spawned by the fleet's planets.
        damage_dealt: Weapon damage credited per engagement.
    """
    ships_produced: int = 0
    damage_dealt: int = 0

    def to_dict(self) -> dict:
        return {"ships_produced": self.ships_produced, "damage_dealt": self.damage_dealt}


# =============================================================================
# EXPLOSION FALLOFF
# =============================================================================

def explosion_damage(
    planet_radius: float,
    distance: float,
    constants: GameConstants,
) -> int:
    """
    Damage dealt by an exploding planet to a body at a given distance.

    Args:
        planet_radius: Radius of the exploding planet.
        distance: Distance from the planet centre to the near edge of the
            body being hit.
        constants: Match constants.

    Returns:
        2x max ship health at the surface (or inside the planet), falling
        linearly toward 0.5x max ship health at the explosion radius, and 0
        from the explosion radius outward.
    """
    max_health = constants.max_ship_health
    from_surface = max(0.0, distance - planet_radius)
    if from_surface >= constants.explosion_radius:
        return 0
    fraction = from_surface / constants.explosion_radius
    return int(2 * max_health - fraction * 1.5 * max_health)


# =============================================================================
# RESOLUTION ENGINE
# =============================================================================

class ResolutionEngine:
    """
    Applies event batches to the game map.

    Attributes:
        game_map: World being mutated.
        constants: Match constants.
        counters: Per-fleet counters updated as attacks land.
        duration: Fraction of a turn covered by one sub-step.
        records: Frame records produced since the last reset().
        resolved: (sub-step, event) pairs that were actually applied.
    """

    def __init__(
        self,
        game_map: GameMap,
        constants: GameConstants,
        counters: list[FleetCounters],
        duration: float = 1.0,
    ) -> None:
        self.game_map = game_map
        self.constants = constants
        self.counters = counters
        self.duration = duration
        self.records: list[FrameEvent] = []
        self.resolved: list[tuple[int, SimulationEvent]] = []
        self._substep = 0

    def reset(self) -> None:
        """Start collecting records for a new turn."""
        self.records = []
        self.resolved = []
        self._substep = 0

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def resolve(self, events: Iterable[SimulationEvent], substep: int) -> None:
        """
        Resolve every detected event of a sub-step, batch by batch.

        Args:
            events: Events detected for the sub-step.
            substep: Sub-step index within the turn, for reporting.

        Raises:
            InvalidEntityError: If an event names an id that cannot exist.
        """
        self._substep = substep
        scheduler = EventScheduler(events)
        for batch in scheduler.batches(self._is_alive):
            logger.debug(f"Resolving {len(batch)} event(s) at t={batch[0].time:.4f}")
            self.resolve_batch(batch)
            self.game_map.cleanup_entities()

    def _is_alive(self, entity_id: EntityId) -> bool:
        lookup = self.game_map.lookup(entity_id)
        if lookup.failure is LookupFailure.NO_SUCH_ENTITY and entity_id.is_ship:
            # Purged by an earlier batch
            return False
        return lookup.unwrap().is_alive

    # -------------------------------------------------------------------------
    # Batch
    # -------------------------------------------------------------------------

    def resolve_batch(self, batch: list[SimulationEvent]) -> None:
        """Apply one batch of simultaneous events."""
        time = batch[0].time
        attackers: dict[EntityId, AttackRecord] = {}

        for ev in batch:
            # Earlier events of this batch may already have destroyed a participant
            if not (self._is_alive(ev.id1) and self._is_alive(ev.id2)):
                continue
            self.resolved.append((self._substep, ev))

            if ev.event_type is SimulationEventType.COLLISION:
                damage1, damage2 = self.compute_damage(ev.id1, ev.id2)
                self.damage_entity(ev.id1, damage1, time)
                self.damage_entity(ev.id2, damage2, time)
            elif ev.event_type is SimulationEventType.DESERTION:
                self.damage_entity(ev.id1, self.game_map.get_entity(ev.id1).health, time)
            elif ev.event_type is SimulationEventType.ATTACK:
                self._register_attack(attackers, ev.id1, ev.id2, time)
                self._register_attack(attackers, ev.id2, ev.id1, time)

        damage_map: dict[EntityId, float] = {}
        for attacker_id, record in attackers.items():
            share = self.constants.weapon_damage / len(record.targets)
            for target_id in record.targets:
                damage_map[target_id] = damage_map.get(target_id, 0.0) + share
            self.game_map.get_ship(attacker_id).weapon_cooldown = self.constants.weapon_cooldown

        self.records.extend(attackers.values())

        for target_id in sorted(damage_map, key=lambda eid: eid.sort_key):
            self.damage_entity(target_id, int(damage_map[target_id]), time)

    def _register_attack(
        self,
        attackers: dict[EntityId, AttackRecord],
        source_id: EntityId,
        target_id: EntityId,
        time: float,
    ) -> None:
        """Record that source engages target, if source is able to fire."""
        attacker = self.game_map.get_ship(source_id)
        if not attacker.is_alive or attacker.weapon_cooldown > 0 or not attacker.is_undocked:
            return

        record = attackers.get(source_id)
        if record is None:
            record = AttackRecord(
                attacker=source_id,
                location=attacker.location.copy(),
                time=time,
                substep=self._substep,
            )
            attackers[source_id] = record
        record.targets.append(target_id)
        record.target_locations.append(self.game_map.get_ship(target_id).location.copy())
        self.counters[source_id.fleet_id].damage_dealt += self.constants.weapon_damage

    # -------------------------------------------------------------------------
    # Damage
    # -------------------------------------------------------------------------

    def compute_damage(self, id1: EntityId, id2: EntityId) -> tuple[int, int]:
        """
        Damage each side of a collision takes.

        Returns:
            (damage to id1, damage to id2), computed from current health
            before either side is applied.
        """
        entity1 = self.game_map.get_entity(id1)
        entity2 = self.game_map.get_entity(id2)

        if isinstance(entity1, Ship) and isinstance(entity2, Ship):
            return entity2.health, entity1.health
        if isinstance(entity1, Ship) and isinstance(entity2, Planet):
            return entity1.health, entity1.health
        if isinstance(entity1, Planet) and isinstance(entity2, Ship):
            return entity2.health, entity2.health
        raise InvalidEntityError(id2, LookupFailure.INVALID_REFERENCE)

    def damage_entity(self, entity_id: EntityId, damage: int, time: float) -> None:
        entity = self.game_map.get_entity(entity_id)
        if not entity.is_alive:
            return
        if entity.health <= damage:
            self.kill_entity(entity_id, time)
        else:
            entity.health -= damage

    def kill_entity(self, entity_id: EntityId, time: float) -> None:
        """
        Destroy an entity and run its side effects.

        The entity is marked destroyed before its cascade runs, so an
        explosion chain can never destroy the same entity twice.
        """
        entity = self.game_map.get_entity(entity_id)
        if not entity.is_alive:
            return

        location = entity.location.copy()
        if isinstance(entity, Ship):
            # Report where the ship was at the moment of death
            location = entity.location.moved_by(entity.velocity, time * self.duration)

        self.records.append(DestroyedRecord(
            entity=entity_id,
            location=location,
            radius=entity.radius,
            time=time,
            substep=self._substep,
        ))
        self.game_map.unsafe_kill_entity(entity_id)

        if isinstance(entity, Ship):
            self._release_docking_slot(entity)
        else:
            self._explode(entity, time)

    def _release_docking_slot(self, ship: Ship) -> None:
        if ship.is_undocked:
            return
        if ship.docked_planet is not None:
            self.game_map.planets[ship.docked_planet].remove_ship(ship.index)
        ship.reset_docking_status()

    def _explode(self, planet: Planet, time: float) -> None:
        """Undock a destroyed planet's ships and damage everything in range."""
        if planet.owned:
            fleet_ships = self.game_map.ships[planet.owner]
            for ship_index in planet.docked_ships:
                ship = fleet_ships.get(ship_index)
                if ship is not None:
                    ship.reset_docking_status()
        planet.docked_ships.clear()

        caught = self.game_map.test(planet.location, planet.radius + self.constants.explosion_radius)
        for target_id in caught:
            if target_id == planet.entity_id:
                continue
            target = self.game_map.get_entity(target_id)
            distance = planet.location.distance_to(target.location) - target.radius
            damage = explosion_damage(planet.radius, distance, self.constants)
            self.damage_entity(target_id, damage, time)
