"""
Event types for the Skirmish simulation kernel.

Two families live here:

- SimulationEvent: an interaction detected inside a sub-step (attack,
  collision, desertion) that the scheduler orders and the resolution engine
  applies.
- Frame records (AttackRecord, DestroyedRecord, SpawnRecord): what actually
  happened, reported to replay and scoring collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .entities import EntityId
from .physics import Vector2D


# =============================================================================
# SIMULATION EVENTS
# =============================================================================

class SimulationEventType(Enum):
    """Kinds of interaction detected within a sub-step."""
    ATTACK = "attack"
    COLLISION = "collision"
    DESERTION = "desertion"


_TYPE_ORDER = {
    SimulationEventType.COLLISION: 0,
    SimulationEventType.DESERTION: 1,
    SimulationEventType.ATTACK: 2,
}


@dataclass(frozen=True)
class SimulationEvent:
    """
    A detected interaction between one or two entities.

    Participants are stored in canonical order, so the same pair detected
    from either side compares (and hashes) equal and collapses in a set.
    Desertions name the deserting ship twice.

    Attributes:
        event_type: Kind of interaction.
        id1: First participant (lower sort key).
        id2: Second participant.
        time: Rounded time within the sub-step, in [0, 1].
    """
    event_type: SimulationEventType
    id1: EntityId
    id2: EntityId
    time: float

    @classmethod
    def create(
        cls,
        event_type: SimulationEventType,
        first: EntityId,
        second: EntityId,
        time: float,
    ) -> SimulationEvent:
        if second.sort_key < first.sort_key:
            first, second = second, first
        return cls(event_type, first, second, time)

    @property
    def sort_key(self) -> tuple:
        return (self.time, _TYPE_ORDER[self.event_type], self.id1.sort_key, self.id2.sort_key)

    @property
    def participants(self) -> tuple[EntityId, EntityId]:
        return (self.id1, self.id2)

    def to_dict(self) -> dict:
        return {
            "type": self.event_type.value,
            "entities": [self.id1.to_dict(), self.id2.to_dict()],
            "time": self.time,
        }

    def __str__(self) -> str:
        return f"t={self.time:.4f} {self.event_type.name} {self.id1} <-> {self.id2}"


# =============================================================================
# FRAME RECORDS
# =============================================================================

@dataclass
class AttackRecord:
    """
    One attacker firing on every target it engaged in a batch.

    Attributes:
        attacker: The firing ship.
        location: Attacker location at the start of the sub-step.
        time: Batch time within the sub-step.
        targets: Ships engaged, in engagement order.
        target_locations: Target locations at the start of the sub-step.
        substep: Sub-step index within the turn.
    """
    attacker: EntityId
    location: Vector2D
    time: float
    targets: list[EntityId] = field(default_factory=list)
    target_locations: list[Vector2D] = field(default_factory=list)
    substep: int = 0

    def to_dict(self) -> dict:
        return {
            "event": "attack",
            "entity": self.attacker.to_dict(),
            "x": self.location.x,
            "y": self.location.y,
            "time": self.time,
            "substep": self.substep,
            "targets": [t.to_dict() for t in self.targets],
            "target_locations": [loc.to_tuple() for loc in self.target_locations],
        }


@dataclass
class DestroyedRecord:
    """An entity destroyed at a given moment, located where it died."""
    entity: EntityId
    location: Vector2D
    radius: float
    time: float
    substep: int = 0

    def to_dict(self) -> dict:
        return {
            "event": "destroyed",
            "entity": self.entity.to_dict(),
            "x": self.location.x,
            "y": self.location.y,
            "radius": self.radius,
            "time": self.time,
            "substep": self.substep,
        }


@dataclass
class SpawnRecord:
    """A ship produced by a planet at the end of a turn."""
    entity: EntityId
    location: Vector2D
    planet_location: Vector2D

    def to_dict(self) -> dict:
        return {
            "event": "spawned",
            "entity": self.entity.to_dict(),
            "x": self.location.x,
            "y": self.location.y,
            "planet_x": self.planet_location.x,
            "planet_y": self.planet_location.y,
        }


FrameEvent = Union[AttackRecord, DestroyedRecord, SpawnRecord]
