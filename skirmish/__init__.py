"""Skirmish: deterministic simulation kernel for a turn-based space-combat contest."""

from .constants import (
    GameConstants,
    load_constants,
)

from .physics import (
    Vector2D,
    apply_drag,
)

from .entities import (
    # Enums
    EntityType,
    DockingStatus,
    # Identity and entities
    EntityId,
    Ship,
    Planet,
    ShipSnapshot,
    PlanetSnapshot,
)

from .world import (
    EntityLookup,
    GameMap,
    InvalidEntityError,
    LookupFailure,
    WorldSnapshot,
)

from .spatial import CollisionGrid

from .collision import (
    collision_time,
    might_attack,
    might_collide,
    round_event_time,
)

from .events import (
    # Simulation events
    SimulationEvent,
    SimulationEventType,
    # Frame records
    AttackRecord,
    DestroyedRecord,
    SpawnRecord,
)

from .detection import EventDetector
from .scheduler import EventScheduler

from .resolution import (
    FleetCounters,
    ResolutionEngine,
    explosion_damage,
)

from .commands import (
    # Command types
    Noop,
    Thrust,
    Dock,
    Undock,
    Command,
    # Utilities
    parse_command,
    parse_fleet_commands,
    validate_command,
)

from .simulation import (
    Simulation,
    TurnResult,
)

from .runner import (
    ControllerFailure,
    ControllerResponse,
    ControllerTimeout,
    FleetController,
    MatchRunner,
    ScriptedController,
    collect_commands,
)

from .scenarios import (
    PlanetConfiguration,
    ScenarioConfig,
    ShipConfiguration,
    build_map,
    get_scenario,
    list_scenarios,
)

__all__ = [
    # Configuration
    "GameConstants",
    "load_constants",
    # Physics
    "Vector2D",
    "apply_drag",
    # Entities
    "EntityType",
    "DockingStatus",
    "EntityId",
    "Ship",
    "Planet",
    "ShipSnapshot",
    "PlanetSnapshot",
    # World
    "EntityLookup",
    "GameMap",
    "InvalidEntityError",
    "LookupFailure",
    "WorldSnapshot",
    # Spatial index and solver
    "CollisionGrid",
    "collision_time",
    "might_attack",
    "might_collide",
    "round_event_time",
    # Events
    "SimulationEvent",
    "SimulationEventType",
    "AttackRecord",
    "DestroyedRecord",
    "SpawnRecord",
    # Detection, scheduling, resolution
    "EventDetector",
    "EventScheduler",
    "FleetCounters",
    "ResolutionEngine",
    "explosion_damage",
    # Commands
    "Noop",
    "Thrust",
    "Dock",
    "Undock",
    "Command",
    "parse_command",
    "parse_fleet_commands",
    "validate_command",
    # Turn orchestration
    "Simulation",
    "TurnResult",
    # Runner
    "ControllerFailure",
    "ControllerResponse",
    "ControllerTimeout",
    "FleetController",
    "MatchRunner",
    "ScriptedController",
    "collect_commands",
    # Scenarios
    "PlanetConfiguration",
    "ScenarioConfig",
    "ShipConfiguration",
    "build_map",
    "get_scenario",
    "list_scenarios",
]
