"""
Match runner: collects commands from fleet controllers and drives turns.

Controllers are queried concurrently each turn, one task per living fleet,
each bounded by a timeout. A controller that times out or raises is reported
as unresponsive and its fleet is removed by the simulation at the start of
the turn. The simulation itself stays synchronous.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union, runtime_checkable

from loguru import logger

from .commands import FleetCommands
from .simulation import Simulation, TurnResult
from .world import WorldSnapshot


# =============================================================================
# CONTROLLERS
# =============================================================================

@runtime_checkable
class FleetController(Protocol):
    """Anything that can decide a fleet's commands for one turn."""

    async def get_commands(self, fleet_id: int, snapshot: WorldSnapshot) -> FleetCommands:
        ...


@dataclass
class ScriptedController:
    """
    Replays a fixed queue of per-turn commands.

    Once the script runs out the fleet issues no commands but stays
    responsive.
    """
    script: list[FleetCommands] = field(default_factory=list)
    _turn: int = field(default=0, init=False, repr=False)

    async def get_commands(self, fleet_id: int, snapshot: WorldSnapshot) -> FleetCommands:
        if self._turn >= len(self.script):
            return []
        commands = self.script[self._turn]
        self._turn += 1
        return commands


# =============================================================================
# COLLECTION RESULTS
# =============================================================================

@dataclass(frozen=True)
class ControllerResponse:
    """Commands a controller returned in time."""
    fleet_id: int
    commands: FleetCommands
    elapsed_s: float


@dataclass(frozen=True)
class ControllerTimeout:
    """A controller that did not answer within the deadline."""
    fleet_id: int
    timeout_s: float


@dataclass(frozen=True)
class ControllerFailure:
    """A controller that raised instead of answering."""
    fleet_id: int
    error: str


ControllerResult = Union[ControllerResponse, ControllerTimeout, ControllerFailure]


async def _query_controller(
    fleet_id: int,
    controller: FleetController,
    snapshot: WorldSnapshot,
    timeout: float,
) -> ControllerResult:
    loop = asyncio.get_running_loop()
    start = loop.time()
    try:
        commands = await asyncio.wait_for(
            controller.get_commands(fleet_id, snapshot),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.warning(f"Fleet {fleet_id} controller timed out after {timeout:.2f}s")
        return ControllerTimeout(fleet_id, timeout)
    except Exception as e:
        logger.warning(f"Fleet {fleet_id} controller failed: {e}")
        return ControllerFailure(fleet_id, str(e))
    return ControllerResponse(fleet_id, commands, loop.time() - start)


async def collect_commands(
    controllers: dict[int, FleetController],
    snapshot: WorldSnapshot,
    timeout: float,
    living: Optional[list[bool]] = None,
) -> list[ControllerResult]:
    """
    Ask every living fleet's controller for its commands concurrently.

    Args:
        controllers: fleet_id -> controller.
        snapshot: World the controllers decide on.
        timeout: Per-controller deadline in seconds.
        living: Survival flag per fleet; dead fleets are not queried.

    Returns:
        One tagged result per queried fleet, ordered by fleet id.
    """
    queried = [
        fleet_id for fleet_id in sorted(controllers)
        if living is None or (fleet_id < len(living) and living[fleet_id])
    ]
    return list(await asyncio.gather(*(
        _query_controller(fleet_id, controllers[fleet_id], snapshot, timeout)
        for fleet_id in queried
    )))


# =============================================================================
# MATCH RUNNER
# =============================================================================

class MatchRunner:
    """
    Runs a simulation to completion against a set of controllers.

    Usage:
        runner = MatchRunner(sim, {0: controller_a, 1: controller_b})
        results = asyncio.run(runner.run())
    """

    def __init__(
        self,
        simulation: Simulation,
        controllers: dict[int, FleetController],
        timeout: float = 1.0,
    ) -> None:
        self.simulation = simulation
        self.controllers = controllers
        self.timeout = timeout
        self.results: list[TurnResult] = []

    async def run_turn(self) -> TurnResult:
        sim = self.simulation
        responses = await collect_commands(
            self.controllers, sim.game_map.snapshot(), self.timeout, sim.living_fleets
        )

        commands = {}
        liveness = {}
        for response in responses:
            if isinstance(response, ControllerResponse):
                commands[response.fleet_id] = response.commands
                liveness[response.fleet_id] = True
            else:
                liveness[response.fleet_id] = False

        result = sim.process_turn(commands, liveness)
        self.results.append(result)
        return result

    async def run(self, max_turns: Optional[int] = None) -> list[TurnResult]:
        """
        Play turns until the match is complete.

        Args:
            max_turns: Optional lower ceiling on the number of turns.

        Returns:
            Every turn's result, in order.
        """
        while not self.simulation.is_complete():
            if max_turns is not None and self.simulation.turn_number >= max_turns:
                break
            await self.run_turn()

        living = [i for i, alive in enumerate(self.simulation.living_fleets) if alive]
        logger.info(f"Match finished after {self.simulation.turn_number} turns; living fleets: {living}")
        return self.results
