#!/usr/bin/env python3
"""
Run a Skirmish match on a hand-authored scenario and print a JSON summary.

Usage:
    python scripts/run_match.py --scenario duel
    python scripts/run_match.py --scenario contested_planet --commands orders.json --turns 10
    python scripts/run_match.py --scenario-file my_map.json --log-level DEBUG

The commands file maps fleet ids to a list of turns; each turn is a list of
sub-steps, each sub-step a mapping of ship slot to command dictionary:

    {"0": [[{"0": {"type": "dock", "planet": 0}}]]}
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from skirmish.constants import DEFAULT_CONSTANTS_PATH, load_constants
from skirmish.commands import parse_fleet_commands
from skirmish.runner import MatchRunner, ScriptedController
from skirmish.scenarios import ScenarioConfig, build_map, get_scenario, list_scenarios
from skirmish.simulation import Simulation


def load_scripts(path: str, constants, num_fleets: int) -> dict:
    """Build one ScriptedController per fleet from a commands file."""
    with open(path) as f:
        raw = json.load(f)

    controllers = {fleet_id: ScriptedController() for fleet_id in range(num_fleets)}
    for fleet_key, turns in raw.items():
        fleet_id = int(fleet_key)
        if fleet_id not in controllers:
            logger.warning(f"Ignoring commands for unknown fleet {fleet_id}")
            continue
        controllers[fleet_id] = ScriptedController(
            [parse_fleet_commands(turn, constants) for turn in turns]
        )
    return controllers


def main():
    parser = argparse.ArgumentParser(
        description="Run a Skirmish match on a scenario",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Scenarios: {', '.join(list_scenarios())}
        """,
    )

    # Scenario selection
    parser.add_argument(
        "--scenario",
        default="duel",
        choices=list_scenarios(),
        help="Built-in scenario to play (default: duel)",
    )
    parser.add_argument(
        "--scenario-file",
        help="JSON scenario file; overrides --scenario",
    )
    parser.add_argument(
        "--constants",
        default=str(DEFAULT_CONSTANTS_PATH),
        help="Game constants JSON file",
    )

    # Match settings
    parser.add_argument(
        "--commands",
        help="JSON file of scripted commands per fleet",
    )
    parser.add_argument(
        "--turns",
        type=int,
        default=None,
        help="Stop after this many turns (default: play to completion)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=1.0,
        help="Per-controller response timeout in seconds",
    )

    # Output
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for the kernel",
    )
    parser.add_argument(
        "--history",
        action="store_true",
        help="Include every turn result in the output",
    )

    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=args.log_level)

    constants = load_constants(args.constants)
    if args.scenario_file:
        config = ScenarioConfig.from_json(args.scenario_file)
    else:
        config = get_scenario(args.scenario)

    sim = Simulation(build_map(config, constants), constants)
    if args.commands:
        controllers = load_scripts(args.commands, constants, config.num_fleets)
    else:
        controllers = {fleet_id: ScriptedController() for fleet_id in range(config.num_fleets)}

    runner = MatchRunner(sim, controllers, timeout=args.timeout)
    results = asyncio.run(runner.run(max_turns=args.turns))

    summary = {
        "scenario": config.name,
        "turns": sim.turn_number,
        "max_turns": sim.max_turns,
        "living_fleets": sim.living_fleets,
        "alive_turn_count": sim.alive_turn_count,
        "timed_out": sorted(sim.timed_out),
        "counters": [c.to_dict() for c in sim.counters],
        "final": sim.game_map.snapshot().to_dict(),
        "constants": constants.to_dict(),
    }
    if args.history:
        summary["history"] = [result.to_dict() for result in results]

    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
