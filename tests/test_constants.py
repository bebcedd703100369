"""Tests for GameConstants and the constants loader."""

import json
from dataclasses import FrozenInstanceError

import pytest

from skirmish.constants import DEFAULT_CONSTANTS_PATH, GameConstants, load_constants


class TestGameConstants:
    """Defaults, validation and JSON conversion."""

    def test_defaults(self):
        constants = GameConstants()
        assert constants.ship_radius == 0.5
        assert constants.max_ship_health == 255
        assert constants.weapon_damage == 64
        assert constants.weapon_radius == 5.0
        assert constants.explosion_radius == 10.0
        assert constants.dock_turns == 5
        assert constants.production_per_ship == 72
        assert constants.drag == 10.0
        assert constants.substeps_per_turn == 1
        assert constants.event_time_precision == 10_000

    def test_constants_are_immutable(self):
        constants = GameConstants()
        with pytest.raises(FrozenInstanceError):
            constants.weapon_damage = 100

    @pytest.mark.parametrize("overrides", [
        {"ship_radius": 0},
        {"max_ship_health": 0},
        {"base_ship_health": 300},
        {"substeps_per_turn": 0},
        {"event_time_precision": 0},
        {"collision_cell_size": -1.0},
        {"production_per_ship": 0},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValueError):
            GameConstants(**overrides)

    def test_from_json_ignores_unknown_keys(self):
        constants = GameConstants.from_json({"weapon_damage": 32, "not_a_constant": 1})
        assert constants.weapon_damage == 32
        assert constants.drag == 10.0

    def test_to_dict_round_trip(self):
        constants = GameConstants(dock_turns=3, substeps_per_turn=4)
        assert GameConstants.from_json(constants.to_dict()) == constants

    @pytest.mark.parametrize("width,height,expected", [
        (100, 100, 200),
        (240, 160, 295),
        (1, 1, 101),
    ])
    def test_max_turns(self, width, height, expected):
        assert GameConstants().max_turns(width, height) == expected


class TestLoadConstants:
    """Loading constants from JSON files."""

    def test_default_file_matches_defaults(self):
        assert load_constants(DEFAULT_CONSTANTS_PATH) == GameConstants()

    def test_load_from_custom_file(self, tmp_path):
        path = tmp_path / "constants.json"
        path.write_text(json.dumps({"weapon_radius": 6.0, "dock_turns": 2}))
        constants = load_constants(path)
        assert constants.weapon_radius == 6.0
        assert constants.dock_turns == 2

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_constants(tmp_path / "missing.json")

    def test_malformed_file_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            load_constants(path)
