"""Tests for GameProcessorRegistry."""

import pytest

from tracker.processors.cod_gun_game import CoDGunGameProcessor
from tracker.processors.mario_kart import MarioKart8Processor
from tracker.processors.marvel_rivals import MarvelRivalsProcessor
from tracker.processors.registry import GameProcessorRegistry, default_registry, get_game_processor
from tracker.processors.rocket_league import RocketLeagueProcessor
from tracker.utils.exceptions import UnknownGameError


class TestResolve:
    def test_each_game_id_maps_to_its_own_processor(self):
        assert isinstance(default_registry.resolve(1), MarioKart8Processor)
        assert isinstance(default_registry.resolve(2), RocketLeagueProcessor)
        assert isinstance(default_registry.resolve(3), CoDGunGameProcessor)
        assert isinstance(default_registry.resolve(4), MarvelRivalsProcessor)

        instances = [default_registry.resolve(game_id) for game_id in default_registry.game_ids]
        assert len({id(instance) for instance in instances}) == len(instances)

    def test_same_processor_is_returned_every_time(self):
        assert get_game_processor(3) is get_game_processor(3)

    @pytest.mark.parametrize("game_id", [0, 999, -1, None, "3"])
    def test_unknown_game_id_raises(self, game_id):
        with pytest.raises(UnknownGameError) as exc_info:
            default_registry.resolve(game_id)
        assert str(exc_info.value) == f"Invalid game id: {game_id}"

    def test_find_by_name_ignores_case(self):
        assert isinstance(default_registry.find_by_name("call of duty"), CoDGunGameProcessor)
        assert default_registry.find_by_name("Tetris") is None


class TestConstruction:
    def test_duplicate_game_ids_are_rejected(self):
        with pytest.raises(ValueError):
            GameProcessorRegistry([CoDGunGameProcessor(), CoDGunGameProcessor()])

    def test_custom_registry_only_knows_its_processors(self):
        registry = GameProcessorRegistry([MarioKart8Processor()])
        assert registry.game_ids == [1]
        with pytest.raises(UnknownGameError):
            registry.resolve(3)

    def test_stat_names_are_unique_per_game(self):
        for processor in default_registry.all():
            names = [definition.name for definition in processor.stats]
            assert len(names) == len(set(names)), processor
