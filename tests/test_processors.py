"""Tests for the per-game screenshot processors."""

import itertools

import pytest

from tracker.constants import VisionMessages, VisionResultCode
from tracker.processors.base import (
    KnownPlayer, ProcessedPlayer, ProcessedStat, StatDefinition, StatKind, WinnerEntry
)
from tracker.processors.cod_gun_game import CoDGunGameProcessor
from tracker.processors.mario_kart import MarioKart8Processor
from tracker.processors.marvel_rivals import MarvelRivalsProcessor, parse_match_result
from tracker.processors.rocket_league import RocketLeagueProcessor

KNOWN = [
    KnownPlayer(1, "Ben"),
    KnownPlayer(2, "Ana"),
    KnownPlayer(3, "Kai"),
    KnownPlayer(4, "Jordan"),
]


def _player(player_id, name, **stats):
    return ProcessedPlayer(
        name=name,
        player_id=player_id,
        stats=[ProcessedStat(stat_name, value) for stat_name, value in stats.items()]
    )


class TestValidateStats:
    @pytest.fixture
    def processor(self):
        return CoDGunGameProcessor()

    @pytest.mark.parametrize("raw", [None, "", "   ", "???", "--", "abc!", "9" * 5000])
    def test_unreadable_values_default_to_zero_and_flag(self, processor, raw):
        result = processor.validate_stats(raw, StatDefinition("COD_SCORE"))
        assert result.stat_value == "0"
        assert result.req_check is True

    def test_clean_number_passes_unflagged(self, processor):
        result = processor.validate_stats(" 1,250 ", StatDefinition("COD_SCORE"))
        assert result.stat_value == "1250"
        assert result.req_check is False

    def test_ocr_confusions_are_repaired_but_flagged(self, processor):
        result = processor.validate_stats("1O5", StatDefinition("COD_KILLS"))
        assert result.stat_value == "105"
        assert result.req_check is True

    def test_value_above_maximum_is_flagged(self, processor):
        result = processor.validate_stats("1500", StatDefinition("COD_KILLS", max_value=999))
        assert result.stat_value == "1500"
        assert result.req_check is True

    def test_position_accepts_ordinal_suffix(self, processor):
        result = processor.validate_stats("3rd", StatDefinition("MK8_POS", StatKind.POSITION, max_value=12))
        assert result.stat_value == "3"
        assert result.req_check is False

    def test_position_zero_is_flagged(self, processor):
        result = processor.validate_stats("0", StatDefinition("MK8_POS", StatKind.POSITION))
        assert result.req_check is True

    @pytest.mark.parametrize("raw,expected,flagged", [
        ("1", "1", False),
        ("Yes", "1", False),
        ("", "0", False),
        ("no", "0", False),
        ("maybe", "0", True),
    ])
    def test_boolean_tokens(self, processor, raw, expected, flagged):
        result = processor.validate_stats(raw, StatDefinition("MR_MVP", StatKind.BOOLEAN))
        assert result.stat_value == expected
        assert result.req_check is flagged

    def test_is_canonical(self, processor):
        assert processor.is_canonical("COD_SCORE", "100")
        assert not processor.is_canonical("COD_SCORE", "1,000")
        assert not processor.is_canonical("COD_SCORE", "")
        assert not processor.is_canonical("MK8_POS", "1")


class TestValidateResults:
    def test_no_players_fails(self):
        result = CoDGunGameProcessor().validate_results([], [])
        assert result.status == VisionResultCode.FAILED
        assert result.message == VisionMessages.NO_PLAYERS

    def test_winner_outside_players_fails(self):
        players = [_player(1, "Ben", COD_SCORE="10")]
        result = CoDGunGameProcessor().validate_results(players, [WinnerEntry(9, "Ghost")])
        assert result.status == VisionResultCode.FAILED
        assert "Ghost" in result.message

    def test_success_carries_player_flags(self):
        players = [_player(1, "Ben", COD_SCORE="10")]
        players[0].req_check = True
        result = CoDGunGameProcessor().validate_results(players, [WinnerEntry(1, "Ben")])
        assert result.is_success
        assert result.message == VisionMessages.SUCCESS
        assert result.req_check is True
        assert result.data.winner == [WinnerEntry(1, "Ben")]


class TestCallOfDuty:
    def test_reads_rows_and_skips_unknown_players(self):
        fields = {
            "player1_name": "Ben", "player1_score": "2,400", "player1_kills": "20", "player1_deaths": "5",
            "player2_name": "RandomGuy", "player2_score": "2000", "player2_kills": "18", "player2_deaths": "9",
            "player3_name": "ana", "player3_score": "1500", "player3_kills": "12", "player3_deaths": "11",
        }
        processed = CoDGunGameProcessor().process_players(fields, KNOWN)

        assert [p.player_id for p in processed.players] == [1, 2]
        assert processed.players[0].get_stat("COD_SCORE") == "2,400"
        assert processed.players[1].name == "Ana"
        assert processed.req_check_flag is False

    def test_missing_field_flags_player(self):
        fields = {"player1_name": "Ben", "player1_score": "100", "player1_kills": "3"}
        processed = CoDGunGameProcessor().process_players(fields, KNOWN)
        assert processed.players[0].req_check is True
        assert processed.req_check_flag is True

    def test_fuzzy_name_match_is_flagged(self):
        fields = {"player1_name": "Jordn", "player1_score": "1", "player1_kills": "1", "player1_deaths": "1"}
        processed = CoDGunGameProcessor().process_players(fields, KNOWN)
        assert processed.players[0].player_id == 4
        assert processed.players[0].req_check is True

    def test_duplicate_rows_for_one_player_are_flagged(self):
        fields = {
            "player1_name": "Ben", "player1_score": "1", "player1_kills": "1", "player1_deaths": "1",
            "player2_name": "BEN", "player2_score": "2", "player2_kills": "2", "player2_deaths": "2",
        }
        processed = CoDGunGameProcessor().process_players(fields, KNOWN)
        assert len(processed.players) == 1
        assert processed.req_check_flag is True

    def test_highest_score_wins_and_ties_share(self):
        processor = CoDGunGameProcessor()
        players = [
            _player(3, "Kai", COD_SCORE="900"),
            _player(1, "Ben", COD_SCORE="1200"),
            _player(2, "Ana", COD_SCORE="1200"),
        ]
        assert processor.calculate_winners(players) == [WinnerEntry(1, "Ben"), WinnerEntry(2, "Ana")]

    def test_winners_do_not_depend_on_player_order(self):
        processor = CoDGunGameProcessor()
        players = [
            _player(1, "Ben", COD_SCORE="50"),
            _player(2, "Ana", COD_SCORE="70"),
            _player(3, "Kai", COD_SCORE="70"),
        ]
        outcomes = {
            tuple(processor.calculate_winners(list(order)))
            for order in itertools.permutations(players)
        }
        assert len(outcomes) == 1


class TestMarioKart:
    def test_row_is_position_and_best_position_wins(self):
        fields = {
            "player1": "Someone", "player1_score": "60",
            "player2": "Kai", "player2_score": "52",
            "player3": "Ben", "player3_score": "47",
        }
        processor = MarioKart8Processor()
        processed = processor.process_players(fields, KNOWN)

        assert [(p.name, p.get_stat("MK8_POS")) for p in processed.players] == [("Kai", "2"), ("Ben", "3")]
        assert processor.calculate_winners(processed.players) == [WinnerEntry(3, "Kai")]


class TestRocketLeague:
    FIELDS = {
        "team1_player1_name": "Ben", "team1_player1_score": "420", "team1_player1_goals": "2",
        "team1_player1_assists": "1", "team1_player1_saves": "3", "team1_player1_shots": "4",
        "team1_player2_name": "Ana", "team1_player2_score": "300", "team1_player2_goals": "1",
        "team1_player2_assists": "0", "team1_player2_saves": "1", "team1_player2_shots": "2",
        "team2_player1_name": "Stranger", "team2_player1_score": "500", "team2_player1_goals": "2",
        "team2_player1_assists": "0", "team2_player1_saves": "0", "team2_player1_shots": "5",
    }

    def test_team_goals_include_untracked_players(self):
        processor = RocketLeagueProcessor()
        processed = processor.process_players(self.FIELDS, KNOWN)

        assert processed.context["team_goals"] == {1: 3, 2: 2}
        assert {p.team for p in processed.players} == {1}
        winners = processor.calculate_winners(processed.players, processed.context)
        assert winners == [WinnerEntry(1, "Ben"), WinnerEntry(2, "Ana")]

    def test_tied_goals_give_no_winner_and_flag(self):
        fields = dict(self.FIELDS, team2_player1_goals="3")
        processor = RocketLeagueProcessor()
        processed = processor.process_players(fields, KNOWN)

        assert processed.req_check_flag is True
        assert processor.calculate_winners(processed.players, processed.context) == []

    def test_overlong_goal_count_is_zero_and_flagged(self):
        fields = dict(self.FIELDS, team2_player1_goals="9" * 5000)
        processed = RocketLeagueProcessor().process_players(fields, KNOWN)

        assert processed.context["team_goals"] == {1: 3, 2: 0}
        assert processed.req_check_flag is True

    def test_without_context_falls_back_to_tracked_goals(self):
        players = [_player(1, "Ben", RL_GOALS="1"), _player(2, "Ana", RL_GOALS="4")]
        players[0].team = 1
        players[1].team = 2
        assert RocketLeagueProcessor().calculate_winners(players) == [WinnerEntry(2, "Ana")]


class TestMarvelRivals:
    def test_victory_makes_every_tracked_player_a_winner(self):
        fields = {
            "result": "VICTORY",
            "player1_name": "Kai", "player1_kills": "12", "player1_deaths": "3", "player1_assists": "7",
            "player1_damage": "9,800", "player1_damage_blocked": "0", "player1_healing": "150",
            "player1_award": "MVP",
            "player2_name": "Ben", "player2_kills": "4", "player2_deaths": "5", "player2_assists": "14",
            "player2_damage": "2100", "player2_damage_blocked": "300", "player2_healing": "15000",
        }
        processor = MarvelRivalsProcessor()
        processed = processor.process_players(fields, KNOWN)

        kai = processed.players[0]
        assert kai.get_stat("MR_MVP") == "1"
        assert kai.get_stat("MR_SVP") == "0"
        assert kai.get_stat("MR_PENTA_KILL") == "0"
        assert processed.req_check_flag is False
        winners = processor.calculate_winners(processed.players, processed.context)
        assert winners == [WinnerEntry(1, "Ben"), WinnerEntry(3, "Kai")]

    def test_unreadable_result_flags_and_gives_no_winner(self):
        fields = {
            "result": "VIC?ORY!",
            "player1_name": "Kai", "player1_kills": "1", "player1_deaths": "1", "player1_assists": "1",
            "player1_damage": "1", "player1_damage_blocked": "1", "player1_healing": "1",
        }
        processor = MarvelRivalsProcessor()
        processed = processor.process_players(fields, KNOWN)

        assert processed.req_check_flag is True
        assert processor.calculate_winners(processed.players, processed.context) == []

    def test_unknown_award_flags_player(self):
        fields = {
            "result": "DEFEAT",
            "player1_name": "Kai", "player1_kills": "1", "player1_deaths": "1", "player1_assists": "1",
            "player1_damage": "1", "player1_damage_blocked": "1", "player1_healing": "1",
            "player1_award": "MXP",
        }
        processed = MarvelRivalsProcessor().process_players(fields, KNOWN)
        assert processed.players[0].req_check is True

    @pytest.mark.parametrize("text,expected", [
        ("VICTORY", "VICTORY"),
        (" victory ", "VICTORY"),
        ("DEFEAT", "DEFEAT"),
        ("", None),
        (None, None),
    ])
    def test_parse_match_result(self, text, expected):
        assert parse_match_result(text) == expected
