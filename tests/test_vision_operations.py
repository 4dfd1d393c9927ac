"""Tests for the screenshot analysis workflow."""

from unittest.mock import MagicMock

import pytest

from tracker.constants import ErrorCodes, VisionMessages, VisionResultCode
from tracker.operations.vision_operations import VisionOperations, build_match_draft
from tracker.processors.base import KnownPlayer, WinnerEntry
from tracker.utils.exceptions import EmptyResult, ExtractionFailed

KNOWN = [KnownPlayer(1, "Ben"), KnownPlayer(2, "Ana"), KnownPlayer(3, "Kai")]

COD_FIELDS = {
    "player1_name": "Ben", "player1_score": "1,200", "player1_kills": "20", "player1_deaths": "4",
    "player2_name": "Ana", "player2_score": "900", "player2_kills": "15", "player2_deaths": "8",
}


class FakeExtractor:
    def __init__(self, fields=None, error=None):
        self.fields = fields
        self.error = error
        self.calls = []

    async def extract(self, image, game_id):
        self.calls.append((image, game_id))
        if self.error:
            raise self.error
        return self.fields


class TestAnalyzeScreenshot:
    async def test_successful_analysis(self):
        analytics = MagicMock()
        ops = VisionOperations(FakeExtractor(COD_FIELDS), analytics=analytics)

        result = await ops.analyze_screenshot(b"img", KNOWN, 3, actor="admin")

        assert result.status == VisionResultCode.SUCCESS
        assert result.message == VisionMessages.SUCCESS
        assert result.req_check is False
        assert result.data.winner == [WinnerEntry(1, "Ben")]
        ben = result.data.players[0]
        assert ben.get_stat("COD_SCORE") == "1200"
        analytics.log_vision_action.assert_called_once()

    async def test_low_confidence_value_flags_the_result(self):
        fields = dict(COD_FIELDS, player2_kills="l5")
        result = await VisionOperations(FakeExtractor(fields)).analyze_screenshot(b"img", KNOWN, 3)

        assert result.is_success
        assert result.req_check is True
        ana = result.data.players[1]
        assert ana.req_check is True
        assert ana.get_stat("COD_KILLS") == "15"

    async def test_poll_error_is_reported_as_failure(self):
        extractor = FakeExtractor(error=ExtractionFailed("Poller Error"))
        result = await VisionOperations(extractor).analyze_screenshot(b"img", KNOWN, 3)

        assert result.status == VisionResultCode.FAILED
        assert result.message == "Poller Error"
        assert result.data is None

    async def test_missing_fields_are_reported(self):
        extractor = FakeExtractor(error=EmptyResult(VisionMessages.FIELDS_UNDEFINED))
        result = await VisionOperations(extractor).analyze_screenshot(b"img", KNOWN, 3)

        assert result.status == VisionResultCode.FAILED
        assert result.message == "Vision Analysis Player Results are undefined"

    async def test_invalid_game_id_fails_before_extraction(self):
        extractor = FakeExtractor(COD_FIELDS)
        result = await VisionOperations(extractor).analyze_screenshot(b"img", KNOWN, 999)

        assert result.status == VisionResultCode.FAILED
        assert result.message == "Invalid game id: 999"
        assert extractor.calls == []

    async def test_no_tracked_players_fails(self):
        fields = {"player1_name": "Stranger", "player1_score": "10", "player1_kills": "1", "player1_deaths": "1"}
        result = await VisionOperations(FakeExtractor(fields)).analyze_screenshot(b"img", KNOWN, 3)

        assert result.status == VisionResultCode.FAILED
        assert result.message == VisionMessages.NO_PLAYERS

    async def test_unexpected_error_is_logged_and_hidden(self):
        extractor = FakeExtractor(error=RuntimeError("socket exploded"))
        analytics = MagicMock()
        result = await VisionOperations(extractor, analytics=analytics).analyze_screenshot(b"img", KNOWN, 3)

        assert result.status == VisionResultCode.FAILED
        assert result.message == ErrorCodes.UNKNOWN_ERROR
        analytics.log_vision_error.assert_called_once()


class TestBuildMatchDraft:
    async def test_draft_uses_ingestion_shape(self):
        result = await VisionOperations(FakeExtractor(COD_FIELDS)).analyze_screenshot(b"img", KNOWN, 3)
        draft = build_match_draft(result, {"COD_SCORE": 11, "COD_KILLS": 12})

        assert draft["matchWinners"] == [{"playerId": 1, "playerName": "Ben"}]
        ben = draft["playerSessions"][0]
        assert ben["playerId"] == 1
        assert ben["playerStats"] == [
            {"statId": 11, "stat": "COD_SCORE", "statValue": "1200"},
            {"statId": 12, "stat": "COD_KILLS", "statValue": "20"},
        ]

    async def test_failed_result_has_no_draft(self):
        result = await VisionOperations(FakeExtractor(error=ExtractionFailed("x"))).analyze_screenshot(b"img", KNOWN, 3)
        with pytest.raises(ValueError):
            build_match_draft(result, {})
