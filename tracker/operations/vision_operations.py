"""
Screenshot analysis workflow.

Runs a screenshot through the Field Extractor and the game's processor:
resolve processor -> extract fields -> process players -> validate every stat
-> calculate winners -> validate results. The outcome is always a
VisionResult; nothing is persisted here. The operator reviews the draft and
submits it through session ingestion.
"""

from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from tracker.constants import ErrorCodes
from tracker.processors.base import (
    GameProcessor, KnownPlayer, ProcessedPlayer, ProcessedStat, VisionResult
)
from tracker.processors.registry import GameProcessorRegistry, default_registry
from tracker.services.analytics import AnalyticsService
from tracker.utils.exceptions import VisionError
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)


class VisionOperations:
    """Business logic for turning a result screenshot into reviewed match data"""

    def __init__(
        self,
        extractor,
        registry: Optional[GameProcessorRegistry] = None,
        analytics: Optional[AnalyticsService] = None
    ):
        """
        Args:
            extractor: Object with ``async extract(image, game_id) -> dict``
            registry: Processor registry, the shared default when omitted
            analytics: Optional analytics sink
        """
        self.extractor = extractor
        self.registry = registry or default_registry
        self.analytics = analytics
        self.logger = logger

    async def analyze_screenshot(
        self,
        image: bytes,
        known_players: Sequence[KnownPlayer],
        game_id: int,
        actor: Optional[str] = None
    ) -> VisionResult:
        """
        Analyze a result screenshot for one game.

        Never raises. Known pipeline failures (unknown game, extraction
        errors, empty results) come back as FAILED with their message;
        anything unexpected is logged and reported with a generic message.
        """
        try:
            processor = self.registry.resolve(game_id)
            raw_fields = await self.extractor.extract(image, game_id)

            processed = processor.process_players(raw_fields, known_players)
            players = [self._validate_player(processor, player) for player in processed.players]
            req_check = processed.req_check_flag or any(player.req_check for player in players)

            winners = processor.calculate_winners(players, processed.context)
            result = processor.validate_results(players, winners)
            result = replace(result, req_check=result.req_check or req_check)

        except VisionError as e:
            self.logger.warning(f"Screenshot analysis failed for game {game_id}: {e}")
            self._log_error(actor, game_id, str(e))
            return VisionResult.failed(str(e))
        except Exception as e:
            self.logger.error(f"Unexpected error analyzing screenshot for game {game_id}: {e}", exc_info=True)
            self._log_error(actor, game_id, "unexpected")
            return VisionResult.failed(ErrorCodes.UNKNOWN_ERROR)

        player_count = len(result.data.players) if result.data else 0
        self.logger.info(
            f"Analyzed screenshot for game {game_id}: status={result.status.value}, "
            f"players={player_count}, req_check={result.req_check}"
        )
        if self.analytics:
            self.analytics.log_vision_action(
                actor, game_id, result.req_check,
                status=result.status.value, players=player_count
            )
        return result

    @staticmethod
    def _validate_player(processor: GameProcessor, player: ProcessedPlayer) -> ProcessedPlayer:
        """Coerce every raw stat through the processor and fold the flags into the player"""
        stats = []
        for stat in player.stats:
            definition = processor.stat_definition(stat.stat_name)
            if definition is None:
                stats.append(replace(stat, req_check=True))
                continue
            validation = processor.validate_stats(stat.stat_value, definition)
            stats.append(ProcessedStat(stat.stat_name, validation.stat_value, validation.req_check))

        return replace(
            player,
            stats=stats,
            req_check=player.req_check or any(stat.req_check for stat in stats)
        )

    def _log_error(self, actor: Optional[str], game_id: int, error: str):
        if self.analytics:
            self.analytics.log_vision_error(actor, game_id, error)


def build_match_draft(result: VisionResult, stat_ids: Dict[str, int]) -> Dict:
    """
    Turn a successful analysis into one match of the ingestion payload.

    Args:
        result: Successful VisionResult
        stat_ids: Stat name -> GameStat id for the analyzed game

    Returns:
        ``{"matchWinners": [...], "playerSessions": [...]}`` in the camelCase
        shape session ingestion accepts. Stats without a known id are left out.
    """
    if not result.is_success or result.data is None:
        raise ValueError("Only successful analyses can be turned into a match draft")

    player_sessions: List[Dict] = []
    for player in result.data.players:
        player_sessions.append({
            "playerId": player.player_id,
            "playerSessionName": None,
            "playerStats": [
                {"statId": stat_ids[stat.stat_name], "stat": stat.stat_name, "statValue": stat.stat_value}
                for stat in player.stats
                if stat.stat_name in stat_ids
            ],
        })

    return {
        "matchWinners": [
            {"playerId": winner.player_id, "playerName": winner.player_name}
            for winner in result.data.winner
        ],
        "playerSessions": player_sessions,
    }
