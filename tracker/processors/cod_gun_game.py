"""
Call of Duty Gun Game scoreboard processor.

Rows are labelled ``player{n}_{name,score,kills,deaths}``. The highest score
wins; players sharing the top score all win.
"""

from typing import Any, List, Mapping, Optional, Sequence

from tracker.constants import GameIds
from tracker.processors.base import (
    GameProcessor, KnownPlayer, ProcessedPlayer, ProcessedPlayers,
    StatDefinition, StatKind, TiePolicy, WinnerEntry
)

MAX_ROWS = 8


class CoDGunGameProcessor(GameProcessor):
    game_id = GameIds.CALL_OF_DUTY
    game_name = "Call of Duty"
    stats = (
        StatDefinition("COD_SCORE", StatKind.NUMBER),
        StatDefinition("COD_KILLS", StatKind.NUMBER, max_value=999),
        StatDefinition("COD_DEATHS", StatKind.NUMBER, max_value=999),
    )
    tie_policy = TiePolicy.ALL_TIED_WIN

    def process_players(
        self,
        raw_fields: Mapping[str, str],
        known_players: Sequence[KnownPlayer]
    ) -> ProcessedPlayers:
        players = []
        seen = set()
        req_check_flag = False

        for row in range(1, MAX_ROWS + 1):
            prefix = f"player{row}"
            player, req_check = self._build_player(
                raw_fields.get(f"{prefix}_name"),
                known_players,
                seen,
                [
                    ("COD_SCORE", raw_fields.get(f"{prefix}_score")),
                    ("COD_KILLS", raw_fields.get(f"{prefix}_kills")),
                    ("COD_DEATHS", raw_fields.get(f"{prefix}_deaths")),
                ]
            )
            req_check_flag = req_check_flag or req_check
            if player:
                players.append(player)

        return ProcessedPlayers(players=players, req_check_flag=req_check_flag)

    def calculate_winners(
        self,
        players: Sequence[ProcessedPlayer],
        context: Optional[Mapping[str, Any]] = None
    ) -> List[WinnerEntry]:
        return self._select_leaders(players, lambda player: player.int_stat("COD_SCORE"))
