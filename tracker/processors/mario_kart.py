"""
Mario Kart 8 race result processor.

The result screen lists racers top to bottom in finishing order, so the row
number is the finishing position. The extraction model labels rows as
``player{n}`` (racer name) and ``player{n}_score`` (points shown on the row).
"""

from typing import Any, List, Mapping, Optional, Sequence

from tracker.constants import GameIds
from tracker.processors.base import (
    GameProcessor, KnownPlayer, ProcessedPlayer, ProcessedPlayers,
    StatDefinition, StatKind, TiePolicy, WinnerEntry
)

MAX_RACERS = 12


class MarioKart8Processor(GameProcessor):
    game_id = GameIds.MARIO_KART_8
    game_name = "Mario Kart 8"
    stats = (
        StatDefinition("MK8_POS", StatKind.POSITION, max_value=MAX_RACERS),
        StatDefinition("MK8_SCORE", StatKind.NUMBER, max_value=999),
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

        for row in range(1, MAX_RACERS + 1):
            player, req_check = self._build_player(
                raw_fields.get(f"player{row}"),
                known_players,
                seen,
                [
                    ("MK8_POS", str(row)),
                    ("MK8_SCORE", raw_fields.get(f"player{row}_score")),
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
        """Best finishing position among tracked racers wins"""
        return self._select_leaders(
            players,
            lambda player: player.int_stat("MK8_POS"),
            lower_is_better=True
        )
