"""
Marvel Rivals end-of-match processor.

The screenshot is taken from the tracked team's scoreboard. ``result`` holds
the VICTORY/DEFEAT banner and each row is labelled
``player{n}_{name,kills,deaths,assists,damage,damage_blocked,healing,award}``
where award is the MVP/SVP badge text, if any.

Multi-kill and "most X" stats are not shown on the scoreboard; they are seeded
as "0" toggles for the operator to switch on during review.
"""

from typing import Any, List, Mapping, Optional, Sequence

from tracker.constants import GameIds
from tracker.processors.base import (
    GameProcessor, KnownPlayer, ProcessedPlayer, ProcessedPlayers,
    StatDefinition, StatKind, TiePolicy, WinnerEntry
)

MAX_TEAM_SIZE = 6

VICTORY = "VICTORY"
DEFEAT = "DEFEAT"

SCOREBOARD_FIELDS = (
    ("MR_KILLS", "kills"),
    ("MR_DEATHS", "deaths"),
    ("MR_ASSISTS", "assists"),
    ("MR_DMG", "damage"),
    ("MR_DMG_BLOCKED", "damage_blocked"),
    ("MR_HEALING", "healing"),
)

TOGGLE_STATS = (
    "MR_TRIPLE_KILL",
    "MR_QUADRA_KILL",
    "MR_PENTA_KILL",
    "MR_HEXA_KILL",
    "MR_MOST_KILLS",
    "MR_HIGHEST_DMG",
    "MR_HIGHEST_DMG_BLOCKED",
    "MR_MOST_HEALING",
    "MR_MOST_ASSISTS",
)


def parse_match_result(text: Optional[str]) -> Optional[str]:
    token = (text or "").strip().upper()
    if token.startswith("VICTOR") or token in ("WIN", "WON"):
        return VICTORY
    if token.startswith("DEFEAT") or token in ("LOSS", "LOST"):
        return DEFEAT
    return None


class MarvelRivalsProcessor(GameProcessor):
    game_id = GameIds.MARVEL_RIVALS
    game_name = "Marvel Rivals"
    stats = tuple(
        [StatDefinition(stat_name, StatKind.NUMBER) for stat_name, _ in SCOREBOARD_FIELDS]
        + [StatDefinition("MR_MVP", StatKind.BOOLEAN), StatDefinition("MR_SVP", StatKind.BOOLEAN)]
        + [StatDefinition(stat_name, StatKind.BOOLEAN) for stat_name in TOGGLE_STATS]
    )
    tie_policy = TiePolicy.ALL_TIED_WIN

    def process_players(
        self,
        raw_fields: Mapping[str, str],
        known_players: Sequence[KnownPlayer]
    ) -> ProcessedPlayers:
        players = []
        seen = set()
        match_result = parse_match_result(raw_fields.get("result"))
        req_check_flag = match_result is None

        for row in range(1, MAX_TEAM_SIZE + 1):
            prefix = f"player{row}"
            award = (raw_fields.get(f"{prefix}_award") or "").strip().upper()

            raw_stats = [(stat_name, raw_fields.get(f"{prefix}_{suffix}")) for stat_name, suffix in SCOREBOARD_FIELDS]
            raw_stats.append(("MR_MVP", "1" if award == "MVP" else "0"))
            raw_stats.append(("MR_SVP", "1" if award == "SVP" else "0"))
            raw_stats.extend((stat_name, "0") for stat_name in TOGGLE_STATS)

            player, req_check = self._build_player(
                raw_fields.get(f"{prefix}_name"),
                known_players,
                seen,
                raw_stats
            )
            if player and award not in ("", "MVP", "SVP"):
                player.req_check = True
                req_check = True
            req_check_flag = req_check_flag or req_check
            if player:
                players.append(player)

        return ProcessedPlayers(
            players=players,
            req_check_flag=req_check_flag,
            context={"result": match_result}
        )

    def calculate_winners(
        self,
        players: Sequence[ProcessedPlayer],
        context: Optional[Mapping[str, Any]] = None
    ) -> List[WinnerEntry]:
        """The whole tracked team wins on VICTORY and nobody wins otherwise"""
        if (context or {}).get("result") != VICTORY:
            return []
        return self._winner_entries(players)
