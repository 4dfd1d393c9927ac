"""
Rocket League scoreboard processor.

The scoreboard shows two teams of up to four players. Fields are labelled
``team{t}_player{n}_{name,score,goals,assists,saves,shots}`` with t = 1 for
blue and t = 2 for orange. Goals are summed over every row, tracked or not,
because the opposing team is usually made of unregistered players.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from tracker.constants import GameIds
from tracker.processors.base import (
    GameProcessor, KnownPlayer, ProcessedPlayer, ProcessedPlayers,
    StatDefinition, StatKind, TiePolicy, WinnerEntry
)

TEAMS = (1, 2)
MAX_TEAM_SIZE = 4

STAT_FIELDS = (
    ("RL_SCORE", "score"),
    ("RL_GOALS", "goals"),
    ("RL_ASSISTS", "assists"),
    ("RL_SAVES", "saves"),
    ("RL_SHOTS", "shots"),
)


class RocketLeagueProcessor(GameProcessor):
    game_id = GameIds.ROCKET_LEAGUE
    game_name = "Rocket League"
    stats = (
        StatDefinition("RL_SCORE", StatKind.NUMBER),
        StatDefinition("RL_GOALS", StatKind.NUMBER, max_value=99),
        StatDefinition("RL_ASSISTS", StatKind.NUMBER, max_value=99),
        StatDefinition("RL_SAVES", StatKind.NUMBER, max_value=99),
        StatDefinition("RL_SHOTS", StatKind.NUMBER, max_value=99),
    )
    # Matches go to overtime, so equal goals means a misread scoreboard
    tie_policy = TiePolicy.NO_WINNER

    def process_players(
        self,
        raw_fields: Mapping[str, str],
        known_players: Sequence[KnownPlayer]
    ) -> ProcessedPlayers:
        players = []
        seen = set()
        req_check_flag = False
        team_goals: Dict[int, int] = {team: 0 for team in TEAMS}
        goals_definition = self.stat_definition("RL_GOALS")

        for team in TEAMS:
            for row in range(1, MAX_TEAM_SIZE + 1):
                prefix = f"team{team}_player{row}"
                name = raw_fields.get(f"{prefix}_name")
                if not name or not name.strip():
                    continue

                goals = self.validate_stats(raw_fields.get(f"{prefix}_goals"), goals_definition)
                team_goals[team] += int(goals.stat_value)
                req_check_flag = req_check_flag or goals.req_check

                player, req_check = self._build_player(
                    name,
                    known_players,
                    seen,
                    [(stat_name, raw_fields.get(f"{prefix}_{suffix}")) for stat_name, suffix in STAT_FIELDS],
                    team=team
                )
                req_check_flag = req_check_flag or req_check
                if player:
                    players.append(player)

        if team_goals[1] == team_goals[2]:
            req_check_flag = True

        return ProcessedPlayers(
            players=players,
            req_check_flag=req_check_flag,
            context={"team_goals": team_goals}
        )

    def calculate_winners(
        self,
        players: Sequence[ProcessedPlayer],
        context: Optional[Mapping[str, Any]] = None
    ) -> List[WinnerEntry]:
        """Tracked players on the team that scored more goals win"""
        team_goals = dict((context or {}).get("team_goals") or {})
        if not team_goals:
            # Manually built input: only tracked rows are known
            for player in players:
                if player.team is not None:
                    team_goals[player.team] = team_goals.get(player.team, 0) + (player.int_stat("RL_GOALS") or 0)

        if len(team_goals) < 2:
            return []

        best = max(team_goals.values())
        leading_teams = [team for team, goals in team_goals.items() if goals == best]
        if len(leading_teams) > 1:
            if self.tie_policy == TiePolicy.NO_WINNER:
                return []
            winners = [player for player in players if player.team in leading_teams]
        else:
            winners = [player for player in players if player.team == leading_teams[0]]

        return self._winner_entries(winners)
