"""
Session ingestion payload.

Describes a fully typed session as reviewed by an operator: the session's
metadata, participating players and the nested sets -> matches -> player
sessions -> player stats. Accepts the camelCase JSON produced by the review
form as well as snake_case keyword arguments.
"""

import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class PayloadModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WinnerInput(PayloadModel):
    player_id: int
    player_name: str


class PlayerStatInput(PayloadModel):
    stat_id: int
    stat: str
    stat_value: str


class PlayerSessionInput(PayloadModel):
    player_id: int
    player_session_name: Optional[str] = None
    player_stats: List[PlayerStatInput] = Field(default_factory=list)


class MatchInput(PayloadModel):
    match_winners: List[WinnerInput] = Field(default_factory=list)
    player_sessions: List[PlayerSessionInput] = Field(default_factory=list)

    @model_validator(mode='after')
    def winners_played_the_match(self):
        present = {ps.player_id for ps in self.player_sessions}
        outsiders = sorted(w.player_id for w in self.match_winners if w.player_id not in present)
        if outsiders:
            raise ValueError(f"match winners {outsiders} have no player session in the match")
        return self

    @model_validator(mode='after')
    def one_player_session_per_player(self):
        player_ids = [ps.player_id for ps in self.player_sessions]
        if len(player_ids) != len(set(player_ids)):
            raise ValueError("a player may only appear once per match")
        return self


class SetInput(PayloadModel):
    set_id: Optional[int] = None
    set_winners: List[WinnerInput] = Field(default_factory=list)
    matches: List[MatchInput] = Field(default_factory=list)


class SessionInput(PayloadModel):
    game: str
    session_name: str
    session_url: str
    thumbnail: str
    date: datetime.date
    video_id: str = Field(min_length=1)
    mvp_id: Optional[int] = None
    players: List[WinnerInput] = Field(default_factory=list)
    sets: List[SetInput] = Field(default_factory=list)

    def referenced_player_ids(self) -> set:
        """Every player id the payload points at"""
        ids = {p.player_id for p in self.players}
        if self.mvp_id is not None:
            ids.add(self.mvp_id)
        for game_set in self.sets:
            ids.update(w.player_id for w in game_set.set_winners)
            for match in game_set.matches:
                ids.update(w.player_id for w in match.match_winners)
                ids.update(ps.player_id for ps in match.player_sessions)
        return ids
