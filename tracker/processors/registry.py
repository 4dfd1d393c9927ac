"""
Game Processor Registry - maps a game id to its processor instance.

The mapping is static and processors are stateless, so one registry instance
is shared by every request.
"""

from typing import Dict, Iterable, List, Optional

from tracker.processors.base import GameProcessor
from tracker.processors.cod_gun_game import CoDGunGameProcessor
from tracker.processors.mario_kart import MarioKart8Processor
from tracker.processors.marvel_rivals import MarvelRivalsProcessor
from tracker.processors.rocket_league import RocketLeagueProcessor
from tracker.utils.exceptions import UnknownGameError


class GameProcessorRegistry:
    """Closed set of supported games keyed by game id"""

    def __init__(self, processors: Optional[Iterable[GameProcessor]] = None):
        if processors is None:
            processors = [
                MarioKart8Processor(),
                RocketLeagueProcessor(),
                CoDGunGameProcessor(),
                MarvelRivalsProcessor(),
            ]
        self._processors: Dict[int, GameProcessor] = {}
        for processor in processors:
            if processor.game_id in self._processors:
                raise ValueError(f"Duplicate processor for game id {processor.game_id}")
            self._processors[processor.game_id] = processor

    def resolve(self, game_id: int) -> GameProcessor:
        """
        Get the processor for a game.

        Raises:
            UnknownGameError: If the game id is not supported
        """
        try:
            return self._processors[game_id]
        except (KeyError, TypeError):
            raise UnknownGameError(game_id)

    def find_by_name(self, game_name: str) -> Optional[GameProcessor]:
        """Case-insensitive lookup used when only the game's name is known"""
        wanted = (game_name or "").casefold()
        for processor in self._processors.values():
            if processor.game_name.casefold() == wanted:
                return processor
        return None

    @property
    def game_ids(self) -> List[int]:
        return sorted(self._processors)

    def all(self) -> List[GameProcessor]:
        return [self._processors[game_id] for game_id in self.game_ids]


default_registry = GameProcessorRegistry()


def get_game_processor(game_id: int) -> GameProcessor:
    return default_registry.resolve(game_id)
