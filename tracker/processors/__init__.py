"""
Per-game screenshot processors.

Each supported game implements GameProcessor; the registry selects one by id.
"""

from .base import (
    GameProcessor, KnownPlayer, ProcessedPlayer, ProcessedPlayers, ProcessedStat,
    StatDefinition, StatKind, StatValidation, TiePolicy, VisionResult,
    VisionResultData, WinnerEntry
)
from .registry import GameProcessorRegistry, default_registry, get_game_processor

__all__ = [
    'GameProcessor', 'KnownPlayer', 'ProcessedPlayer', 'ProcessedPlayers', 'ProcessedStat',
    'StatDefinition', 'StatKind', 'StatValidation', 'TiePolicy', 'VisionResult',
    'VisionResultData', 'WinnerEntry',
    'GameProcessorRegistry', 'default_registry', 'get_game_processor',
]
