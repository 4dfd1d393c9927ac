"""
Game Processor base class and shared result types.

Each supported game gets one GameProcessor subclass that knows how the
recognition model names its fields, which stats the game tracks and how a
winner is decided. Callers select a processor once through the registry and
then only talk to this interface:

- process_players(): recognized fields -> tracked players with raw stat strings
- validate_stats(): one raw string -> canonical stat value plus review flag
- calculate_winners(): game-specific ranking rule
- validate_results(): final sanity pass producing a VisionResult

Low-confidence readings never raise. They set req_check on the stat, the
player and the whole result so an operator confirms them before ingestion.
"""

import difflib
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from tracker.constants import VisionMessages, VisionResultCode


class StatKind(Enum):
    """Expected shape of a stat value"""
    NUMBER = "number"      # non-negative integer
    POSITION = "position"  # 1-based finishing place, ordinal suffix allowed
    BOOLEAN = "boolean"    # stored as "0" / "1"


class TiePolicy(Enum):
    """What happens when several players share the best result"""
    ALL_TIED_WIN = "all_tied_win"
    NO_WINNER = "no_winner"


@dataclass(frozen=True)
class StatDefinition:
    name: str
    kind: StatKind = StatKind.NUMBER
    max_value: Optional[int] = None


@dataclass(frozen=True)
class KnownPlayer:
    """A registered player that recognized names are matched against"""
    player_id: int
    player_name: str

    @classmethod
    def from_model(cls, player) -> 'KnownPlayer':
        return cls(player_id=player.id, player_name=player.player_name)


@dataclass(frozen=True)
class StatValidation:
    stat_value: str
    req_check: bool = False


@dataclass(frozen=True)
class ProcessedStat:
    stat_name: str
    stat_value: str
    req_check: bool = False


@dataclass
class ProcessedPlayer:
    name: str
    player_id: int
    stats: List[ProcessedStat] = field(default_factory=list)
    team: Optional[int] = None
    req_check: bool = False

    def get_stat(self, stat_name: str) -> Optional[str]:
        for stat in self.stats:
            if stat.stat_name == stat_name:
                return stat.stat_value
        return None

    def int_stat(self, stat_name: str) -> Optional[int]:
        """Integer value of a stat, or None when it is missing or not numeric"""
        value = self.get_stat(stat_name)
        if value is None or not DIGITS.fullmatch(value) or len(value.lstrip("0")) > MAX_STAT_DIGITS:
            return None
        return int(value)


@dataclass
class ProcessedPlayers:
    players: List[ProcessedPlayer]
    req_check_flag: bool = False
    context: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WinnerEntry:
    player_id: int
    player_name: str


@dataclass
class VisionResultData:
    players: List[ProcessedPlayer]
    winner: List[WinnerEntry]


@dataclass
class VisionResult:
    status: VisionResultCode
    message: str
    data: Optional[VisionResultData] = None
    req_check: bool = False

    @property
    def is_success(self) -> bool:
        return self.status == VisionResultCode.SUCCESS

    @classmethod
    def failed(cls, message: str) -> 'VisionResult':
        return cls(status=VisionResultCode.FAILED, message=message)


# Characters the recognition model commonly confuses with digits
OCR_DIGIT_FIXES = str.maketrans({
    'O': '0', 'o': '0', 'D': '0', 'Q': '0',
    'I': '1', 'l': '1', 'i': '1', '|': '1',
    'Z': '2', 'z': '2',
    'S': '5', 's': '5',
    'G': '6', 'B': '8',
})

ORDINAL_SUFFIX = re.compile(r"^([0-9]+)(st|nd|rd|th)$", re.IGNORECASE)
DIGITS = re.compile(r"[0-9]+")
# Longest digit run read as a number; anything longer is unreadable
MAX_STAT_DIGITS = 18

TRUE_TOKENS = {"1", "true", "yes", "y", "x", "on", "✓", "✔"}
FALSE_TOKENS = {"", "0", "false", "no", "n", "off", "-"}

FUZZY_NAME_CUTOFF = 0.75


def normalize_name(name: str) -> str:
    return "".join(ch for ch in name.casefold() if ch.isalnum())


class GameProcessor(ABC):
    """
    Abstract base class for per-game screenshot processors.

    Subclasses declare their game identity, stat table and tie policy as class
    attributes and implement the field-naming convention (process_players) and
    ranking rule (calculate_winners). Instances hold no per-call state and are
    shared across concurrent requests.
    """

    game_id: int
    game_name: str
    stats: Tuple[StatDefinition, ...] = ()
    tie_policy: TiePolicy = TiePolicy.ALL_TIED_WIN

    @abstractmethod
    def process_players(
        self,
        raw_fields: Mapping[str, str],
        known_players: Sequence[KnownPlayer]
    ) -> ProcessedPlayers:
        """
        Map recognized fields to tracked players and their raw stat strings.

        Args:
            raw_fields: Field name -> recognized text from the extractor
            known_players: Registered players recognized names are matched against

        Returns:
            ProcessedPlayers with req_check_flag set when a human must confirm
        """
        pass

    @abstractmethod
    def calculate_winners(
        self,
        players: Sequence[ProcessedPlayer],
        context: Optional[Mapping[str, Any]] = None
    ) -> List[WinnerEntry]:
        """Apply the game's ranking rule. Output is sorted by player id."""
        pass

    def stat_definition(self, stat_name: str) -> Optional[StatDefinition]:
        for definition in self.stats:
            if definition.name == stat_name:
                return definition
        return None

    def validate_stats(self, raw_value: Optional[str], definition: StatDefinition) -> StatValidation:
        """
        Coerce one raw recognized string into the stat's canonical form.

        Never raises: blank or unreadable input falls back to a default value
        with req_check set.
        """
        text = "" if raw_value is None else str(raw_value).strip()

        if definition.kind == StatKind.BOOLEAN:
            token = text.casefold()
            if token in TRUE_TOKENS:
                return StatValidation("1")
            if token in FALSE_TOKENS:
                return StatValidation("0")
            return StatValidation("0", req_check=True)

        if not text:
            return StatValidation("0", req_check=True)

        cleaned = text.replace(",", "").replace(" ", "")
        if definition.kind == StatKind.POSITION:
            ordinal = ORDINAL_SUFFIX.match(cleaned)
            if ordinal:
                cleaned = ordinal.group(1)

        req_check = False
        if not DIGITS.fullmatch(cleaned):
            repaired = cleaned.translate(OCR_DIGIT_FIXES)
            if not DIGITS.fullmatch(repaired):
                return StatValidation("0", req_check=True)
            cleaned = repaired
            req_check = True

        if len(cleaned.lstrip("0")) > MAX_STAT_DIGITS:
            return StatValidation("0", req_check=True)

        value = int(cleaned)
        if definition.max_value is not None and value > definition.max_value:
            req_check = True
        if definition.kind == StatKind.POSITION and value < 1:
            req_check = True

        return StatValidation(str(value), req_check)

    def is_canonical(self, stat_name: str, stat_value: str) -> bool:
        """Whether a manually entered value already has the stat's canonical shape"""
        definition = self.stat_definition(stat_name)
        if definition is None:
            return False
        validation = self.validate_stats(stat_value, definition)
        return not validation.req_check and validation.stat_value == stat_value

    def validate_results(
        self,
        players: Sequence[ProcessedPlayer],
        winners: Sequence[WinnerEntry]
    ) -> VisionResult:
        """Reject results with no surviving players or winners outside the player list"""
        if not players:
            return VisionResult.failed(VisionMessages.NO_PLAYERS)

        player_ids = {player.player_id for player in players}
        for winner in winners:
            if winner.player_id not in player_ids:
                return VisionResult.failed(
                    f"Winner {winner.player_name} was not found among processed players"
                )

        return VisionResult(
            status=VisionResultCode.SUCCESS,
            message=VisionMessages.SUCCESS,
            data=VisionResultData(players=list(players), winner=list(winners)),
            req_check=any(player.req_check for player in players)
        )

    # ------------------------------------------------------------------
    # Helpers shared by the variants
    # ------------------------------------------------------------------

    def _match_player(
        self,
        recognized_name: str,
        known_players: Sequence[KnownPlayer]
    ) -> Tuple[Optional[KnownPlayer], bool]:
        """
        Find the registered player a recognized name refers to.

        Returns (player, req_check). Exact matches ignore case and punctuation;
        fuzzy matches are accepted but flagged for review.
        """
        target = normalize_name(recognized_name)
        if not target:
            return None, False

        by_name = {normalize_name(p.player_name): p for p in known_players}
        if target in by_name:
            return by_name[target], False

        close = difflib.get_close_matches(target, sorted(by_name), n=1, cutoff=FUZZY_NAME_CUTOFF)
        if close:
            return by_name[close[0]], True
        return None, False

    def _build_player(
        self,
        recognized_name: Optional[str],
        known_players: Sequence[KnownPlayer],
        seen: Set[int],
        raw_stats: Sequence[Tuple[str, Optional[str]]],
        team: Optional[int] = None
    ) -> Tuple[Optional[ProcessedPlayer], bool]:
        """
        Build one tracked player from a recognized row.

        Rows whose name matches no registered player are skipped. A second row
        for an already tracked player is dropped and flagged. A missing stat
        field flags the row.

        Returns:
            (player or None, req_check)
        """
        if not recognized_name or not recognized_name.strip():
            return None, False

        known, fuzzy = self._match_player(recognized_name, known_players)
        if known is None:
            return None, False
        if known.player_id in seen:
            return None, True
        seen.add(known.player_id)

        missing = any(value is None for _, value in raw_stats)
        stats = [ProcessedStat(name, value or "") for name, value in raw_stats]
        req_check = fuzzy or missing
        return ProcessedPlayer(
            name=known.player_name,
            player_id=known.player_id,
            stats=stats,
            team=team,
            req_check=req_check
        ), req_check

    def _select_leaders(
        self,
        players: Sequence[ProcessedPlayer],
        score: Callable[[ProcessedPlayer], Optional[int]],
        lower_is_better: bool = False
    ) -> List[WinnerEntry]:
        """Players sharing the best score, resolved by the tie policy"""
        scored = [(player, score(player)) for player in players]
        scored = [(player, value) for player, value in scored if value is not None]
        if not scored:
            return []

        values = [value for _, value in scored]
        best = min(values) if lower_is_better else max(values)
        leaders = [player for player, value in scored if value == best]

        if len(leaders) > 1 and self.tie_policy == TiePolicy.NO_WINNER:
            return []
        return self._winner_entries(leaders)

    @staticmethod
    def _winner_entries(players: Sequence[ProcessedPlayer]) -> List[WinnerEntry]:
        entries = {player.player_id: WinnerEntry(player.player_id, player.name) for player in players}
        return [entries[player_id] for player_id in sorted(entries)]

    def __repr__(self):
        return f"<{self.__class__.__name__}(game_id={self.game_id}, game='{self.game_name}')>"
