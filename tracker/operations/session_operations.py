"""
Session Operations Module - transactional session ingestion.

Persists a reviewed session payload as the full
Session -> GameSet -> Match -> PlayerSession -> PlayerStat graph.

Guarantees:
- Authorization is checked before any database access
- The whole graph is written in one transaction; any failure rolls it all back
- A duplicate video id is rejected by a pre-check and, under concurrent
  writers, by the unique constraint; both surface as the same error
- Set and day winners are derived inside the same transaction, after all of
  a set's matches exist (update pass)
- Cache invalidation and analytics run after commit and never change the outcome

The public entry point never raises: callers get an IngestionResult whose
error is None on success or a user-facing message on failure.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError
from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.config import Config
from tracker.constants import ErrorCodes
from tracker.data_models.session_input import PlayerSessionInput, SessionInput
from tracker.database.models import (
    Game, GameStat, GameSet, Match, Player, PlayerSession, PlayerStat, Session,
    day_winner_table, match_winner_table, set_winner_table
)
from tracker.processors.base import GameProcessor
from tracker.processors.registry import GameProcessorRegistry, default_registry
from tracker.services.analytics import AnalyticsService
from tracker.services.auth_gate import AuthorizationGate, AuthSession
from tracker.services.session_cache import SessionCache
from tracker.utils.exceptions import (
    GameNotFoundError, InvalidSessionDataError, InvalidStatError, NotAuthenticatedError,
    NotAuthorizedError, PlayerNotFoundError, SessionIngestionError, VideoAlreadyExistsError
)
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class IngestionResult:
    error: Optional[str] = None
    session_id: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"error": self.error}


def tally_winners(winner_groups: Iterable[Iterable[int]]) -> List[int]:
    """
    Players who won the most groups (matches within a set, or sets within a day).

    All players sharing the top count win. The result is sorted, so it does
    not depend on the order of the groups.
    """
    counts = Counter()
    for group in winner_groups:
        counts.update(set(group))
    if not counts:
        return []
    best = max(counts.values())
    return sorted(player_id for player_id, wins in counts.items() if wins == best)


def is_video_conflict(error: IntegrityError) -> bool:
    """Whether a constraint violation came from the unique video id"""
    return 'video_id' in str(getattr(error, 'orig', error))


class SessionOperations:
    """
    Business logic for session ingestion and derived winner maintenance.
    """

    def __init__(
        self,
        database,
        auth_gate: AuthorizationGate,
        cache: Optional[SessionCache] = None,
        analytics: Optional[AnalyticsService] = None,
        registry: Optional[GameProcessorRegistry] = None
    ):
        self.db = database
        self.auth_gate = auth_gate
        self.cache = cache
        self.analytics = analytics
        self.registry = registry or default_registry
        self.logger = logger

    # ============================================================================
    # Ingestion
    # ============================================================================

    async def insert_session(self, caller: Any, session_input: Any) -> IngestionResult:
        """
        Authorize the caller and persist a session graph atomically.

        Args:
            caller: Whoever is submitting; resolved through the authorization gate
            session_input: SessionInput, or a mapping in the payload's JSON shape

        Returns:
            IngestionResult with error None on success, otherwise one of the
            ErrorCodes messages
        """
        auth: Optional[AuthSession] = None
        payload: Optional[SessionInput] = None
        try:
            auth = await self._authorize(caller)
            payload = self._parse_input(session_input)
            session_id = await self._persist_session(payload)

        except SessionIngestionError as e:
            self.logger.warning(f"Session ingestion rejected: {e}")
            self._log_form_error(auth, e.user_message, payload)
            return IngestionResult(error=e.user_message)

        except IntegrityError as e:
            if is_video_conflict(e):
                # Lost the race against a concurrent insert of the same video
                self.logger.warning(f"Video id conflict at commit: {e.orig}")
                self._log_form_error(auth, ErrorCodes.VIDEO_ALREADY_EXISTS, payload)
                return IngestionResult(error=ErrorCodes.VIDEO_ALREADY_EXISTS)
            self.logger.error(f"Integrity error during session ingestion: {e}", exc_info=True)
            self._log_form_error(auth, ErrorCodes.UNKNOWN_ERROR, payload)
            return IngestionResult(error=ErrorCodes.UNKNOWN_ERROR)

        except Exception as e:
            self.logger.error(f"Unexpected error during session ingestion: {e}", exc_info=True)
            self._log_form_error(auth, ErrorCodes.UNKNOWN_ERROR, payload)
            return IngestionResult(error=ErrorCodes.UNKNOWN_ERROR)

        self.logger.info(f"Inserted session {session_id} for video {payload.video_id} ({payload.game})")
        await self._after_commit(auth, payload, session_id)
        return IngestionResult(session_id=session_id)

    async def _authorize(self, caller: Any) -> AuthSession:
        auth = await self.auth_gate.get_session(caller)
        if auth is None:
            raise NotAuthenticatedError()
        if not auth.user.is_admin:
            raise NotAuthorizedError(auth.user.role)
        return auth

    @staticmethod
    def _parse_input(session_input: Any) -> SessionInput:
        if isinstance(session_input, SessionInput):
            return session_input
        try:
            return SessionInput.model_validate(session_input)
        except ValidationError as e:
            raise InvalidSessionDataError(str(e))

    async def _persist_session(self, payload: SessionInput) -> int:
        async with self.db.transaction() as s:
            result = await s.execute(
                select(Game).where(func.lower(Game.name) == func.lower(payload.game))
            )
            game = result.scalar_one_or_none()
            if game is None:
                raise GameNotFoundError(payload.game)

            if await self._video_exists(s, payload.video_id):
                raise VideoAlreadyExistsError(payload.video_id)

            await self._check_players_exist(s, payload)

            stat_result = await s.execute(select(GameStat).where(GameStat.game_id == game.id))
            stat_names = {stat.id: stat.stat_name for stat in stat_result.scalars()}
            processor = self._processor_for(game)

            session = Session(
                game_id=game.id,
                session_name=payload.session_name,
                session_url=payload.session_url,
                thumbnail=payload.thumbnail,
                date=payload.date,
                video_id=payload.video_id,
                mvp_id=payload.mvp_id
            )
            s.add(session)
            await s.flush()  # Get Session ID for GameSet creation

            set_winner_groups = []
            for set_number, set_input in enumerate(payload.sets, start=1):
                game_set = GameSet(session_id=session.id, set_number=set_number)
                s.add(game_set)
                await s.flush()

                match_winner_groups = []
                set_player_ids = set()
                for match_number, match_input in enumerate(set_input.matches, start=1):
                    match = Match(set_id=game_set.id, match_number=match_number)
                    s.add(match)
                    await s.flush()

                    for ps_input in match_input.player_sessions:
                        player_session = PlayerSession(
                            session_id=session.id,
                            set_id=game_set.id,
                            match_id=match.id,
                            player_id=ps_input.player_id,
                            player_session_name=ps_input.player_session_name or None
                        )
                        s.add(player_session)
                        await s.flush()
                        set_player_ids.add(ps_input.player_id)

                        rows = self._stat_rows(player_session, ps_input, game, stat_names, processor)
                        if rows:
                            await s.execute(insert(PlayerStat), rows)

                    winner_ids = sorted({w.player_id for w in match_input.match_winners})
                    await self._insert_winners(s, match_winner_table, 'match_id', match.id, winner_ids)
                    match_winner_groups.append(winner_ids)

                # Update pass: set winners are known once every match of the set exists
                winner_ids = sorted({w.player_id for w in set_input.set_winners})
                if not winner_ids:
                    winner_ids = tally_winners(match_winner_groups)
                elif not set_player_ids.issuperset(winner_ids):
                    raise InvalidSessionDataError(
                        f"set {set_number} winners {winner_ids} did not play in the set"
                    )
                await self._insert_winners(s, set_winner_table, 'set_id', game_set.id, winner_ids)
                set_winner_groups.append(winner_ids)

            day_winner_ids = tally_winners(set_winner_groups)
            await self._insert_winners(s, day_winner_table, 'session_id', session.id, day_winner_ids)

            self.logger.debug(
                f"Session {session.id}: {len(payload.sets)} set(s), day winners {day_winner_ids}"
            )
            return session.id

    @staticmethod
    async def _video_exists(s: AsyncSession, video_id: str) -> bool:
        existing = await s.scalar(select(Session.id).where(Session.video_id == video_id))
        return existing is not None

    async def _check_players_exist(self, s: AsyncSession, payload: SessionInput):
        player_ids = payload.referenced_player_ids()
        if not player_ids:
            return
        result = await s.execute(select(Player.id).where(Player.id.in_(player_ids)))
        missing = player_ids - set(result.scalars().all())
        if missing:
            raise PlayerNotFoundError(missing)

    def _processor_for(self, game: Game) -> Optional[GameProcessor]:
        if game.id in self.registry.game_ids:
            return self.registry.resolve(game.id)
        return None

    def _stat_rows(
        self,
        player_session: PlayerSession,
        ps_input: PlayerSessionInput,
        game: Game,
        stat_names: Dict[int, str],
        processor: Optional[GameProcessor]
    ) -> List[Dict[str, Any]]:
        """
        Build the bulk-insert rows for one player session.

        Every stat must be one of the game's stats, appear once, carry the
        stat's own name and, for games with a processor, already be in the
        stat's canonical shape.
        """
        rows = []
        seen = set()
        for stat in ps_input.player_stats:
            stat_name = stat_names.get(stat.stat_id)
            if stat_name is None:
                raise InvalidStatError(f"Stat {stat.stat_id} does not belong to {game.name}")
            if stat.stat != stat_name:
                raise InvalidStatError(f"Stat {stat.stat_id} is {stat_name}, not {stat.stat}")
            if stat.stat_id in seen:
                raise InvalidStatError(f"Stat {stat_name} given twice for player {ps_input.player_id}")
            if processor and not processor.is_canonical(stat_name, stat.stat_value):
                raise InvalidStatError(f"Invalid value '{stat.stat_value}' for {stat_name}")
            seen.add(stat.stat_id)
            rows.append({
                'player_session_id': player_session.id,
                'player_id': ps_input.player_id,
                'game_id': game.id,
                'stat_id': stat.stat_id,
                'stat_value': stat.stat_value,
            })
        return rows

    @staticmethod
    async def _insert_winners(s: AsyncSession, table, parent_column: str, parent_id: int, player_ids: List[int]):
        if player_ids:
            await s.execute(
                insert(table),
                [{parent_column: parent_id, 'player_id': player_id} for player_id in player_ids]
            )

    async def _after_commit(self, auth: AuthSession, payload: SessionInput, session_id: int):
        """Best-effort side effects; failures are logged and swallowed"""
        if self.cache:
            try:
                await self.cache.invalidate_session_listings()
            except Exception as e:
                self.logger.warning(f"Failed to invalidate session listings after session {session_id}: {e}")

        if self.analytics:
            try:
                self.analytics.log_admin_action(
                    auth.user.email,
                    'insert_session',
                    session_id=session_id,
                    video_id=payload.video_id,
                    game=payload.game,
                    sets=len(payload.sets)
                )
                self.analytics.log_form_success(auth.user.email, 'session')
            except Exception as e:
                self.logger.warning(f"Failed to emit analytics for session {session_id}: {e}")

    def _log_form_error(self, auth: Optional[AuthSession], error: str, payload: Optional[SessionInput]):
        if not self.analytics:
            return
        try:
            self.analytics.log_form_error(
                auth.user.email if auth else None,
                'session',
                error,
                video_id=payload.video_id if payload else None
            )
        except Exception as e:
            self.logger.warning(f"Failed to emit form error analytics: {e}")

    # ============================================================================
    # Derived winners
    # ============================================================================

    async def recompute_set_winners(self, set_id: int) -> Optional[List[int]]:
        """
        Re-derive a set's winners from its match winners, then the session's
        day winners from its sets, in one transaction.

        Returns:
            The set's new winner ids, or None if the set does not exist
        """
        async with self.db.transaction() as s:
            game_set = await s.get(GameSet, set_id)
            if game_set is None:
                return None

            set_winner_ids = await self._derive_set_winners(s, set_id)
            await s.execute(delete(set_winner_table).where(set_winner_table.c.set_id == set_id))
            await self._insert_winners(s, set_winner_table, 'set_id', set_id, set_winner_ids)

            result = await s.execute(
                select(set_winner_table.c.set_id, set_winner_table.c.player_id)
                .join(GameSet, GameSet.id == set_winner_table.c.set_id)
                .where(GameSet.session_id == game_set.session_id)
            )
            groups: Dict[int, List[int]] = {}
            for row in result:
                groups.setdefault(row.set_id, []).append(row.player_id)
            day_winner_ids = tally_winners(groups.values())

            await s.execute(
                delete(day_winner_table).where(day_winner_table.c.session_id == game_set.session_id)
            )
            await self._insert_winners(s, day_winner_table, 'session_id', game_set.session_id, day_winner_ids)

        self.logger.info(f"Recomputed winners for set {set_id}: {set_winner_ids}")
        if self.cache:
            try:
                await self.cache.invalidate_session_listings()
            except Exception as e:
                self.logger.warning(f"Failed to invalidate session listings after set {set_id}: {e}")
        return set_winner_ids

    @staticmethod
    async def _derive_set_winners(s: AsyncSession, set_id: int) -> List[int]:
        result = await s.execute(
            select(match_winner_table.c.match_id, match_winner_table.c.player_id)
            .join(Match, Match.id == match_winner_table.c.match_id)
            .where(Match.set_id == set_id)
        )
        groups: Dict[int, List[int]] = {}
        for row in result:
            groups.setdefault(row.match_id, []).append(row.player_id)
        return tally_winners(groups.values())

    # ============================================================================
    # Read paths
    # ============================================================================

    async def get_recent_sessions(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Recent session summaries, served from the listing cache when available"""
        limit = limit or Config.RECENT_SESSIONS_LIMIT

        async def load():
            sessions = await self.db.get_recent_sessions(limit)
            return [summarize_session(session) for session in sessions]

        if self.cache:
            return await self.cache.get_recent_sessions(load, limit)
        return await load()


def summarize_session(session: Session) -> Dict[str, Any]:
    """Listing entry for a session loaded with its game and day winners"""
    return {
        'session_id': session.id,
        'session_name': session.session_name,
        'game': session.game.name,
        'date': session.date.isoformat(),
        'video_id': session.video_id,
        'session_url': session.session_url,
        'day_winners': [player.player_name for player in session.day_winners],
    }
