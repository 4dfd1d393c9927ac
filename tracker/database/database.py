from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from sqlalchemy import event, select, func
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
from sqlalchemy.pool import StaticPool

from tracker.config import Config
from tracker.database.models import (
    Base, Game, GameStat, Player, Session, GameSet, Match, PlayerSession, PlayerStat
)
from tracker.processors.registry import GameProcessorRegistry, default_registry
from tracker.utils.logger import setup_logger


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite ignores foreign keys unless asked per connection"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    def __init__(self, database_url: Optional[str] = None, registry: Optional[GameProcessorRegistry] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url or Config.DATABASE_URL
        self.registry = registry or default_registry
        self.engine = None
        self.async_session = None

    @property
    def session_factory(self):
        return self.async_session

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")

        # Convert sqlite URL to async if needed
        database_url = self.database_url
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')

        engine_kwargs = {'echo': Config.DEBUG}
        if database_url.endswith(':memory:'):
            # One shared connection, otherwise every checkout sees an empty database
            engine_kwargs['poolclass'] = StaticPool
            engine_kwargs['connect_args'] = {'check_same_thread': False}

        self.engine = create_async_engine(database_url, **engine_kwargs)

        if self.engine.dialect.name == 'sqlite':
            event.listen(self.engine.sync_engine, 'connect', _enable_sqlite_foreign_keys)

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        # Create all tables
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

        await self.initialize_default_data()

    async def initialize_default_data(self):
        """Seed supported games and their stat definitions from the processor registry"""
        async with self.transaction() as session:
            for processor in self.registry.all():
                game = await session.get(Game, processor.game_id)
                if game is None:
                    game = Game(id=processor.game_id, name=processor.game_name)
                    session.add(game)
                    await session.flush()
                    self.logger.info(f"Added game: {processor.game_name}")

                result = await session.execute(
                    select(GameStat.stat_name).where(GameStat.game_id == game.id)
                )
                existing = set(result.scalars().all())
                missing = [d.name for d in processor.stats if d.name not in existing]
                for stat_name in missing:
                    session.add(GameStat(game_id=game.id, stat_name=stat_name))
                if missing:
                    self.logger.info(f"Added {len(missing)} stats for {processor.game_name}")

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.

        All operations within the context are committed together on success,
        or rolled back together on failure. Exceptions must be allowed to
        propagate out of the context for rollback to occur.

        Usage:
            async with db.transaction() as session:
                session.add(...)
                await session.flush()
                # Everything commits together here
        """
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")

    # Game operations
    async def get_all_games(self) -> List[Game]:
        async with self.get_session() as session:
            result = await session.execute(select(Game).order_by(Game.id))
            return result.scalars().all()

    async def get_game_by_name(self, name: str) -> Optional[Game]:
        """Get a game by name (case insensitive)"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Game).where(func.lower(Game.name) == func.lower(name))
            )
            return result.scalar_one_or_none()

    async def get_game_stats(self, game_id: int) -> List[GameStat]:
        """Stat definitions used to label and validate a game's player stats"""
        async with self.get_session() as session:
            result = await session.execute(
                select(GameStat).where(GameStat.game_id == game_id).order_by(GameStat.id)
            )
            return result.scalars().all()

    # Player operations
    async def get_all_players(self) -> List[Player]:
        async with self.get_session() as session:
            result = await session.execute(select(Player).order_by(Player.player_name))
            return result.scalars().all()

    async def get_player_by_name(self, player_name: str) -> Optional[Player]:
        async with self.get_session() as session:
            result = await session.execute(
                select(Player).where(func.lower(Player.player_name) == func.lower(player_name))
            )
            return result.scalar_one_or_none()

    async def create_player(self, player_name: str, discord_id: Optional[int] = None) -> Player:
        """Create a new player"""
        async with self.transaction() as session:
            player = Player(player_name=player_name, discord_id=discord_id)
            session.add(player)
            await session.flush()
            await session.refresh(player)
            return player

    # Session operations
    async def get_session_by_video_id(self, video_id: str) -> Optional[Session]:
        async with self.get_session() as session:
            result = await session.execute(
                select(Session).where(Session.video_id == video_id)
            )
            return result.scalar_one_or_none()

    async def get_session_graph(self, session_id: int) -> Optional[Session]:
        """Load a session with its sets, matches, player sessions, stats and winners"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Session)
                .options(
                    selectinload(Session.game),
                    selectinload(Session.mvp),
                    selectinload(Session.day_winners),
                    selectinload(Session.sets).selectinload(GameSet.set_winners),
                    selectinload(Session.sets)
                    .selectinload(GameSet.matches)
                    .selectinload(Match.match_winners),
                    selectinload(Session.sets)
                    .selectinload(GameSet.matches)
                    .selectinload(Match.player_sessions)
                    .selectinload(PlayerSession.player),
                    selectinload(Session.sets)
                    .selectinload(GameSet.matches)
                    .selectinload(Match.player_sessions)
                    .selectinload(PlayerSession.player_stats)
                    .selectinload(PlayerStat.game_stat),
                )
                .where(Session.id == session_id)
            )
            return result.scalar_one_or_none()

    async def get_recent_sessions(self, limit: int = 10) -> List[Session]:
        async with self.get_session() as session:
            result = await session.execute(
                select(Session)
                .options(selectinload(Session.game), selectinload(Session.day_winners))
                .order_by(Session.date.desc(), Session.id.desc())
                .limit(limit)
            )
            return result.scalars().all()

    async def get_table_counts(self) -> Dict[str, int]:
        """Row counts for the session graph tables"""
        counts = {}
        async with self.get_session() as session:
            for model in (Game, GameStat, Player, Session, GameSet, Match, PlayerSession, PlayerStat):
                counts[model.__tablename__] = await session.scalar(select(func.count(model.id)))
        return counts
