from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Text,
    ForeignKey, BigInteger, Table, UniqueConstraint
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


# Winner entries are derived from match/stat data and persisted for fast reads.
day_winner_table = Table(
    'session_day_winners',
    Base.metadata,
    Column('session_id', Integer, ForeignKey('sessions.id'), primary_key=True),
    Column('player_id', Integer, ForeignKey('players.id'), primary_key=True),
)

set_winner_table = Table(
    'set_winners',
    Base.metadata,
    Column('set_id', Integer, ForeignKey('game_sets.id'), primary_key=True),
    Column('player_id', Integer, ForeignKey('players.id'), primary_key=True),
)

match_winner_table = Table(
    'match_winners',
    Base.metadata,
    Column('match_id', Integer, ForeignKey('matches.id'), primary_key=True),
    Column('player_id', Integer, ForeignKey('players.id'), primary_key=True),
)


class Game(Base):
    __tablename__ = 'games'

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False, unique=True)

    # Metadata
    created_at = Column(DateTime, default=func.now())

    # Relationships
    stats = relationship("GameStat", back_populates="game", order_by="GameStat.id")

    def __repr__(self):
        return f"<Game(id={self.id}, name='{self.name}')>"


class GameStat(Base):
    __tablename__ = 'game_stats'

    id = Column(Integer, primary_key=True)
    game_id = Column(Integer, ForeignKey('games.id'), nullable=False, index=True)
    stat_name = Column(String(100), nullable=False)

    # Relationships
    game = relationship("Game", back_populates="stats")

    # Stat names are unique within a game
    __table_args__ = (UniqueConstraint('game_id', 'stat_name'),)

    def __repr__(self):
        return f"<GameStat(id={self.id}, game_id={self.game_id}, stat='{self.stat_name}')>"


class Player(Base):
    __tablename__ = 'players'

    id = Column(Integer, primary_key=True)
    player_name = Column(String(100), nullable=False, unique=True)
    discord_id = Column(BigInteger, unique=True, nullable=True, index=True)

    # Metadata
    created_at = Column(DateTime, default=func.now())

    def __repr__(self):
        return f"<Player(id={self.id}, name='{self.player_name}')>"


class Session(Base):
    """One recorded play session tied to a source video."""
    __tablename__ = 'sessions'

    id = Column(Integer, primary_key=True)
    game_id = Column(Integer, ForeignKey('games.id'), nullable=False, index=True)
    session_name = Column(String(255), nullable=False)
    session_url = Column(String(500), nullable=False)
    thumbnail = Column(String(500), nullable=False)
    date = Column(Date, nullable=False)

    # External video identifier; the unique constraint is the authoritative duplicate guard
    video_id = Column(String(100), nullable=False, unique=True)

    mvp_id = Column(Integer, ForeignKey('players.id'), nullable=True)

    # Metadata
    created_at = Column(DateTime, default=func.now())

    # Relationships
    game = relationship("Game")
    mvp = relationship("Player", foreign_keys=[mvp_id])
    sets = relationship("GameSet", back_populates="session", order_by="GameSet.set_number")
    day_winners = relationship("Player", secondary=day_winner_table, order_by="Player.id")

    def __repr__(self):
        return f"<Session(id={self.id}, name='{self.session_name}', video_id='{self.video_id}')>"


class GameSet(Base):
    """An ordered grouping of matches within a session."""
    __tablename__ = 'game_sets'

    id = Column(Integer, primary_key=True)
    session_id = Column(Integer, ForeignKey('sessions.id'), nullable=False, index=True)
    set_number = Column(Integer, nullable=False)

    # Relationships
    session = relationship("Session", back_populates="sets")
    matches = relationship("Match", back_populates="game_set", order_by="Match.match_number")
    set_winners = relationship("Player", secondary=set_winner_table, order_by="Player.id")

    __table_args__ = (UniqueConstraint('session_id', 'set_number'),)

    def __repr__(self):
        return f"<GameSet(id={self.id}, session_id={self.session_id}, number={self.set_number})>"


class Match(Base):
    """One round of play within a set."""
    __tablename__ = 'matches'

    id = Column(Integer, primary_key=True)
    set_id = Column(Integer, ForeignKey('game_sets.id'), nullable=False, index=True)
    match_number = Column(Integer, nullable=False)

    # Relationships
    game_set = relationship("GameSet", back_populates="matches")
    player_sessions = relationship("PlayerSession", back_populates="match", order_by="PlayerSession.id")
    match_winners = relationship("Player", secondary=match_winner_table, order_by="Player.id")

    __table_args__ = (UniqueConstraint('set_id', 'match_number'),)

    def __repr__(self):
        return f"<Match(id={self.id}, set_id={self.set_id}, number={self.match_number})>"


class PlayerSession(Base):
    """One player's participation record within a match."""
    __tablename__ = 'player_sessions'

    id = Column(Integer, primary_key=True)
    session_id = Column(Integer, ForeignKey('sessions.id'), nullable=False, index=True)
    set_id = Column(Integer, ForeignKey('game_sets.id'), nullable=False, index=True)
    match_id = Column(Integer, ForeignKey('matches.id'), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey('players.id'), nullable=False, index=True)

    # Optional display-name override (e.g. the in-game name used that day)
    player_session_name = Column(String(100), nullable=True)

    # Relationships
    match = relationship("Match", back_populates="player_sessions")
    player = relationship("Player")
    player_stats = relationship("PlayerStat", back_populates="player_session", order_by="PlayerStat.id")

    __table_args__ = (UniqueConstraint('match_id', 'player_id'),)

    @property
    def display_name(self) -> str:
        return self.player_session_name or self.player.player_name

    def __repr__(self):
        return f"<PlayerSession(id={self.id}, match_id={self.match_id}, player_id={self.player_id})>"


class PlayerStat(Base):
    """One stat value for a player within a match. Values are stored as text."""
    __tablename__ = 'player_stats'

    id = Column(Integer, primary_key=True)
    player_session_id = Column(Integer, ForeignKey('player_sessions.id'), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey('players.id'), nullable=False, index=True)
    game_id = Column(Integer, ForeignKey('games.id'), nullable=False)
    stat_id = Column(Integer, ForeignKey('game_stats.id'), nullable=False)
    stat_value = Column(Text, nullable=False)

    # Relationships
    player_session = relationship("PlayerSession", back_populates="player_stats")
    game_stat = relationship("GameStat")

    __table_args__ = (UniqueConstraint('player_session_id', 'stat_id'),)

    def __repr__(self):
        return f"<PlayerStat(player_session_id={self.player_session_id}, stat_id={self.stat_id}, value='{self.stat_value}')>"
