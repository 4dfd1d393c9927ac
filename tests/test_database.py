"""Tests for Database initialization and helpers."""

from sqlalchemy.exc import IntegrityError
import pytest

from tracker.database.database import Database
from tracker.processors.registry import default_registry


class TestInitialization:
    async def test_games_and_stats_are_seeded_from_processors(self, db):
        games = await db.get_all_games()
        assert [(g.id, g.name) for g in games] == [
            (p.game_id, p.game_name) for p in default_registry.all()
        ]

        for processor in default_registry.all():
            stats = await db.get_game_stats(processor.game_id)
            assert [s.stat_name for s in stats] == [d.name for d in processor.stats]

    async def test_seeding_is_idempotent(self, db):
        before = await db.get_table_counts()
        await db.initialize_default_data()
        assert await db.get_table_counts() == before

    async def test_in_memory_database(self):
        database = Database("sqlite:///:memory:")
        await database.initialize()
        try:
            assert (await database.get_table_counts())["games"] == len(default_registry.game_ids)
        finally:
            await database.close()


class TestPlayers:
    async def test_create_and_find_player(self, db):
        player = await db.create_player("Ben", discord_id=1234)
        found = await db.get_player_by_name("ben")
        assert found.id == player.id
        assert found.discord_id == 1234

    async def test_player_names_are_unique(self, db):
        await db.create_player("Ben")
        with pytest.raises(IntegrityError):
            await db.create_player("Ben")

    async def test_game_lookup_ignores_case(self, db):
        game = await db.get_game_by_name("rocket league")
        assert game.id == 2
