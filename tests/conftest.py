"""Shared fixtures: a seeded file-backed database, players and auth gates."""

from typing import Any, Optional

import pytest

from tracker.constants import AuthRoles
from tracker.database.database import Database
from tracker.services.auth_gate import AuthorizationGate, AuthSession, AuthUser


class StaticGate(AuthorizationGate):
    """Gate that hands every caller the same session"""

    def __init__(self, session: Optional[AuthSession]):
        self.session = session
        self.calls = 0

    async def get_session(self, caller: Any) -> Optional[AuthSession]:
        self.calls += 1
        return self.session


@pytest.fixture
async def db(tmp_path):
    database = Database(f"sqlite:///{tmp_path}/test.db")
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
async def players(db):
    ben = await db.create_player("Ben")
    ana = await db.create_player("Ana")
    kai = await db.create_player("Kai")
    return {"Ben": ben, "Ana": ana, "Kai": kai}


@pytest.fixture
def admin_gate():
    return StaticGate(AuthSession(AuthUser(role=AuthRoles.ADMIN, email="admin@example.com")))


@pytest.fixture
def user_gate():
    return StaticGate(AuthSession(AuthUser(role=AuthRoles.USER, email="user@example.com")))


@pytest.fixture
def anonymous_gate():
    return StaticGate(None)
