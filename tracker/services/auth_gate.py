"""
Authorization Gate - resolves who is calling and with which role.

Session ingestion asks the gate before touching the database. A caller with
no session is unauthenticated; anything other than the admin role is
unauthorized.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from tracker.config import Config
from tracker.constants import AuthRoles
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class AuthUser:
    role: str
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == AuthRoles.ADMIN


@dataclass(frozen=True)
class AuthSession:
    user: AuthUser


class AuthorizationGate(ABC):
    """Boundary to the authentication/session service"""

    @abstractmethod
    async def get_session(self, caller: Any) -> Optional[AuthSession]:
        """Return the caller's session, or None when the caller is not signed in"""
        pass

    async def is_admin(self, caller: Any) -> bool:
        auth = await self.get_session(caller)
        return auth is not None and auth.user.is_admin


class DiscordAuthorizationGate(AuthorizationGate):
    """
    Resolve Discord users to sessions.

    The bot owner, configured admin ids and guild members with the
    Administrator permission hold the admin role; every other user is a plain
    user. Bots and missing callers have no session.
    """

    async def get_session(self, caller: Any) -> Optional[AuthSession]:
        if caller is None or getattr(caller, 'bot', False):
            return None

        user_id = getattr(caller, 'id', None)
        if user_id is None:
            return None

        identity = str(caller)
        if user_id in Config.get_admin_ids():
            return AuthSession(AuthUser(role=AuthRoles.ADMIN, email=identity))

        permissions = getattr(caller, 'guild_permissions', None)
        if permissions is not None and permissions.administrator:
            return AuthSession(AuthUser(role=AuthRoles.ADMIN, email=identity))

        logger.debug(f"User {identity} resolved to role '{AuthRoles.USER}'")
        return AuthSession(AuthUser(role=AuthRoles.USER, email=identity))
