"""
Services package: boundaries to the outside world (vision API, auth, cache,
analytics).
"""

from .analytics import AnalyticsService
from .auth_gate import AuthorizationGate, AuthSession, AuthUser, DiscordAuthorizationGate
from .session_cache import SessionCache
from .vision_client import DocumentVisionClient

__all__ = [
    'AnalyticsService', 'AuthorizationGate', 'AuthSession', 'AuthUser',
    'DiscordAuthorizationGate', 'SessionCache', 'DocumentVisionClient',
]
