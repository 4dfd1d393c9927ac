"""
Tracker-wide constants.

Error messages surfaced to callers and the result codes returned by the
screenshot pipeline live here so the operations layer, the cogs and the tests
agree on exact strings.
"""

from enum import Enum


class ErrorCodes:
    """User-facing error messages returned by session ingestion."""

    NOT_AUTHENTICATED = "Not authenticated."
    NOT_AUTHORIZED = "Not authorized."
    GAME_NOT_FOUND = "Game not found."
    VIDEO_ALREADY_EXISTS = "Video already exists."
    PLAYER_NOT_FOUND = "Player not found."
    INVALID_STAT = "Invalid stat for this game."
    INVALID_SESSION_DATA = "Invalid session data."
    UNKNOWN_ERROR = "Unknown error occurred. Please try again."


class VisionResultCode(Enum):
    """Outcome of a screenshot analysis."""
    SUCCESS = "success"
    FAILED = "failed"


class VisionMessages:
    """Messages produced by the screenshot pipeline."""

    SUCCESS = "Success"
    ANALYZE_RESULT_UNDEFINED = "Analyze result or documents are undefined"
    FIELDS_UNDEFINED = "Vision Analysis Player Results are undefined"
    NO_PLAYERS = "No player data could be extracted from the screenshot"


class GameIds:
    """Stable ids of the supported games."""

    MARIO_KART_8 = 1
    ROCKET_LEAGUE = 2
    CALL_OF_DUTY = 3
    MARVEL_RIVALS = 4


class AuthRoles:
    ADMIN = "admin"
    USER = "user"


class UIConstants:
    """Constants for Discord UI elements."""

    # Embed colors
    DEFAULT_EMBED_COLOR = 0x3498db  # Blue
    ERROR_COLOR = 0xe74c3c          # Red for errors
    SUCCESS_COLOR = 0x2ecc71        # Green for success
    REVIEW_COLOR = 0xf39c12         # Orange for results needing review

    TROPHY_EMOJI = "🏆"
    REVIEW_EMOJI = "⚠️"

    # Discord limits
    MAX_EMBED_FIELDS = 25
    MAX_ATTACHMENT_BYTES = 8 * 1024 * 1024
