"""
Custom exceptions for the stat tracker with user-friendly error messages.
"""

from tracker.constants import ErrorCodes


class TrackerException(Exception):
    """Base exception for tracker errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


# Session ingestion

class SessionIngestionError(TrackerException):
    """Base class for known session ingestion failures."""
    pass

class NotAuthenticatedError(SessionIngestionError):
    """Raised when the caller has no session with the authorization gate."""
    def __init__(self):
        super().__init__("Caller is not authenticated", ErrorCodes.NOT_AUTHENTICATED)

class NotAuthorizedError(SessionIngestionError):
    """Raised when the caller does not hold the admin role."""
    def __init__(self, role: str = None):
        super().__init__(f"Caller role '{role}' may not ingest sessions", ErrorCodes.NOT_AUTHORIZED)

class GameNotFoundError(SessionIngestionError):
    def __init__(self, game_name: str):
        super().__init__(f"Game '{game_name}' not found", ErrorCodes.GAME_NOT_FOUND)

class VideoAlreadyExistsError(SessionIngestionError):
    def __init__(self, video_id: str):
        super().__init__(f"A session already references video '{video_id}'", ErrorCodes.VIDEO_ALREADY_EXISTS)

class PlayerNotFoundError(SessionIngestionError):
    def __init__(self, player_ids):
        super().__init__(f"Players not found: {sorted(player_ids)}", ErrorCodes.PLAYER_NOT_FOUND)

class InvalidStatError(SessionIngestionError):
    """Raised when a stat does not belong to the session's game or has the wrong shape."""
    def __init__(self, reason: str):
        super().__init__(reason, ErrorCodes.INVALID_STAT)

class InvalidSessionDataError(SessionIngestionError):
    def __init__(self, details: str):
        super().__init__(f"Session payload failed validation: {details}", ErrorCodes.INVALID_SESSION_DATA)


# Screenshot pipeline

class VisionError(TrackerException):
    """Base class for screenshot pipeline failures."""
    pass

class UnknownGameError(VisionError):
    """Raised by the processor registry for unsupported game ids."""
    def __init__(self, game_id):
        super().__init__(f"Invalid game id: {game_id}")
        self.game_id = game_id

class ExtractionFailed(VisionError):
    """Raised when the recognition service cannot be reached or rejects the job."""
    pass

class ExtractionTimeout(ExtractionFailed):
    """Raised when the recognition job does not finish in time."""
    def __init__(self, timeout: float):
        super().__init__(f"Vision analysis timed out after {timeout:g} seconds")
        self.timeout = timeout

class EmptyResult(VisionError):
    """Raised when a finished recognition job holds nothing to analyze."""
    pass
