"""
Error types shared by the clan tracker services.

NotInLeague and LeagueDataUnavailable are expected, user-visible
conditions rather than failures; the API layer reports them as
structured responses.
"""


class ClanTrackerError(Exception):
    """Base class for all clan tracker errors."""
    pass


class UpstreamUnavailable(ClanTrackerError):
    """Raised when a call to the Clash of Clans API fails."""

    def __init__(self, message: str, status_code: int | None = None, reason: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class NotInLeague(ClanTrackerError):
    """Raised when the clan is not currently in a Clan War League."""
    pass


class LeagueDataUnavailable(ClanTrackerError):
    """Raised when the league group has no usable round/war tag data."""
    pass


class RecordNotFound(ClanTrackerError):
    """Raised when a player tag has no stored record."""

    def __init__(self, tag: str):
        super().__init__(f"Player {tag} not found in the database.")
        self.tag = tag


class StoreFailure(ClanTrackerError):
    """Raised when the persistent store cannot be read or written."""
    pass
