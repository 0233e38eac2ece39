"""
Exception hierarchy shared by stores, resolvers and the API.
"""


class JournalError(Exception):
    """Base class for all application errors."""


class ResolutionError(JournalError):
    """A resolver tier could not produce a value; the chain moves on."""


class NetworkFailure(ResolutionError):
    """Remote source unreachable or answered with a non-success status."""


class MalformedResponse(ResolutionError):
    """Remote or AI source answered with an unexpected payload."""


class QuotaExceeded(ResolutionError):
    """Remote source is rate limiting us."""


class RestoreParseError(JournalError):
    """Backup data is not valid JSON or not an array of entries."""


class StorageCorruption(JournalError):
    """A stored value could not be parsed."""

    def __init__(self, key: str, message: str = ""):
        self.key = key
        super().__init__(f"Corrupt value for '{key}'" + (f": {message}" if message else ""))
