"""Exceptions raised by the workshop sync engine."""


class SyncError(Exception):
    """Base exception for everything that can abort a sync."""

    pass


class NetworkError(SyncError):
    """Raised when a request to the Steam Web API fails in transport."""

    pass


class DeserializationError(SyncError):
    """Raised when the Steam Web API returns a response we cannot decode."""

    pass


class FilesystemError(SyncError):
    """Raised when reading, writing, moving or deleting on disk fails."""

    pass


class SubprocessError(SyncError):
    """Raised when steamcmd cannot be started or exits non-zero."""

    def __init__(self, message: str, returncode: int | None = None):
        self.returncode = returncode
        super().__init__(message)


class NoCollectionConfigured(SyncError):
    """Raised when a sync is requested for a directory with no collection bound."""

    pass


class CollectionParseError(SyncError):
    """Raised when a collection id or URL cannot be parsed."""

    pass


class ConfigError(SyncError):
    """Raised when the instance binding file is unreadable."""

    pass
