"""Exceptions raised while archiving a thread.

Every failure aborts the whole archive run; nothing here is retried.
"""


class ArchiveError(RuntimeError):
    """Base class for all archive failures."""


class InvalidInputError(ArchiveError):
    """Raised when the post URL does not have the expected shape."""


class ResolutionError(ArchiveError):
    """Raised when a handle cannot be resolved to a DID."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FetchError(ArchiveError):
    """Raised when a thread page request does not succeed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(ArchiveError):
    """Raised when a response succeeds but has an unexpected shape."""


class ArchiveTimeoutError(ArchiveError):
    """Raised when the archive run exceeds its total time budget."""


class ConfigError(ArchiveError):
    """Raised when the preferences file holds invalid values."""
