"""
Exceptions for the settings repository.
"""


class RepositoryError(Exception):
    """Base exception for repository operations."""


class RepositoryStorageError(RepositoryError):
    """Raised when a filesystem operation on the store fails."""


class RepositoryReadError(RepositoryStorageError):
    """Raised when a stored file exists but cannot be read."""


class RepositoryInvalidPathError(RepositoryError):
    """Raised when a repository path is invalid."""


class ConflictBatchCancelled(RepositoryError):
    """Raised by a merge presenter when the operator aborts the batch.

    Paths the operator finished before cancelling are carried in ``resolved``.
    """

    def __init__(self, message: str = "Conflict resolution cancelled", resolved=()):
        super().__init__(message)
        self.resolved = list(resolved)


class InvalidStagedWriteError(RuntimeError):
    """Raised when staged content is written through a disabled entry point."""
