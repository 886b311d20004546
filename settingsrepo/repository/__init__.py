"""
Settings repository: a local, path-addressed content store.

Files live under a single store root and every successful write or delete is
mirrored into an index. Conflicting revisions are resolved through
ConflictResolver.
"""

from .config import RepositoryConfig
from .conflicts import (
    ConflictCandidate,
    ConflictResolver,
    ConsolePresenter,
    EventLoopDispatcher,
    ImmediateDispatcher,
    MergePresenter,
    MergeRequest,
    PreferCurrentStrategy,
    PreferIncomingStrategy,
    RepositoryRevisionSource,
    Resolution,
    ResolutionStrategy,
    RevisionSource,
    SentinelStrategy,
    UiDispatcher,
    resolve_conflicts,
)
from .exceptions import (
    ConflictBatchCancelled,
    InvalidStagedWriteError,
    RepositoryError,
    RepositoryInvalidPathError,
    RepositoryReadError,
    RepositoryStorageError,
)
from .index import IndexSynchronizer, JsonFileIndex, NoOpIndex
from .manager import RepositoryManager
from .staged import StagedContent, VirtualContent
from .storage import PathStore

__all__ = [
    # Storage
    "PathStore",
    "RepositoryManager",
    "RepositoryConfig",
    # Index
    "IndexSynchronizer",
    "NoOpIndex",
    "JsonFileIndex",
    # Conflicts
    "ConflictCandidate",
    "ConflictResolver",
    "Resolution",
    "ResolutionStrategy",
    "SentinelStrategy",
    "PreferCurrentStrategy",
    "PreferIncomingStrategy",
    "RevisionSource",
    "RepositoryRevisionSource",
    "MergePresenter",
    "MergeRequest",
    "ConsolePresenter",
    "UiDispatcher",
    "ImmediateDispatcher",
    "EventLoopDispatcher",
    "resolve_conflicts",
    # Staged content
    "VirtualContent",
    "StagedContent",
    # Exceptions
    "RepositoryError",
    "RepositoryStorageError",
    "RepositoryReadError",
    "RepositoryInvalidPathError",
    "ConflictBatchCancelled",
    "InvalidStagedWriteError",
]
