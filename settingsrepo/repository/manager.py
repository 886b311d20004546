"""
Repository manager for the settings repository.

The RepositoryManager is the public contract: it performs filesystem
mutations through a PathStore and pairs each successful mutation with exactly
one index update. Disk I/O runs without the lock; index updates are
serialized under a per-instance lock.

Writes and deletes are best-effort: failures are logged and the call returns
normally. Callers that need confirmation check ``exists`` or ``read``.
"""

import logging
import threading
from pathlib import Path
from typing import List, Optional

from .config import RepositoryConfig
from .index import IndexSynchronizer
from .storage import PathStore

logger = logging.getLogger(__name__)


class RepositoryManager:
    """
    Filesystem-backed settings store kept in sync with an index.

    Each manager owns its own lock, so independently rooted managers never
    contend with each other.
    """

    def __init__(
        self,
        index: IndexSynchronizer,
        root: Optional[str | Path] = None,
        config: Optional[RepositoryConfig] = None,
    ):
        """
        Initialize the repository manager.

        Args:
            index: Index synchronizer notified after every disk mutation
            root: Store root directory. Defaults to ``config.root``.
            config: Repository configuration. Defaults to the environment.
        """
        self.config = config or RepositoryConfig.from_env()
        self.store = PathStore(root if root is not None else self.config.root)
        self._index = index
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self.store.root

    @property
    def index(self) -> IndexSynchronizer:
        return self._index

    def list_children(self, path: str = "") -> List[str]:
        return self.store.list_children(path)

    def read(self, path: str) -> Optional[bytes]:
        """
        Read stored content.

        Returns:
            Content bytes, or None if nothing is stored at ``path``

        Raises:
            RepositoryReadError: If the file exists but cannot be read
        """
        return self.store.read(path)

    def write(self, path: str, content: bytes, size: Optional[int] = None) -> bool:
        """
        Write content and record it in the index.

        Args:
            path: Path relative to the store root
            content: Content buffer
            size: Number of leading bytes of ``content`` to store (all if None)

        Returns:
            True if both the write and the index update succeeded
        """
        logger.debug(f"Write {path}")

        if size is None:
            size = len(content)

        try:
            self.store.write(path, content, size)

            with self._lock:
                self._index.record_write(path, content, size)
        except Exception:
            logger.exception(f"Failed to write {path}")
            return False

        return True

    def delete(self, path: str) -> None:
        """
        Delete a file or directory and record the removal in the index.

        Deleting a path that does not exist is a no-op.
        """
        logger.debug(f"Remove {path}")

        try:
            is_file = self.store.delete(path)
            if is_file is None:
                return

            with self._lock:
                self._index.record_delete(path, is_file)
        except Exception:
            logger.exception(f"Failed to delete {path}")

    def exists(self, path: str) -> bool:
        return self.store.exists(path)

    def delete_all(self) -> None:
        """Remove the whole repository directory."""
        self.store.delete_all()

    def __repr__(self) -> str:
        return f"RepositoryManager(root='{self.root}')"
