"""Index synchronization for the settings repository.

RepositoryManager calls an IndexSynchronizer after every successful disk
mutation, with the manager lock held. Version-control backends implement the
two hooks; this module ships a no-op index and a JSON-file index.
"""

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class IndexSynchronizer(ABC):
    """Abstract interface for keeping an index in lockstep with the store."""

    @abstractmethod
    def record_write(self, path: str, content: bytes, size: int) -> None:
        """Record that ``path`` now holds the first ``size`` bytes of ``content``.

        Args:
            path: Path relative to the store root
            content: Written content
            size: Number of bytes of ``content`` that were written
        """

    @abstractmethod
    def record_delete(self, path: str, is_file: bool) -> None:
        """Record that ``path`` was removed from the store.

        Args:
            path: Path relative to the store root
            is_file: True if a regular file was removed, False for a directory
        """


class NoOpIndex(IndexSynchronizer):
    """Index that records nothing."""

    def record_write(self, path: str, content: bytes, size: int) -> None:
        return None

    def record_delete(self, path: str, is_file: bool) -> None:
        return None


class JsonFileIndex(IndexSynchronizer):
    """Track stored files in a JSON index file.

    Stored as::

        {"files": {"<path>": {"md5": ..., "size": ..., "last_modified": ...}}}

    The index file should live outside the store root so it never shows up
    in listings.
    """

    def __init__(self, index_file: Path):
        self.index_file = Path(index_file)
        self._index: dict[str, dict[str, Any]] = {}
        self._loaded = False

    def load(self) -> dict[str, dict[str, Any]]:
        """Load index from disk."""
        if not self.index_file.exists():
            logger.debug(f"No index found at {self.index_file}")
            self._index = {}
            self._loaded = True
            return self._index

        try:
            with open(self.index_file, "r") as f:
                data = json.load(f)
            self._index = dict(data.get("files", {}))
        except (json.JSONDecodeError, AttributeError) as e:
            logger.error(f"Failed to load index {self.index_file}: {e}")
            self._index = {}

        self._loaded = True
        logger.debug(f"Loaded index with {len(self._index)} entries")
        return self._index

    def save(self) -> None:
        """Save index to disk."""
        self.index_file.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "files": self._index,
            "index_last_modified": datetime.now(timezone.utc).isoformat(),
        }
        with open(self.index_file, "w") as f:
            json.dump(data, f, indent=2, sort_keys=True)

    def entries(self) -> dict[str, dict[str, Any]]:
        """Get a copy of all entries."""
        if not self._loaded:
            self.load()
        return dict(self._index)

    def record_write(self, path: str, content: bytes, size: int) -> None:
        if not self._loaded:
            self.load()

        self._index[path] = {
            "md5": hashlib.md5(bytes(content[:size])).hexdigest(),
            "size": size,
            "last_modified": datetime.now(timezone.utc).isoformat(),
        }
        self.save()
        logger.debug(f"Indexed {path} ({size} bytes)")

    def record_delete(self, path: str, is_file: bool) -> None:
        if not self._loaded:
            self.load()

        if is_file:
            removed = [path] if path in self._index else []
        else:
            prefix = path.rstrip("/") + "/"
            removed = [p for p in self._index if p.startswith(prefix)]

        for removed_path in removed:
            del self._index[removed_path]

        self.save()
        logger.debug(f"Removed {len(removed)} index entries for {path}")
