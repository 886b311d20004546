"""
Filesystem storage for the settings repository.

PathStore maps relative, forward-slash paths to files under a single root
directory. It knows nothing about the index; RepositoryManager pairs its
mutations with index updates.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

from .exceptions import (
    RepositoryInvalidPathError,
    RepositoryReadError,
    RepositoryStorageError,
)

logger = logging.getLogger(__name__)


def remove_file_and_empty_parents(file_path: Path, is_file: bool, root: Path) -> None:
    """Remove a file or directory tree, then prune empty parents up to ``root``.

    Parents are only pruned for regular files. Pruning stops at the first
    directory that is not empty, and never removes ``root`` itself.
    """
    if is_file:
        file_path.unlink()
    else:
        shutil.rmtree(file_path)
        return

    parent = file_path.parent
    while parent != root and root in parent.parents:
        try:
            parent.rmdir()
        except OSError:
            # not empty
            break
        parent = parent.parent


class PathStore:
    """
    Raw byte storage rooted at a directory.

    Writes are atomic (temp file + rename), so a failed write never leaves a
    partially written file behind.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root).expanduser().resolve()

    def _resolve(self, path: str, allow_root: bool = False) -> Path:
        """
        Validate a relative path and resolve it under the store root.

        Raises:
            RepositoryInvalidPathError: If path is invalid or escapes the root
        """
        path = (path or "").replace("\\", "/")

        if path.startswith("/"):
            raise RepositoryInvalidPathError(f"Path must be relative: {path}")

        if ".." in path.split("/"):
            raise RepositoryInvalidPathError(f"Path cannot contain '..': {path}")

        stripped = path.strip("/")
        if not stripped:
            if allow_root:
                return self.root
            raise RepositoryInvalidPathError("Path cannot be empty")

        full_path = (self.root / stripped).resolve()
        try:
            full_path.relative_to(self.root)
        except ValueError:
            raise RepositoryInvalidPathError(f"Path escapes store root: {path}")

        if full_path == self.root and not allow_root:
            raise RepositoryInvalidPathError(f"Path refers to the store root: {path}")

        return full_path

    def list_children(self, path: str = "") -> List[str]:
        """List the names of the immediate children of ``path``.

        Returns an empty list when the directory does not exist or is empty.
        """
        directory = self._resolve(path, allow_root=True)
        try:
            return sorted(entry.name for entry in directory.iterdir())
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            raise RepositoryStorageError(f"Failed to list {path!r}: {e}") from e

    def read(self, path: str) -> Optional[bytes]:
        """Read a stored file, or None if it does not exist."""
        full_path = self._resolve(path)
        if not full_path.exists():
            return None

        try:
            return full_path.read_bytes()
        except FileNotFoundError:
            # deleted concurrently
            return None
        except OSError as e:
            raise RepositoryReadError(f"Failed to read {path}: {e}") from e

    def _create_temp_file(self, full_path: Path) -> Tuple[int, str]:
        """Create the parent directories and a temp file next to ``full_path``.

        A concurrent delete may prune the freshly created parents before the
        temp file exists, so creation is retried once.
        """
        for attempt in range(2):
            full_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                return tempfile.mkstemp(
                    dir=full_path.parent,
                    prefix=f".{full_path.name}.",
                    suffix=".tmp",
                )
            except FileNotFoundError:
                if attempt:
                    raise
                logger.debug(f"Parent of {full_path} vanished, retrying")

    def write(self, path: str, content: bytes, size: Optional[int] = None) -> None:
        """
        Write the first ``size`` bytes of ``content`` to ``path``.

        Missing parent directories are created. Existing content is replaced.

        Raises:
            RepositoryStorageError: If ``size`` is out of range or writing fails
        """
        full_path = self._resolve(path)
        if size is None:
            size = len(content)
        if not 0 <= size <= len(content):
            raise RepositoryStorageError(
                f"Invalid size {size} for {path}: content has {len(content)} bytes"
            )
        data = bytes(content[:size])

        try:
            fd, temp_path = self._create_temp_file(full_path)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())

                os.replace(temp_path, full_path)
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise

        except OSError as e:
            raise RepositoryStorageError(f"Failed to write {path}: {e}") from e

    def delete(self, path: str) -> Optional[bool]:
        """
        Delete a file or directory.

        Returns:
            None if nothing existed at ``path``, otherwise whether it was a
            regular file

        Raises:
            RepositoryStorageError: If deletion fails
        """
        full_path = self._resolve(path)
        if not full_path.exists():
            return None

        is_file = full_path.is_file()
        try:
            remove_file_and_empty_parents(full_path, is_file, self.root)
        except OSError as e:
            raise RepositoryStorageError(f"Failed to delete {path}: {e}") from e

        return is_file

    def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).exists()
        except RepositoryInvalidPathError:
            return False

    def is_file(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except RepositoryInvalidPathError:
            return False

    def delete_all(self) -> None:
        """Remove the whole store root."""
        if not self.root.exists():
            return

        try:
            shutil.rmtree(self.root)
        except OSError as e:
            raise RepositoryStorageError(
                f"Failed to delete repository {self.root}: {e}"
            ) from e
        logger.info(f"Deleted repository at {self.root}")
