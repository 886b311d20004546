"""In-memory content used while resolving conflicts.

StagedContent holds one revision of a path without touching the store. It
accepts a single whole-content assignment; the streamed and text entry points
of VirtualContent are disabled.
"""

import time
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional

from .exceptions import InvalidStagedWriteError


class VirtualContent(ABC):
    """Abstract in-memory content addressed by a repository path."""

    @property
    @abstractmethod
    def path(self) -> str:
        """Path relative to the store root."""

    @property
    def name(self) -> str:
        """Final segment of the path."""
        return self.path.rstrip("/").rsplit("/", 1)[-1]

    @abstractmethod
    def set_binary_content(
        self, content: bytes, modification_stamp: int = -1, timestamp: int = -1
    ) -> None:
        """Replace the whole content."""

    @abstractmethod
    def get_output_stream(self) -> BinaryIO:
        """Open a stream for incremental writes."""

    @abstractmethod
    def set_content(self, text: str) -> None:
        """Replace the content with text."""

    @abstractmethod
    def contents_to_bytes(self) -> bytes:
        """Return the current content."""


class StagedContent(VirtualContent):
    """Write-once holder for a revision of ``path``.

    ``set_binary_content`` is the only way to record content, and it is
    accepted exactly once. ``get_output_stream`` and ``set_content`` always
    raise InvalidStagedWriteError.
    """

    def __init__(self, path: str, content: Optional[bytes] = None):
        self._path = path
        self._content: Optional[bytes] = None
        self.modification_stamp = -1
        self.timestamp = -1
        if content is not None:
            self.set_binary_content(content)

    @property
    def path(self) -> str:
        return self._path

    @property
    def content(self) -> Optional[bytes]:
        return self._content

    @property
    def is_set(self) -> bool:
        return self._content is not None

    def set_binary_content(
        self, content: bytes, modification_stamp: int = -1, timestamp: int = -1
    ) -> None:
        if self._content is not None:
            raise InvalidStagedWriteError(
                f"Content for {self._path} has already been set"
            )

        now = time.time_ns()
        self._content = bytes(content)
        self.modification_stamp = modification_stamp if modification_stamp >= 0 else now
        self.timestamp = timestamp if timestamp >= 0 else now // 1_000_000

    def get_output_stream(self) -> BinaryIO:
        raise InvalidStagedWriteError("You must use set_binary_content")

    def set_content(self, text: str) -> None:
        raise InvalidStagedWriteError("You must use set_binary_content")

    def contents_to_bytes(self) -> bytes:
        return self._content or b""

    def __repr__(self) -> str:
        size = len(self._content) if self._content is not None else None
        return f"StagedContent(path='{self._path}', size={size})"
