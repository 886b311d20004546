"""Configuration for the settings repository."""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_ROOT = Path.home() / ".settingsrepo" / "repository"


@dataclass
class RepositoryConfig:
    """Configuration for a repository manager instance.

    - Store root (where settings files live)
    - Index file (where the local index is persisted)
    - Headless flag (forces automated conflict resolution)
    """

    root: Path = DEFAULT_ROOT
    index_file: Path | None = None
    headless: bool = False

    def __post_init__(self):
        self.root = Path(self.root).expanduser()
        if self.index_file is None:
            self.index_file = self.root.parent / ".repository-index.json"
        else:
            self.index_file = Path(self.index_file).expanduser()

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        """Create config from environment variables."""
        index_file = os.environ.get("SETTINGS_REPOSITORY_INDEX")
        return cls(
            root=Path(os.environ.get("SETTINGS_REPOSITORY_PATH", str(DEFAULT_ROOT))),
            index_file=Path(index_file) if index_file else None,
            headless=os.environ.get("SETTINGS_REPOSITORY_HEADLESS", "false").lower()
            == "true",
        )
