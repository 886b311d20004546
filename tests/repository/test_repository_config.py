"""Tests for RepositoryConfig."""

from pathlib import Path

from settingsrepo.repository import RepositoryConfig
from settingsrepo.repository.config import DEFAULT_ROOT


class TestRepositoryConfig:
    """Tests for configuration defaults and environment loading."""

    def test_defaults(self, monkeypatch):
        for var in (
            "SETTINGS_REPOSITORY_PATH",
            "SETTINGS_REPOSITORY_INDEX",
            "SETTINGS_REPOSITORY_HEADLESS",
        ):
            monkeypatch.delenv(var, raising=False)

        config = RepositoryConfig.from_env()

        assert config.root == DEFAULT_ROOT
        assert config.index_file == DEFAULT_ROOT.parent / ".repository-index.json"
        assert config.headless is False

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SETTINGS_REPOSITORY_PATH", str(tmp_path / "repo"))
        monkeypatch.setenv("SETTINGS_REPOSITORY_INDEX", str(tmp_path / "idx.json"))
        monkeypatch.setenv("SETTINGS_REPOSITORY_HEADLESS", "TRUE")

        config = RepositoryConfig.from_env()

        assert config.root == tmp_path / "repo"
        assert config.index_file == tmp_path / "idx.json"
        assert config.headless is True

    def test_index_defaults_next_to_root(self):
        config = RepositoryConfig(root=Path("/data/settings/repository"))

        assert config.index_file == Path("/data/settings/.repository-index.json")
